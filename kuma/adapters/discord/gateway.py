"""Discord gateway — the embedded front end.

Converts discord.Message → Request, submits it to an in-process
KumaProcessor, and renders Responses back into the channel.
"""

import sys
from datetime import datetime, timezone
from typing import Optional

import discord

from kuma.config import DiscordConfig
from kuma.domain.models import Request, Response, SourceSystem, UserAuthority
from kuma.domain.processor import KumaProcessor

EMBED_COLOR = 0x00B6B6


def _log(msg: str):
    print(msg, file=sys.stderr)


class KumaDiscordClient(discord.Client):
    def __init__(self, processor: KumaProcessor, config: DiscordConfig, **discord_kwargs):
        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.guild_messages = True
        super().__init__(intents=intents, **discord_kwargs)
        self._processor = processor
        self._config = config
        processor.subscribe(self)

    def authority_for(self, author) -> UserAuthority:
        if self._config.admin_id is not None and author.id == self._config.admin_id:
            return UserAuthority.ADMINISTRATOR
        if self._config.mod_role_id is not None:
            role_ids = {role.id for role in getattr(author, "roles", None) or []}
            if self._config.mod_role_id in role_ids:
                return UserAuthority.MODERATOR
        return UserAuthority.USER

    def to_request(self, message: discord.Message) -> Optional[Request]:
        """None for messages the bot must not answer."""
        if message.webhook_id is not None:
            return None
        if self.user is not None and message.author.id == self.user.id:
            return None

        channel = message.channel
        if isinstance(channel, discord.DMChannel):
            is_private, is_nsfw = True, True
        elif isinstance(channel, discord.TextChannel):
            is_private, is_nsfw = False, channel.is_nsfw()
        else:
            return None

        return Request(
            username=message.author.name,
            message=message.content,
            source_system=SourceSystem.DISCORD,
            message_id=message.id,
            authority=self.authority_for(message.author),
            channel_id=channel.id,
            channel_is_private=is_private,
            channel_is_nsfw=is_nsfw,
        )

    async def on_ready(self):
        _log(f"[discord] logged in as {self.user}")

    async def on_message(self, message: discord.Message):
        request = self.to_request(message)
        if request is not None:
            self._processor.submit(request)

    async def _resolve_channel(self, channel_id: Optional[int]):
        if channel_id is None:
            return None
        channel = self.get_channel(channel_id)
        if channel is not None:
            return channel
        try:
            return await self.fetch_channel(channel_id)
        except discord.DiscordException as e:
            _log(f"[discord] channel {channel_id} unavailable: {e}")
            return None

    async def on_processing(self, channel_id: Optional[int]) -> None:
        channel = await self._resolve_channel(channel_id)
        if channel is not None:
            await channel.typing()

    async def on_responded(self, response: Response) -> None:
        if response.source_system != SourceSystem.DISCORD:
            return
        channel = await self._resolve_channel(response.channel_id)
        if channel is None:
            return

        if response.image is not None:
            await channel.send(content=response.message, embed=build_embed(response))
        elif response.message:
            # Discord caps messages at 2000 characters
            text = response.message
            while text:
                await channel.send(text[:2000])
                text = text[2000:]


def build_embed(response: Response) -> discord.Embed:
    image = response.image
    embed = discord.Embed(
        title=image.referrer,
        url=image.source,
        description=image.description,
        color=discord.Color(EMBED_COLOR),
        timestamp=datetime.now(timezone.utc),
    )
    embed.set_image(url=image.url)
    return embed
