"""Image board commands and block-list administration."""

from typing import List, Sequence

from kuma.domain.errors import NotFound
from kuma.domain.models import Request, Response, UserAuthority
from kuma.domain.registry import CommandDescriptor
from kuma.domain.retrieval import DedupRandomRetriever
from kuma.ports.outbound import BlockListPort

SAFE_TAGS = ("rating:g",)
LEWD_TAGS = ("-rating:g",)


class DanbooruCommands:
    def __init__(self, retriever: DedupRandomRetriever, block_list: BlockListPort):
        self._retriever = retriever
        self._block_list = block_list

    def descriptors(self) -> List[CommandDescriptor]:
        return [
            CommandDescriptor(("dan",), self.dan, nsfw=True,
                              description="Random image for the given tags."),
            CommandDescriptor(("safe", "sfw"), self.safe,
                              description="Random general-rated image."),
            CommandDescriptor(("lewd", "nsfw"), self.lewd, nsfw=True,
                              description="Random image that is not general-rated."),
            CommandDescriptor(("danban",), self.ban, min_authority=UserAuthority.ADMINISTRATOR,
                              description="Block tags from image searches."),
            CommandDescriptor(("danunban",), self.unban, min_authority=UserAuthority.ADMINISTRATOR,
                              description="Unblock tags."),
        ]

    async def _image(self, request: Request, base_tags: Sequence[str]) -> Response:
        tags = [*base_tags, *request.command_args]
        image = await self._retriever.find(tags, request.source_system, request.channel_id)
        if image is None:
            raise NotFound()
        return Response.reply(request, image=image)

    async def dan(self, request: Request) -> Response:
        return await self._image(request, ())

    async def safe(self, request: Request) -> Response:
        return await self._image(request, SAFE_TAGS)

    async def lewd(self, request: Request) -> Response:
        return await self._image(request, LEWD_TAGS)

    async def ban(self, request: Request) -> Response:
        blocked = await self._block_list.list_blocked_terms()
        inserted = 0
        for tag in dict.fromkeys(request.command_args):
            if tag in blocked:
                continue
            if await self._block_list.add(tag):
                inserted += 1

        if inserted == 0:
            return Response.reply(request, "Nothing to add.")
        return Response.reply(request, f"{inserted} tags added.")

    async def unban(self, request: Request) -> Response:
        deleted = 0
        for tag in dict.fromkeys(request.command_args):
            if await self._block_list.remove(tag):
                deleted += 1

        if deleted == 0:
            return Response.reply(request, "Nothing to remove.")
        return Response.reply(request, f"{deleted} tags removed.")
