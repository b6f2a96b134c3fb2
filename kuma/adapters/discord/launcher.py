"""Launcher for the Discord gateway with an embedded processor."""

import asyncio
import sys
from typing import Optional

from kuma.adapters.discord.gateway import KumaDiscordClient
from kuma.app import build_app
from kuma.config import AppConfig


def _log(msg: str):
    print(msg, file=sys.stderr)


async def launch_discord(config: Optional[AppConfig] = None) -> int:
    config = config or AppConfig.from_env()
    if not config.discord.token:
        _log("DISCORD_TOKEN environment variable must be set, exiting")
        return 1

    app = build_app(config)
    client = KumaDiscordClient(app.processor, config.discord)
    try:
        await client.start(config.discord.token)
    except Exception as e:
        app.chat_log.log_exception(e, "Discord gateway crashed")
        return 1
    finally:
        if not client.is_closed():
            await client.close()
        await app.close()
    return 0


def main():
    try:
        code = asyncio.run(launch_discord())
    except KeyboardInterrupt:
        _log("Exiting")
        code = 0
    sys.exit(code)


if __name__ == "__main__":
    main()
