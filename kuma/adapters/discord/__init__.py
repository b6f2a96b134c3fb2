from kuma.adapters.discord.gateway import KumaDiscordClient, build_embed

__all__ = ["KumaDiscordClient", "build_embed"]
