from kuma.adapters.search.danbooru import DanbooruClient

__all__ = ["DanbooruClient"]
