from kuma.adapters.cache.redis_cache import RedisCache

__all__ = ["RedisCache"]
