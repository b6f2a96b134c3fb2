"""Redis-backed cache — implements CachePort."""

from datetime import timedelta
from typing import List, Optional

from redis.exceptions import RedisError

from kuma.domain.errors import TransportFailure


class RedisCache:
    """Plain string keys with optional TTL. Expects ``decode_responses=True``."""

    def __init__(self, redis, scan_count: int = 500):
        self._redis = redis
        self._scan_count = scan_count

    async def get(self, key: str) -> Optional[str]:
        try:
            return await self._redis.get(key)
        except RedisError as e:
            raise TransportFailure(f"GET {key} failed: {e}") from e

    async def set(self, key: str, value: str, ttl: Optional[timedelta] = None) -> None:
        try:
            await self._redis.set(key, value, ex=ttl)
        except RedisError as e:
            raise TransportFailure(f"SET {key} failed: {e}") from e

    async def keys_with_prefix(self, prefix: str) -> List[str]:
        pattern = _escape_glob(prefix) + "*"
        try:
            return [key async for key in self._redis.scan_iter(match=pattern, count=self._scan_count)]
        except RedisError as e:
            raise TransportFailure(f"SCAN {pattern} failed: {e}") from e


def _escape_glob(text: str) -> str:
    for ch in ("\\", "*", "?", "[", "]"):
        text = text.replace(ch, "\\" + ch)
    return text
