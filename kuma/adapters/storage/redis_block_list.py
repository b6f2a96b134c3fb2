"""Block-list store over a Redis set — implements BlockListPort.

Shared by every consumer process; set semantics give term uniqueness.
"""

from typing import Set

from redis.exceptions import RedisError

from kuma.domain.errors import TransportFailure

DEFAULT_KEY = "kumakaini:danbooru:blocklist"


class RedisBlockList:
    def __init__(self, redis, key: str = DEFAULT_KEY):
        self._redis = redis
        self._key = key

    async def list_blocked_terms(self) -> Set[str]:
        try:
            return set(await self._redis.smembers(self._key))
        except RedisError as e:
            raise TransportFailure(f"SMEMBERS {self._key} failed: {e}") from e

    async def add(self, term: str) -> bool:
        """True if the term was not blocked before."""
        term = term.strip()
        if not term:
            return False
        try:
            return bool(await self._redis.sadd(self._key, term))
        except RedisError as e:
            raise TransportFailure(f"SADD {self._key} failed: {e}") from e

    async def remove(self, term: str) -> bool:
        """True if the term was blocked."""
        try:
            return bool(await self._redis.srem(self._key, term.strip()))
        except RedisError as e:
            raise TransportFailure(f"SREM {self._key} failed: {e}") from e
