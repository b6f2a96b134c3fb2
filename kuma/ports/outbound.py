"""Outbound ports — interfaces for external collaborators."""

from datetime import timedelta
from typing import List, Optional, Protocol, Sequence, Set, runtime_checkable

from kuma.domain.models import Request, Response, SearchItem, SourceSystem


@runtime_checkable
class CachePort(Protocol):
    """Key/value store with TTL. Also serves as the dedup ledger."""

    async def get(self, key: str) -> Optional[str]: ...
    async def set(self, key: str, value: str, ttl: Optional[timedelta] = None) -> None: ...
    async def keys_with_prefix(self, prefix: str) -> List[str]: ...


@runtime_checkable
class BlockListPort(Protocol):
    """Mutable set of banned search terms."""

    async def list_blocked_terms(self) -> Set[str]: ...
    async def add(self, term: str) -> bool: ...
    async def remove(self, term: str) -> bool: ...


@runtime_checkable
class SearchPort(Protocol):
    """Paginated, tag-filtered content search."""

    async def search(self, tags: Sequence[str], page: int, limit: int) -> List[SearchItem]: ...


@runtime_checkable
class LLMPort(Protocol):
    """Interface for LLM execution backends."""

    async def execute(
        self,
        message: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str: ...


@runtime_checkable
class ChatLogPort(Protocol):
    """Durable chat and error log."""

    async def log_request(self, request: Request) -> None: ...
    async def log_response(self, request: Request, response: Response) -> None: ...
    def log_exception(self, exc: BaseException, context: str) -> None: ...
    def recent_messages(
        self, source_system: SourceSystem, channel_id: Optional[int], limit: int,
    ) -> List[dict]: ...


@runtime_checkable
class ResponsePublisherPort(Protocol):
    """Core → bus."""

    async def publish_response(self, response: Response) -> None: ...
