"""Port interfaces (Hexagonal Architecture)."""

from kuma.ports.inbound import ProcessorListener, RequestSink
from kuma.ports.outbound import (
    BlockListPort,
    CachePort,
    ChatLogPort,
    LLMPort,
    ResponsePublisherPort,
    SearchPort,
)

__all__ = [
    "ProcessorListener",
    "RequestSink",
    "BlockListPort",
    "CachePort",
    "ChatLogPort",
    "LLMPort",
    "ResponsePublisherPort",
    "SearchPort",
]
