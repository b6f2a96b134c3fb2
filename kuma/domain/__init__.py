"""Domain layer — pure Python, no framework dependencies."""

from kuma.domain.errors import (
    HandlerFault,
    KumaError,
    MalformedInput,
    NotFound,
    PolicyDenied,
    TransportFailure,
)
from kuma.domain.models import (
    Request,
    Response,
    ResponseImage,
    SearchItem,
    SourceSystem,
    UserAuthority,
)
from kuma.domain.processor import KumaProcessor
from kuma.domain.registry import CommandDescriptor, CommandRegistry
from kuma.domain.retrieval import DedupRandomRetriever

__all__ = [
    "HandlerFault",
    "KumaError",
    "MalformedInput",
    "NotFound",
    "PolicyDenied",
    "TransportFailure",
    "Request",
    "Response",
    "ResponseImage",
    "SearchItem",
    "SourceSystem",
    "UserAuthority",
    "KumaProcessor",
    "CommandDescriptor",
    "CommandRegistry",
    "DedupRandomRetriever",
]
