"""Stream naming — derived from source systems, no lookup table."""

from kuma.domain.models import SourceSystem

DEFAULT_PREFIX = "kumakaini"
REQUEST_FIELD = "request"
RESPONSE_FIELD = "response"


def consumer_stream_name(prefix: str = DEFAULT_PREFIX) -> str:
    """Shared inbound stream every bridged front end appends Requests to."""
    return f"{prefix}:consumer"


def stream_name_for_source(source_system: SourceSystem, prefix: str = DEFAULT_PREFIX) -> str:
    """Outbound stream tailed by the front end of ``source_system``."""
    return f"{prefix}:{source_system.name.lower()}"
