"""KumaKaiNi — chat bot core: command pipeline, stream bus, image search."""

from kuma.config import __version__, AppConfig
from kuma.domain.models import Request, Response, ResponseImage, SourceSystem, UserAuthority
from kuma.domain.processor import KumaProcessor

__all__ = [
    "__version__",
    "AppConfig",
    "Request",
    "Response",
    "ResponseImage",
    "SourceSystem",
    "UserAuthority",
    "KumaProcessor",
]
