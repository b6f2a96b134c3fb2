"""Domain data models — pure Python dataclasses."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import IntEnum
from typing import Optional, Sequence, Tuple


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SourceSystem(IntEnum):
    """Front-end surface a message came from (and must be answered on)."""

    DISCORD = 0
    TELEGRAM = 1
    TWITCH = 2


class UserAuthority(IntEnum):
    """Ordered permission level of a requester."""

    USER = 0
    MODERATOR = 1
    ADMINISTRATOR = 2


DEFAULT_COMMAND_PREFIXES: Tuple[str, ...] = ("!", "/")


def parse_command(message: Optional[str], prefixes: Sequence[str] = DEFAULT_COMMAND_PREFIXES) -> Tuple[str, Tuple[str, ...]]:
    """Split a raw message into (command name, args).

    The command name is empty when the first token does not start with one of
    ``prefixes``. A Telegram-style ``@botname`` suffix is dropped.
    """
    if not message:
        return "", ()
    tokens = message.split()
    if not tokens:
        return "", ()

    head = tokens[0]
    prefix = next((p for p in prefixes if p and head.startswith(p)), None)
    if prefix is None:
        return "", ()

    name = head[len(prefix):].split("@", 1)[0].lower()
    return name, tuple(tokens[1:])


@dataclass(frozen=True)
class Request:
    """Normalized inbound chat message. Built once by a front end."""

    username: str
    message: str
    source_system: SourceSystem
    message_id: Optional[int] = None
    authority: UserAuthority = UserAuthority.USER
    channel_id: Optional[int] = None
    channel_is_private: bool = False
    channel_is_nsfw: bool = False
    timestamp: datetime = field(default_factory=_utcnow)

    @property
    def command_args(self) -> Tuple[str, ...]:
        """Every token after the first, in order."""
        return tuple((self.message or "").split()[1:])


@dataclass(frozen=True)
class ResponseImage:
    url: str
    source: str  # page the image was taken from
    description: str
    referrer: str  # provider name, e.g. "danbooru.donmai.us"


@dataclass(frozen=True)
class Response:
    """Outbound reply. Carries its own routing fields."""

    source_system: SourceSystem
    channel_id: Optional[int] = None
    message: Optional[str] = None
    image: Optional[ResponseImage] = None
    timestamp: datetime = field(default_factory=_utcnow)

    @classmethod
    def reply(
        cls,
        request: Request,
        message: Optional[str] = None,
        image: Optional[ResponseImage] = None,
    ) -> "Response":
        return cls(
            source_system=request.source_system,
            channel_id=request.channel_id,
            message=message,
            image=image,
        )

    @property
    def is_empty(self) -> bool:
        return not self.message and self.image is None


@dataclass
class SearchItem:
    """One post returned by the external search provider."""

    id: int
    file_url: Optional[str] = None
    tag_string: Optional[str] = None
    tag_string_character: Optional[str] = None
    tag_string_copyright: Optional[str] = None
    tag_string_artist: Optional[str] = None
