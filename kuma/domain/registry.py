"""Command registry — the closed, immutable catalog of invocable commands."""

from dataclasses import dataclass
from types import MappingProxyType
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from kuma.domain.models import Request, Response, UserAuthority

CommandHandler = Callable[[Request], Awaitable[Optional[Response]]]


@dataclass(frozen=True)
class CommandDescriptor:
    names: Tuple[str, ...]
    handler: CommandHandler
    min_authority: UserAuthority = UserAuthority.USER
    nsfw: bool = False  # requires a channel that allows unrestricted content
    description: str = ""

    @property
    def name(self) -> str:
        return self.names[0]

    def permits(self, request: Request) -> bool:
        """Authority and content policy, checked independently."""
        if request.authority < self.min_authority:
            return False
        if self.nsfw and not request.channel_is_nsfw:
            return False
        return True


class CommandRegistry:
    """Case-insensitive name → descriptor lookup, fixed at construction."""

    def __init__(self, descriptors: Iterable[CommandDescriptor]):
        table: Dict[str, CommandDescriptor] = {}
        ordered: List[CommandDescriptor] = []
        for descriptor in descriptors:
            if not descriptor.names:
                raise ValueError("command descriptor has no names")
            for raw in descriptor.names:
                name = raw.strip().lower()
                if not name or any(ch.isspace() for ch in name):
                    raise ValueError(f"invalid command name: {raw!r}")
                if name in table:
                    raise ValueError(f"duplicate command name: {name!r}")
                table[name] = descriptor
            ordered.append(descriptor)
        self._table = MappingProxyType(table)
        self._descriptors: Tuple[CommandDescriptor, ...] = tuple(ordered)

    def lookup(self, name: str) -> Optional[CommandDescriptor]:
        """Return the descriptor for ``name``, or None to fall through."""
        if not name:
            return None
        return self._table.get(name.lower())

    def __contains__(self, name: str) -> bool:
        return self.lookup(name) is not None

    def __len__(self) -> int:
        return len(self._descriptors)

    @property
    def descriptors(self) -> Tuple[CommandDescriptor, ...]:
        return self._descriptors

    def names(self) -> List[str]:
        return sorted(self._table)
