"""help / ping."""

from typing import List, Optional

from kuma.domain.models import Request, Response
from kuma.domain.registry import CommandDescriptor, CommandRegistry


class GeneralCommands:
    def __init__(self, prefix: str = "!"):
        self._prefix = prefix
        # Bound by build_registry once the catalog exists
        self.registry: Optional[CommandRegistry] = None

    def descriptors(self) -> List[CommandDescriptor]:
        return [
            CommandDescriptor(("help", "commands"), self.help,
                              description="List the commands you can use here."),
            CommandDescriptor(("ping",), self.ping, description="Pong!"),
        ]

    async def ping(self, request: Request) -> Response:
        return Response.reply(request, "Pong!")

    async def help(self, request: Request) -> Response:
        if self.registry is None:
            return Response.reply(request, "No commands available.")

        lines = []
        for descriptor in self.registry.descriptors:
            if not descriptor.permits(request):
                continue
            names = " / ".join(f"{self._prefix}{n}" for n in descriptor.names)
            lines.append(f"{names} - {descriptor.description}" if descriptor.description else names)
        return Response.reply(request, "\n".join(lines))
