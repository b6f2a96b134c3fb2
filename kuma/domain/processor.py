"""Request/Response pipeline — resolve, gate, execute, notify.

Pure core logic: no Discord, Redis or HTTP imports. Front ends hand Requests
in through ``submit`` (fire-and-forget) or ``process`` (awaitable), and hear
back through ProcessorListener subscriptions.
"""

import asyncio
import sys
from dataclasses import replace
from typing import Awaitable, Callable, List, Optional, Sequence, Set

from kuma.domain.errors import FAILURE_TEXT, HandlerFault, NotFound, PolicyDenied
from kuma.domain.models import DEFAULT_COMMAND_PREFIXES, Request, Response, parse_command
from kuma.domain.registry import CommandDescriptor, CommandRegistry
from kuma.ports.inbound import ProcessorListener
from kuma.ports.outbound import ChatLogPort

DefaultHandler = Callable[[Request], Awaitable[Optional[Response]]]


def _log(msg: str):
    print(msg, file=sys.stderr)


class KumaProcessor:
    """Turns one Request into at most one Response.

    Stateless across requests apart from the immutable registry. Chat logging
    and listener notifications run as background tasks so a slow log never
    delays the reply.
    """

    def __init__(
        self,
        registry: CommandRegistry,
        default_handler: Optional[DefaultHandler] = None,
        chat_log: Optional[ChatLogPort] = None,
        command_prefixes: Sequence[str] = DEFAULT_COMMAND_PREFIXES,
    ):
        self._registry = registry
        self._default_handler = default_handler
        self._chat_log = chat_log
        self._prefixes = tuple(command_prefixes)
        self._listeners: List[ProcessorListener] = []
        self._background: Set[asyncio.Task] = set()

    @property
    def registry(self) -> CommandRegistry:
        return self._registry

    def subscribe(self, listener: ProcessorListener):
        self._listeners.append(listener)

    def unsubscribe(self, listener: ProcessorListener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    def resolve(self, request: Request) -> Optional[CommandDescriptor]:
        """Registry match for the request's leading token, or None."""
        name, _ = parse_command(request.message, self._prefixes)
        return self._registry.lookup(name)

    @staticmethod
    def check_policy(request: Request, descriptor: CommandDescriptor):
        """Raise PolicyDenied unless the request may run ``descriptor``.

        Content policy is enforced regardless of authority.
        """
        if request.authority < descriptor.min_authority:
            raise PolicyDenied(
                f"{descriptor.name!r} needs {descriptor.min_authority.name}, "
                f"{request.username} is {request.authority.name}"
            )
        if descriptor.nsfw and not request.channel_is_nsfw:
            raise PolicyDenied(f"{descriptor.name!r} is not allowed in channel {request.channel_id}")

    def submit(self, request: Request) -> None:
        """Fire-and-forget entry point for front ends."""
        self._spawn(self.process(request), f"process request from {request.username}")

    async def process(self, request: Request) -> Optional[Response]:
        if self._chat_log:
            self._spawn(self._chat_log.log_request(request), "log request")

        descriptor = self.resolve(request)
        try:
            if descriptor is not None:
                self.check_policy(request, descriptor)
        except PolicyDenied as e:
            _log(f"[processor] denied: {e}")
            response: Optional[Response] = Response.reply(request, e.user_message)
        else:
            response = await self._execute(request, descriptor)

        if response is None or response.is_empty:
            return None

        # Routing fields always come from the originating request
        response = replace(
            response,
            source_system=request.source_system,
            channel_id=request.channel_id,
        )

        for listener in list(self._listeners):
            self._spawn(listener.on_responded(response), "responded listener")
        if self._chat_log:
            self._spawn(self._chat_log.log_response(request, response), "log response")
        return response

    async def _execute(self, request: Request, descriptor: Optional[CommandDescriptor]) -> Optional[Response]:
        if descriptor is None:
            handler = self._default_handler
            command = ""
        else:
            handler = descriptor.handler
            command = descriptor.name
        if handler is None:
            return None
        if descriptor is None and not self._default_accepts(request):
            return None

        for listener in list(self._listeners):
            self._spawn(listener.on_processing(request.channel_id), "processing listener")

        try:
            return await handler(request)
        except NotFound as e:
            return Response.reply(request, e.user_message)
        except Exception as e:
            fault = HandlerFault(command, e)
            _log(f"[processor] {fault}")
            if self._chat_log:
                try:
                    self._chat_log.log_exception(
                        e, f"{fault} | [{request.source_system.name}] {request.username}: {request.message}"
                    )
                except Exception as log_err:
                    _log(f"[processor] error log failed: {log_err}")
            return Response.reply(request, FAILURE_TEXT)

    def _default_accepts(self, request: Request) -> bool:
        """Ask the default handler whether it will answer before signalling."""
        should_respond = getattr(self._default_handler, "should_respond", None)
        if should_respond is None:
            return True
        return bool(should_respond(request))

    def _spawn(self, coro: Awaitable, label: str):
        task = asyncio.ensure_future(coro)
        self._background.add(task)

        def _done(t: asyncio.Task):
            self._background.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc is not None:
                _log(f"[processor] {label} failed: {exc!r}")

        task.add_done_callback(_done)

    async def drain(self):
        """Wait for in-flight background work (requests, logs, listeners)."""
        while self._background:
            await asyncio.gather(*list(self._background), return_exceptions=True)
