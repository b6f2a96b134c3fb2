"""Inbound ports — how front ends talk to the core."""

from typing import Optional, Protocol, runtime_checkable

from kuma.domain.models import Request, Response


@runtime_checkable
class RequestSink(Protocol):
    """Front end → core. Fire-and-forget."""

    def submit(self, request: Request) -> None: ...


@runtime_checkable
class ProcessorListener(Protocol):
    """Lifecycle signals a front end may subscribe to."""

    async def on_processing(self, channel_id: Optional[int]) -> None: ...
    async def on_responded(self, response: Response) -> None: ...
