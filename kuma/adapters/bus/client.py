"""Bus-side client for out-of-process front ends.

Mirrors the embedded processor's surface: ``submit`` a Request, subscribe to
hear Responses. Only ``on_responded`` is delivered; the processing-started
signal does not cross the bus.
"""

import asyncio
import sys
from typing import List

from kuma.adapters.bus.consumer import RedisStreamConsumer, response_consumer
from kuma.adapters.bus.publisher import StreamPublisher
from kuma.adapters.bus.streams import DEFAULT_PREFIX, stream_name_for_source
from kuma.domain.errors import TransportFailure
from kuma.domain.models import Request, Response, SourceSystem
from kuma.ports.inbound import ProcessorListener


def _log(msg: str):
    print(msg, file=sys.stderr)


class BusKumaClient:
    def __init__(
        self,
        redis,
        source_system: SourceSystem,
        group: str,
        consumer: str,
        prefix: str = DEFAULT_PREFIX,
        max_length: int = 1000,
        block_ms: int = 5000,
        batch_size: int = 10,
    ):
        self.source_system = source_system
        self._publisher = StreamPublisher(redis, max_length=max_length, prefix=prefix)
        self._listeners: List[ProcessorListener] = []
        self._pending: set = set()
        self.consumer: RedisStreamConsumer = response_consumer(
            redis,
            stream_name_for_source(source_system, prefix),
            group,
            consumer,
            self._deliver,
            block_ms=block_ms,
            batch_size=batch_size,
        )

    def subscribe(self, listener: ProcessorListener):
        self._listeners.append(listener)

    def submit(self, request: Request) -> None:
        task = asyncio.ensure_future(self._publish(request))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _publish(self, request: Request):
        try:
            await self._publisher.publish_request(request)
        except TransportFailure as e:
            _log(f"[bus] request from {request.username} dropped: {e}")

    async def drain(self):
        """Wait for queued request publishes."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    async def _deliver(self, response: Response):
        if response.source_system != self.source_system:
            _log(f"[bus] ignoring response for {response.source_system.name}")
            return
        for listener in list(self._listeners):
            try:
                await listener.on_responded(response)
            except Exception as e:
                _log(f"[bus] listener failed: {e!r}")

    async def run(self):
        """Tail this front end's outbound stream until ``stop``."""
        await self.consumer.run()

    def stop(self):
        self.consumer.stop()
