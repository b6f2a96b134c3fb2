"""Appends Requests and Responses to capacity-bounded Redis streams."""

import sys
from typing import Awaitable, Callable, Optional

from redis.exceptions import RedisError

from kuma.adapters.bus.codec import encode_request, encode_response
from kuma.adapters.bus.streams import (
    DEFAULT_PREFIX,
    REQUEST_FIELD,
    RESPONSE_FIELD,
    consumer_stream_name,
    stream_name_for_source,
)
from kuma.domain.errors import TransportFailure
from kuma.domain.models import Request, Response


def _log(msg: str):
    print(msg, file=sys.stderr)


class StreamPublisher:
    """XADD with approximate MAXLEN trimming.

    Entries older than the trim horizon are dropped by Redis; readers must
    treat them as unrecoverable.
    """

    def __init__(self, redis, max_length: int = 1000, prefix: str = DEFAULT_PREFIX):
        self._redis = redis
        self._max_length = max_length
        self._prefix = prefix

    async def _append(self, stream: str, field: str, payload: str) -> str:
        try:
            return await self._redis.xadd(
                stream,
                {field: payload},
                maxlen=self._max_length,
                approximate=True,
            )
        except RedisError as e:
            raise TransportFailure(f"XADD {stream} failed: {e}") from e

    async def publish_request(self, request: Request) -> str:
        return await self._append(consumer_stream_name(self._prefix), REQUEST_FIELD, encode_request(request))

    async def publish_response(self, response: Response) -> str:
        stream = stream_name_for_source(response.source_system, self._prefix)
        return await self._append(stream, RESPONSE_FIELD, encode_response(response))


class ResponseForwarder:
    """Inbound dispatch for the core: process a Request, then publish its reply.

    The reply is on its origin's stream before this returns, so the consumer
    only acknowledges the inbound entry once the answer is durable.
    """

    def __init__(self, publisher: StreamPublisher, process: Callable[[Request], Awaitable[Optional[Response]]]):
        self._publisher = publisher
        self._process = process

    async def __call__(self, request: Request) -> Optional[Response]:
        response = await self._process(request)
        if response is None:
            return None
        try:
            await self._publisher.publish_response(response)
        except TransportFailure as e:
            _log(f"[bus] response for {response.source_system.name} dropped: {e}")
        return response
