"""Redis stream consumer — the bus read loop.

Reads batches through a consumer group and fires the downstream handler for
each decoded entry without awaiting it, so a slow command never holds up the
loop. An entry is acknowledged once its handler task finishes; malformed and
empty entries are acknowledged and skipped. Delivery is at-least-once: on
start the consumer first re-reads its own pending entries.
"""

import asyncio
import sys
from typing import Any, Awaitable, Callable, List, Optional, Set, Tuple

from redis.exceptions import RedisError, ResponseError

from kuma.adapters.bus.codec import decode_request, decode_response
from kuma.adapters.bus.streams import REQUEST_FIELD, RESPONSE_FIELD
from kuma.domain.errors import MalformedInput
from kuma.domain.models import Request, Response


def _log(msg: str):
    print(msg, file=sys.stderr)


class RedisStreamConsumer:
    def __init__(
        self,
        redis,
        stream: str,
        group: str,
        consumer: str,
        field: str,
        decode: Callable[[Any], Any],
        dispatch: Callable[[Any], Awaitable[Any]],
        block_ms: int = 5000,
        batch_size: int = 10,
        error_backoff: float = 1.0,
    ):
        self._redis = redis
        self.stream = stream
        self.group = group
        self.consumer = consumer
        self._field = field
        self._decode = decode
        self._dispatch = dispatch
        self._block_ms = block_ms
        self._batch_size = batch_size
        self._error_backoff = error_backoff
        self._stopping = asyncio.Event()
        self._in_flight: Set[asyncio.Task] = set()
        self._task: Optional[asyncio.Task] = None

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    async def ensure_group(self):
        try:
            await self._redis.xgroup_create(self.stream, self.group, id="$", mkstream=True)
            _log(f"[bus] created group {self.group!r} on {self.stream}")
        except ResponseError as e:
            if "BUSYGROUP" not in str(e):
                raise

    async def start(self):
        """Run the read loop in a background task."""
        await self.ensure_group()
        self._stopping.clear()
        self._task = asyncio.create_task(self._run())

    def stop(self):
        """Stop reading. In-flight handlers are left to finish or be abandoned."""
        self._stopping.set()
        if self._task and not self._task.done():
            self._task.cancel()

    async def wait_stopped(self):
        if self._task is None:
            return
        try:
            await self._task
        except asyncio.CancelledError:
            pass

    async def run(self):
        """Run the read loop in the caller's task until ``stop``."""
        await self.ensure_group()
        self._stopping.clear()
        await self._run()

    async def _run(self):
        _log(f"[bus] {self.consumer} reading {self.stream} (group {self.group})")
        # Own pending entries first (cursor walks up from "0"), then new ones (">")
        cursor = "0"
        while not self._stopping.is_set():
            try:
                entry_ids = await self.read_once(cursor)
            except asyncio.CancelledError:
                break
            except RedisError as e:
                _log(f"[bus] read from {self.stream} failed: {e}")
                await asyncio.sleep(self._error_backoff)
                continue
            if cursor != ">":
                cursor = entry_ids[-1] if entry_ids else ">"
        _log(f"[bus] {self.consumer} stopped reading {self.stream}")

    async def read_once(self, cursor: str = ">") -> List[str]:
        """Read one batch and fire handlers. Returns the entry ids read."""
        reply = await self._redis.xreadgroup(
            self.group,
            self.consumer,
            {self.stream: cursor},
            count=self._batch_size,
            block=self._block_ms if cursor == ">" else None,
        )
        entries = _entries_from_reply(reply)
        for entry_id, fields in entries:
            self._handle_entry(entry_id, fields)
        return [entry_id for entry_id, _ in entries]

    def _handle_entry(self, entry_id: str, fields: dict):
        raw = (fields or {}).get(self._field)
        try:
            payload = self._decode(raw)
        except MalformedInput as e:
            _log(f"[bus] skipping entry {entry_id} on {self.stream}: {e}")
            self._spawn_ack(entry_id)
            return

        task = asyncio.ensure_future(self._dispatch(payload))
        self._in_flight.add(task)

        def _done(t: asyncio.Task):
            self._in_flight.discard(t)
            if not t.cancelled() and t.exception() is not None:
                _log(f"[bus] handler for {entry_id} failed: {t.exception()!r}")
            self._spawn_ack(entry_id)

        task.add_done_callback(_done)

    def _spawn_ack(self, entry_id: str):
        task = asyncio.ensure_future(self._ack(entry_id))
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)

    async def _ack(self, entry_id: str):
        try:
            await self._redis.xack(self.stream, self.group, entry_id)
        except RedisError as e:
            _log(f"[bus] ack of {entry_id} failed (will be re-delivered): {e}")

    async def drain(self):
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight), return_exceptions=True)


def _entries_from_reply(reply) -> List[Tuple[str, dict]]:
    """Flatten an XREADGROUP reply (RESP2 list or RESP3 dict) into entries."""
    if not reply:
        return []
    streams = reply.items() if isinstance(reply, dict) else reply
    entries: List[Tuple[str, dict]] = []
    for _, stream_entries in streams:
        if isinstance(reply, dict) and len(stream_entries) == 1 and isinstance(stream_entries[0], list):
            # RESP3 wraps each stream's entries in a list of one
            stream_entries = stream_entries[0]
        for entry in stream_entries or []:
            entry_id, fields = entry[0], entry[1]
            entries.append((entry_id, fields or {}))
    return entries


def request_consumer(
    redis,
    stream: str,
    group: str,
    consumer: str,
    process: Callable[[Request], Awaitable[Any]],
    **kwargs,
) -> RedisStreamConsumer:
    """Inbound side of the core: stream → processor."""
    return RedisStreamConsumer(
        redis, stream, group, consumer, REQUEST_FIELD, decode_request, process, **kwargs,
    )


def response_consumer(
    redis,
    stream: str,
    group: str,
    consumer: str,
    deliver: Callable[[Response], Awaitable[None]],
    **kwargs,
) -> RedisStreamConsumer:
    """Front-end side: own outbound stream → delivery."""
    return RedisStreamConsumer(
        redis, stream, group, consumer, RESPONSE_FIELD, decode_response, deliver, **kwargs,
    )
