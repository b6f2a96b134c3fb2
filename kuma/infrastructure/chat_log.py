"""Chat and error logging — implements ChatLogPort."""

import sys
import traceback
from datetime import datetime, timezone
from typing import List, Optional

from kuma.adapters.storage.json_store import JsonLineStorage
from kuma.domain.models import Request, Response, SourceSystem

CHAT_KEY = "chat_logs"
ERROR_KEY = "error_logs"


def _log(msg: str):
    print(msg, file=sys.stderr)


class ChatLogger:
    """Persists requests, responses and faults as JSON lines.

    Storage failures are reported on stderr and never raised to the caller.
    """

    def __init__(self, storage: JsonLineStorage, bot_name: str = "KumaKaiNi"):
        self._storage = storage
        self.bot_name = bot_name

    def _write(self, key: str, record: dict):
        try:
            self._storage.append(key, record)
        except Exception as e:
            _log(f"[chat_log] failed to write {key}: {e}")

    async def log_request(self, request: Request) -> None:
        if not request.message:
            return
        _log(f"[{request.source_system.name}] {request.username}: {request.message}")
        self._write(CHAT_KEY, {
            "timestamp": request.timestamp.isoformat(),
            "source_system": request.source_system.name,
            "message": request.message,
            "message_id": request.message_id,
            "username": request.username,
            "channel_id": request.channel_id,
            "private": request.channel_is_private,
        })

    async def log_response(self, request: Request, response: Response) -> None:
        text = response.message
        if not text and response.image is not None:
            image = response.image
            text = f"{image.referrer}\n{image.description}\n{image.url}\n{image.source}"
        if not text:
            return
        _log(f"[{response.source_system.name}] {self.bot_name}: {text}")
        self._write(CHAT_KEY, {
            "timestamp": response.timestamp.isoformat(),
            "source_system": response.source_system.name,
            "message": text,
            "message_id": None,
            "username": self.bot_name,
            "channel_id": response.channel_id,
            "private": request.channel_is_private,
        })

    def log_exception(self, exc: BaseException, context: str) -> None:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        _log(f"[error] {context}\n{stack}")
        self._write(ERROR_KEY, {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "type": type(exc).__name__,
            "message": str(exc),
            "stack_trace": stack,
            "context": context,
        })

    def recent_messages(
        self,
        source_system: SourceSystem,
        channel_id: Optional[int],
        limit: int,
    ) -> List[dict]:
        """Last ``limit`` chat lines of one channel, oldest first."""
        if limit <= 0:
            return []
        try:
            # Over-read: the file interleaves every channel
            records = self._storage.tail(CHAT_KEY, limit * 20)
        except Exception as e:
            _log(f"[chat_log] failed to read {CHAT_KEY}: {e}")
            return []
        matching = [
            r for r in records
            if r.get("source_system") == source_system.name and r.get("channel_id") == channel_id
        ]
        return matching[-limit:]
