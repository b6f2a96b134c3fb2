"""Default conversational handler — everything that is not a command."""

import sys
from typing import List, Optional

from kuma.domain.models import Request, Response
from kuma.ports.outbound import ChatLogPort, LLMPort


def _log(msg: str):
    print(msg, file=sys.stderr)


class ChatResponder:
    """Replies through an LLM when spoken to.

    Speaks in private channels, or when its name appears in the message.
    Context is the persona, the rules, and the channel's recent chat log.
    """

    def __init__(
        self,
        llm: Optional[LLMPort],
        chat_log: Optional[ChatLogPort] = None,
        bot_name: str = "Kuma",
        persona: str = "",
        rules: Optional[List[str]] = None,
        model: Optional[str] = None,
        history_size: int = 10,
    ):
        self._llm = llm
        self._chat_log = chat_log
        self.bot_name = bot_name
        self.persona = persona
        self._rules: List[str] = rules or []
        self._model = model
        self._history_size = history_size

    def should_respond(self, request: Request) -> bool:
        if self._llm is None:
            return False
        if not request.message or not request.message.strip():
            return False
        if request.channel_is_private:
            return True
        return self.bot_name.lower() in request.message.lower()

    def build_context(self, request: Request) -> str:
        parts = [self.persona] if self.persona else []
        if self._rules:
            parts.append("\n".join(f"- {rule}" for rule in self._rules))

        if self._chat_log and self._history_size > 0:
            history = self._chat_log.recent_messages(
                request.source_system, request.channel_id, self._history_size,
            )
            if history:
                lines = [f"{h.get('username', '?')}: {h.get('message', '')}" for h in history]
                parts.append("Previous conversation:\n" + "\n".join(lines))
        parts.append("Continue naturally.")
        return "\n\n".join(parts)

    async def __call__(self, request: Request) -> Optional[Response]:
        if not self.should_respond(request):
            return None

        _log(f"[chat] responding to {request.username}: {request.message[:80]}")
        reply = await self._llm.execute(
            f"{request.username}: {request.message}",
            system_prompt=self.build_context(request),
            model=self._model,
        )
        reply = (reply or "").strip()
        if not reply:
            return None
        return Response.reply(request, reply)
