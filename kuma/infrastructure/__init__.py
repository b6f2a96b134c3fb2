"""Infrastructure layer — logging collaborators."""

from kuma.infrastructure.chat_log import ChatLogger

__all__ = ["ChatLogger"]
