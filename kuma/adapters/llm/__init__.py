"""LLM adapters — Claude and Codex CLI executors."""

from kuma.adapters.llm.executor import (
    ClaudeExecutor,
    CodexExecutor,
    create_executor,
    run_cancellable,
)

__all__ = [
    "ClaudeExecutor",
    "CodexExecutor",
    "create_executor",
    "run_cancellable",
]
