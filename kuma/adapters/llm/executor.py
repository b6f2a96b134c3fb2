"""LLM CLI executors — implement LLMPort for the chat fallback."""

import asyncio
import os
import tempfile
import uuid
from pathlib import Path
from typing import Optional

from kuma.domain.errors import TransportFailure


async def run_cancellable(cmd_args, timeout: float):
    """Run a subprocess; kill it on timeout or cancellation."""
    proc = await asyncio.create_subprocess_exec(
        *cmd_args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except (asyncio.TimeoutError, asyncio.CancelledError):
        try:
            proc.kill()
        except ProcessLookupError:
            pass
        raise
    return proc, stdout, stderr


class ClaudeExecutor:
    """Executes Claude CLI commands."""

    def __init__(self, timeout: float = 120.0):
        self._timeout = timeout

    async def execute(
        self,
        message: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str:
        args = [
            "claude",
            "--print",
            "--session-id", str(uuid.uuid4()),
            "--output-format", "text",
        ]
        if model:
            args.extend(["--model", model])
        if system_prompt:
            args.extend(["--system-prompt", system_prompt])
        args.append(message)

        try:
            proc, stdout, stderr = await run_cancellable(args, timeout=self._timeout)
        except asyncio.TimeoutError as e:
            raise TransportFailure(f"claude timed out ({self._timeout:.0f}s)") from e
        except OSError as e:
            raise TransportFailure(f"claude could not start: {e}") from e

        if proc.returncode != 0:
            raise TransportFailure(f"claude exit code {proc.returncode}: {stderr.decode().strip()}")
        return stdout.decode("utf-8").strip()


class CodexExecutor:
    """Executes Codex CLI commands via `codex exec`."""

    def __init__(self, timeout: float = 180.0):
        self._timeout = timeout

    @staticmethod
    def _compose_prompt(message: str, system_prompt: Optional[str]) -> str:
        if not system_prompt:
            return message
        # `codex exec` has no --system-prompt flag
        return (
            "System instructions:\n"
            f"{system_prompt}\n\n"
            "User message:\n"
            f"{message}"
        )

    async def execute(
        self,
        message: str,
        system_prompt: Optional[str] = None,
        model: Optional[str] = None,
    ) -> str:
        fd, output_path = tempfile.mkstemp(prefix="codex-last-", suffix=".txt")
        os.close(fd)
        out_file = Path(output_path)

        args = ["codex", "exec", "--color", "never", "--output-last-message", output_path]
        if model:
            args.extend(["--model", model])
        args.append(self._compose_prompt(message, system_prompt))

        try:
            proc, stdout, stderr = await run_cancellable(args, timeout=self._timeout)
            if proc.returncode != 0:
                err_text = stderr.decode("utf-8").strip() or stdout.decode("utf-8").strip()
                raise TransportFailure(f"codex exit code {proc.returncode}: {err_text}")

            response = ""
            if out_file.exists():
                response = out_file.read_text(encoding="utf-8").strip()
            if not response:
                response = stdout.decode("utf-8").strip()
            return response
        except asyncio.TimeoutError as e:
            raise TransportFailure(f"codex timed out ({self._timeout:.0f}s)") from e
        except OSError as e:
            raise TransportFailure(f"codex could not start: {e}") from e
        finally:
            out_file.unlink(missing_ok=True)


def create_executor(provider: str, timeout: float = 120.0):
    """Executor for the selected provider, or None when chat is disabled."""
    selected = provider.strip().lower()
    if selected == "none":
        return None
    if selected == "claude":
        return ClaudeExecutor(timeout=timeout)
    if selected == "codex":
        return CodexExecutor(timeout=timeout)
    raise ValueError(f"Unsupported provider: {selected}")
