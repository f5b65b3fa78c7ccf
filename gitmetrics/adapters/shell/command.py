"""
Shell adapter — runs the measurement command in the checked-out tree.

The command is one shell line supplied by the operator, for example
``make -s && stat -c %s build/app``. Its stdout is returned trimmed
but otherwise uninterpreted; turning it into a number is the engine's
job. A nonzero exit, a timeout or a failure to spawn all come back as
failed receipts with whatever the command printed so far.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
import time
from pathlib import Path

from gitmetrics.adapters.base import Adapter, ExecutionContext
from gitmetrics.core.models.action import Receipt

logger = logging.getLogger(__name__)


def _text(stream: str | bytes | None) -> str:
    if stream is None:
        return ""
    if isinstance(stream, bytes):
        stream = stream.decode("utf-8", errors="replace")
    return stream.strip()


class ShellCommandAdapter(Adapter):
    """Action params: ``command`` (required), ``timeout`` in seconds."""

    @property
    def name(self) -> str:
        return "shell"

    def is_available(self) -> bool:
        return shutil.which("sh") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        if not context.param("command"):
            return False, "Missing required param: 'command'"
        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        command: str = context.param("command")
        timeout: int | None = context.param("timeout")
        action_id = context.action.id
        meta = {"command": command}

        logger.debug("$ %s  (in %s)", command, context.working_dir)
        started = time.monotonic()
        try:
            proc = subprocess.run(
                command,
                shell=True,
                cwd=context.working_dir,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as e:
            return Receipt.failure(
                self.name,
                action_id,
                f"Command timed out after {timeout}s",
                output=_text(e.stdout),
                stderr=_text(e.stderr),
                metadata=meta,
            )
        except OSError as e:
            return Receipt.failure(self.name, action_id, f"Cannot run command: {e}", metadata=meta)

        elapsed_ms = int((time.monotonic() - started) * 1000)
        fields = {
            "output": _text(proc.stdout),
            "stderr": _text(proc.stderr),
            "duration_ms": elapsed_ms,
            "metadata": {**meta, "return_code": proc.returncode},
        }
        if proc.returncode != 0:
            return Receipt.failure(
                self.name, action_id, f"Command exited with code {proc.returncode}", **fields
            )
        return Receipt.success(self.name, action_id, **fields)
