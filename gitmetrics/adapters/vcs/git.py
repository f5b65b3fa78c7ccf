"""
Git adapter — the two version-control steps the engine needs.

    log       newest commits of a branch, one ``LOG_FORMAT`` line each
    checkout  move the working tree to a commit

A nonzero git exit (unknown branch, local changes in the way, not a
repository) is returned as a failed receipt with git's stderr.
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path

from gitmetrics.adapters.base import Adapter, ExecutionContext
from gitmetrics.core.models.action import Receipt

logger = logging.getLogger(__name__)

# hash, committer timestamp, subject; split on the first two spaces
LOG_FORMAT = "%H %ct %s"

GIT_TIMEOUT = 120

OPERATIONS = ("checkout", "log")


class GitAdapter(Adapter):
    """Action params.

    log:      ``branch`` (default 'main'), ``count`` (default 500)
    checkout: ``commit``
    """

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        op = context.param("operation", "")
        if op not in OPERATIONS:
            return False, f"Unknown operation '{op}'. Valid: {', '.join(OPERATIONS)}"
        if op == "checkout" and not context.param("commit"):
            return False, "Missing required param: 'commit' for checkout"
        if not Path(context.working_dir).is_dir():
            return False, f"Working directory does not exist: {context.working_dir}"
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        op = context.param("operation")
        if op == "log":
            branch = context.param("branch", "main")
            count = context.param("count", 500)
            args = ["log", f"--pretty=format:{LOG_FORMAT}", "-n", str(count), branch, "--"]
        else:
            args = ["checkout", "--quiet", context.param("commit")]

        try:
            proc = subprocess.run(
                ["git", *args],
                cwd=context.working_dir,
                capture_output=True,
                text=True,
                timeout=GIT_TIMEOUT,
            )
        except (OSError, subprocess.TimeoutExpired) as e:
            return Receipt.failure(self.name, context.action.id, f"git {op} failed: {e}")

        stderr = proc.stderr.strip()
        if proc.returncode != 0:
            reason = stderr or f"exit code {proc.returncode}"
            return Receipt.failure(
                self.name, context.action.id, f"git {op} failed: {reason}", stderr=stderr
            )

        logger.debug("git %s ok in %s", " ".join(args[:3]), context.working_dir)
        return Receipt.success(self.name, context.action.id, proc.stdout.strip(), stderr=stderr)
