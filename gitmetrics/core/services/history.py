"""
Commit history — enumerate the newest commits of a branch.

Thin wrapper over the git adapter's ``log`` operation that turns its
``%H %ct %s`` lines into CommitRecords, newest-first. Any failure here
is fatal to the run: without the upstream window there is nothing to
merge against.
"""

from __future__ import annotations

import logging
from pathlib import Path

from gitmetrics.adapters.registry import AdapterRegistry
from gitmetrics.core.models.action import Action
from gitmetrics.core.models.commit import CommitRecord

logger = logging.getLogger(__name__)


class HistoryError(Exception):
    """Raised when the commit history cannot be enumerated."""


def parse_log(output: str) -> list[CommitRecord]:
    """Parse ``git log --pretty=format:'%H %ct %s'`` output.

    Raises:
        HistoryError: On a line that doesn't have a hash and a timestamp.
    """
    commits: list[CommitRecord] = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        parts = line.split(" ", 2)
        if len(parts) < 2:
            raise HistoryError(f"Unexpected git log line: {line!r}")
        try:
            timestamp = int(parts[1])
        except ValueError as e:
            raise HistoryError(f"Bad timestamp in git log line: {line!r}") from e
        commits.append(
            CommitRecord(
                id=parts[0],
                timestamp=timestamp,
                description=parts[2] if len(parts) == 3 else "",
            )
        )
    return commits


def fetch_commits(
    registry: AdapterRegistry,
    working_dir: Path,
    branch: str = "main",
    window: int = 500,
) -> list[CommitRecord]:
    """Fetch up to ``window`` newest commits of ``branch``, newest-first.

    Raises:
        HistoryError: If git fails or its output can't be parsed.
    """
    action = Action(
        id=f"log:{branch}",
        adapter="git",
        params={"operation": "log", "branch": branch, "count": window},
    )
    receipt = registry.execute_action(action, working_dir=str(working_dir))
    if not receipt.ok:
        raise HistoryError(f"Cannot list commits of '{branch}' in {working_dir}: {receipt.error}")

    commits = parse_log(receipt.output)
    logger.info("Fetched %d commits from %s (%s)", len(commits), working_dir, branch)
    return commits
