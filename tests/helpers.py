"""
Test helpers — record builders and a scratch git repository.
"""

from __future__ import annotations

import os
import shutil
import subprocess
from pathlib import Path

import pytest

from gitmetrics.core.models.commit import CommitRecord

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git not installed")


def make_commit(
    commit_id: str,
    timestamp: int = 0,
    size: float | None = None,
    outcome: str | None = None,
    description: str | None = None,
) -> CommitRecord:
    """Build a CommitRecord, optionally already measured or flagged."""
    record = CommitRecord(
        id=commit_id,
        timestamp=timestamp,
        description=description if description is not None else f"msg {commit_id}",
        outcome=outcome,
    )
    if size is not None:
        record.record_measurement(size)
    return record


def git(repo: Path, *args: str, date: str | None = None) -> str:
    """Run git in ``repo`` with a fixed identity."""
    env = {
        **os.environ,
        "GIT_AUTHOR_NAME": "Test",
        "GIT_AUTHOR_EMAIL": "test@example.com",
        "GIT_COMMITTER_NAME": "Test",
        "GIT_COMMITTER_EMAIL": "test@example.com",
    }
    if date is not None:
        env["GIT_AUTHOR_DATE"] = date
        env["GIT_COMMITTER_DATE"] = date
    result = subprocess.run(
        ["git", *args],
        cwd=repo,
        env=env,
        capture_output=True,
        text=True,
        check=True,
    )
    return result.stdout.strip()


def make_git_repo(root: Path, contents: list[str]) -> Path:
    """Create a repo on branch 'main' with one commit per entry of ``contents``.

    Commit i (1-based) writes ``contents[i-1]`` to size.txt, has subject
    "commit i" and committer date i * 1000.
    """
    repo = root / "repo"
    repo.mkdir()
    git(repo, "init", "--quiet")
    git(repo, "symbolic-ref", "HEAD", "refs/heads/main")
    for i, text in enumerate(contents, start=1):
        (repo / "size.txt").write_text(text)
        git(repo, "add", "size.txt")
        git(repo, "commit", "--quiet", "-m", f"commit {i}", date=f"@{i * 1000} +0000")
    return repo


def head_ids(repo: Path) -> list[str]:
    """Commit ids of 'main', newest-first."""
    return git(repo, "log", "--pretty=format:%H", "main").splitlines()
