"""
Status use case — summarize what the ledger holds.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from gitmetrics.core.models.commit import CommitRecord, Ledger
from gitmetrics.core.persistence.ledger_file import LedgerError, load_ledger


@dataclass
class StatusResult:
    """Ledger summary."""

    ledger_path: Path | None = None
    exists: bool = False
    counts: dict[str, int] | None = None
    latest: CommitRecord | None = None
    next_pending: CommitRecord | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": self.error}
        return {
            "ledger_path": str(self.ledger_path),
            "exists": self.exists,
            "counts": self.counts,
            "latest": self.latest.to_json() if self.latest else None,
            "next_pending": self.next_pending.to_json() if self.next_pending else None,
        }


def get_status(ledger_path: Path) -> StatusResult:
    """Load the ledger at ``ledger_path`` and summarize it."""
    result = StatusResult(ledger_path=ledger_path, exists=ledger_path.exists())
    try:
        ledger = load_ledger(ledger_path)
    except LedgerError as e:
        result.error = str(e)
        return result

    result.counts = ledger.counts()
    result.latest = ledger.latest_measured()
    pending = ledger.pending()
    result.next_pending = pending[0] if pending else None
    return result


def series_points(ledger: Ledger, include_unmeasured: bool = False) -> list[dict[str, Any]]:
    """The measured series oldest-first, ready for charting.

    Each point carries the commit id, its timestamp (epoch seconds and
    ISO-8601 UTC), description and size. Unmeasured commits are left out
    unless ``include_unmeasured``, in which case their size is None.
    """
    points = []
    for record in reversed(ledger.commits):
        if record.size is None and not include_unmeasured:
            continue
        points.append({
            "id": record.id,
            "timestamp": record.timestamp,
            "date": datetime.fromtimestamp(record.timestamp, UTC).isoformat(),
            "description": record.description,
            "size": record.size,
            "state": record.state.value,
        })
    return points
