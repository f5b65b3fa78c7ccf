"""
Reset use case — put a commit back to pending.

For the operator who marked a commit broken by mistake, or who fixed the
measurement command and wants a value re-taken. The next run evaluates
the record again.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gitmetrics.core.models.commit import CommitRecord
from gitmetrics.core.persistence.ledger_file import LedgerError, load_ledger, save_ledger

logger = logging.getLogger(__name__)


@dataclass
class ResetResult:
    record: CommitRecord | None = None
    previous_state: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        if self.error:
            return {"error": self.error}
        assert self.record is not None
        return {
            "id": self.record.id,
            "previous_state": self.previous_state,
            "state": self.record.state.value,
        }


def reset_commit(ledger_path: Path, prefix: str) -> ResetResult:
    """Clear measurement and outcome of the commit whose id starts with ``prefix``."""
    result = ResetResult()
    if not prefix:
        result.error = "Commit id must not be empty."
        return result

    try:
        ledger = load_ledger(ledger_path)
    except LedgerError as e:
        result.error = str(e)
        return result

    matches = ledger.find_prefix(prefix)
    if not matches:
        result.error = f"No commit matching '{prefix}' in {ledger_path}."
        return result
    if len(matches) > 1:
        ids = ", ".join(r.short_id for r in matches[:5])
        result.error = f"'{prefix}' is ambiguous: {ids}"
        return result

    record = matches[0]
    result.previous_state = record.state.value
    record.reset()
    try:
        save_ledger(ledger, ledger_path)
    except OSError as e:
        result.error = f"Cannot write ledger {ledger_path}: {e}"
        return result

    logger.info("Reset %s (was %s)", record.id, result.previous_state)
    result.record = record
    return result
