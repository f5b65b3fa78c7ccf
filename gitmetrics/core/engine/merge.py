"""
Ledger merge — reconcile freshly fetched commits with the stored ledger.

History can be rewritten between runs (force-push, rebase), so this is
not a plain union. The merge walks the fetched commits newest-first
with a forward-only cursor into the stored records:

    fetched:  C  A  B
    stored:   A  B  X  Y
              ^ cursor

    C → not found past the cursor       → new, unmeasured record
    A → found at 0                      → keep stored A, cursor = 1
    B → found at 1                      → keep stored B, cursor = 2
    end                                 → X, Y appended (retained)

Records skipped over by the cursor are no longer reachable from the
fetched window and are dropped. Records left past the cursor are older
than the window and are retained, so the ledger keeps its history when
commits scroll out of the window and an empty fetch changes nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from gitmetrics.core.models.commit import CommitRecord, Ledger

logger = logging.getLogger(__name__)


def merge_commits(ledger: Ledger, fetched: Sequence[CommitRecord]) -> Ledger:
    """Merge fetched upstream commits into the stored ledger.

    Neither input is modified. Stored records that are kept are carried
    over with their measurement and outcome intact; new commits are
    copied in as pending records.

    Args:
        ledger: The previously stored ledger.
        fetched: Upstream commits, newest-first.

    Returns:
        A new Ledger in fetched order, followed by stored records older
        than the fetched window.
    """
    stored = ledger.commits
    cursor = 0
    merged: list[CommitRecord] = []
    seen: set[str] = set()
    added = dropped = 0

    for commit in fetched:
        if commit.id in seen:
            logger.debug("Ignoring repeated commit %s in fetch", commit.id)
            continue

        match = _find(stored, commit.id, cursor)
        if match is None:
            merged.append(
                CommitRecord(
                    id=commit.id,
                    timestamp=commit.timestamp,
                    description=commit.description,
                )
            )
            added += 1
        else:
            dropped += match - cursor
            merged.append(stored[match].model_copy(deep=True))
            cursor = match + 1
        seen.add(commit.id)

    # Nothing past the cursor was matched, so these ids are not in ``seen``.
    merged.extend(record.model_copy(deep=True) for record in stored[cursor:])

    logger.info(
        "Merged %d fetched commits into %d stored: %d new, %d dropped, %d total",
        len(fetched),
        len(stored),
        added,
        dropped,
        len(merged),
    )
    return Ledger(commits=merged)


def _find(records: Sequence[CommitRecord], commit_id: str, start: int) -> int | None:
    """Index of ``commit_id`` in ``records[start:]``, or None."""
    for i in range(start, len(records)):
        if records[i].id == commit_id:
            return i
    return None
