"""
Ledger file persistence — atomic read/write for the commit ledger.

The ledger is stored as a JSON array of commit records (db.json by
default). Writes are atomic (write to temp file, then rename) so the
file on disk is always either the previous complete ledger or the new
one, even if the process dies mid-write.

Unlike a disposable state cache, a ledger that exists but cannot be
parsed is a hard error: starting fresh would throw away measurements
that may have taken hours to produce.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path

from pydantic import ValidationError

from gitmetrics.core.models.commit import Ledger

logger = logging.getLogger(__name__)

DEFAULT_LEDGER_FILE = "db.json"


class LedgerError(Exception):
    """Raised when the ledger file cannot be loaded."""


def load_ledger(path: Path) -> Ledger:
    """Load the commit ledger from a JSON file.

    Args:
        path: Path to the ledger file.

    Returns:
        The stored Ledger. If the file doesn't exist, an empty one.

    Raises:
        LedgerError: If the file exists but is not a valid ledger.
    """
    if not path.exists():
        logger.info("No ledger at %s — starting with an empty ledger", path)
        return Ledger()

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise LedgerError(f"Cannot read ledger {path}: {e}") from e

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise LedgerError(f"Corrupt ledger {path}: {e}") from e

    if not isinstance(data, list):
        raise LedgerError(
            f"Expected a JSON array of commits in {path}, got {type(data).__name__}"
        )

    try:
        ledger = Ledger.model_validate({"commits": data})
    except ValidationError as e:
        raise LedgerError(f"Invalid ledger {path}: {e}") from e

    logger.debug("Loaded %d commits from %s", len(ledger.commits), path)
    return ledger


def save_ledger(ledger: Ledger, path: Path) -> None:
    """Save the commit ledger to a JSON file (atomic write).

    The document is written to a temp file in the target's directory and
    then renamed over the target. The temp file never outlives the call.

    Args:
        ledger: The ledger to save.
        path: Target path for the ledger file.
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    content = json.dumps(ledger.to_json(), indent=2, ensure_ascii=False) + "\n"

    fd, tmp_path = tempfile.mkstemp(
        dir=path.parent,
        prefix=f".{path.name}.",
        suffix=".tmp",
    )
    tmp = Path(tmp_path)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
        logger.debug("Ledger saved to %s (%d commits)", path, len(ledger.commits))
    except Exception as e:
        logger.error("Failed to save ledger to %s: %s", path, e)
        raise
    finally:
        tmp.unlink(missing_ok=True)
