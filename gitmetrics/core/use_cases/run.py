"""
Run use case — bring the ledger up to date and measure pending commits.

The full vertical slice from CLI flags to a saved ledger:

    settings → load ledger → fetch history → merge → save → evaluate

Fatal errors (bad configuration, unreadable ledger, unreadable history,
non-numeric measurement output in a batch run) end up in
``RunResult.error``; by then the ledger on disk holds every measurement
completed before the error.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from gitmetrics.adapters.registry import AdapterRegistry, default_registry
from gitmetrics.core.config.loader import ConfigError, resolve_settings
from gitmetrics.core.engine.evaluator import (
    EvaluationReport,
    MeasurementParseError,
    run_evaluation,
)
from gitmetrics.core.engine.merge import merge_commits
from gitmetrics.core.engine.recovery import Decision, FailureContext
from gitmetrics.core.models.commit import Ledger
from gitmetrics.core.models.settings import Settings
from gitmetrics.core.persistence.ledger_file import LedgerError, load_ledger, save_ledger
from gitmetrics.core.services.history import HistoryError, fetch_commits

logger = logging.getLogger(__name__)


@dataclass
class RunResult:
    """Result of a measurement run."""

    settings: Settings | None = None
    report: EvaluationReport | None = None
    fetched: int = 0
    ledger_counts: dict[str, int] | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {}
        if self.error:
            result["error"] = self.error
        if self.settings:
            result["working_dir"] = str(self.settings.working_dir)
            result["ledger_path"] = str(self.settings.ledger_path)
            result["branch"] = self.settings.branch
        result["fetched"] = self.fetched
        if self.ledger_counts is not None:
            result["ledger"] = self.ledger_counts
        if self.report:
            result["report"] = self.report.to_dict()
        return result


def run_measurements(
    overrides: dict[str, Any] | None = None,
    config_path: Path | None = None,
    registry: AdapterRegistry | None = None,
    recovery: Callable[[FailureContext], Decision] | None = None,
    progress: Callable[[str], None] | None = None,
) -> RunResult:
    """Merge the upstream window into the ledger and measure what's pending.

    Args:
        overrides: CLI values (command, working_dir, branch, window,
            ledger_path, interactive, timeout). ``None`` means unset.
        config_path: Optional explicit gitmetrics.yml.
        registry: Optional pre-configured adapter registry.
        recovery: Optional decision function for interactive failures.
        progress: Receives progress lines for the operator.

    Returns:
        RunResult with the evaluation report or an error.
    """
    result = RunResult()

    # ── Configuration ────────────────────────────────────────────
    try:
        settings = resolve_settings(overrides, config_path)
    except ConfigError as e:
        result.error = str(e)
        return result
    result.settings = settings

    if registry is None:
        registry = default_registry()

    git = registry.get("git")
    if git is None or not git.is_available():
        result.error = "git is not available on PATH."
        return result

    ledger_path = settings.ledger_path

    def save(ledger: Ledger) -> None:
        save_ledger(ledger, ledger_path)

    try:
        # ── Load + fetch + merge ─────────────────────────────────
        ledger = load_ledger(ledger_path)
        fetched = fetch_commits(registry, settings.working_dir, settings.branch, settings.window)
        result.fetched = len(fetched)

        ledger = merge_commits(ledger, fetched)
        save(ledger)

        # ── Evaluate ─────────────────────────────────────────────
        try:
            result.report = run_evaluation(
                ledger,
                settings,
                registry,
                save=save,
                recovery=recovery,
                progress=progress,
            )
        finally:
            result.ledger_counts = ledger.counts()

    except (LedgerError, HistoryError, MeasurementParseError) as e:
        result.error = str(e)
    except OSError as e:
        result.error = f"Cannot write ledger {ledger_path}: {e}"

    if result.error:
        logger.error("Run aborted: %s", result.error)
    return result
