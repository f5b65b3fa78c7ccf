"""
Evaluation engine — measure every pending commit in the ledger.

Walks the ledger in order. For each record that still needs a value:

    checkout → run measurement command → parse float → record

A failed checkout or a failed command is a per-commit, transient
failure: the interactive variant hands it to the recovery protocol,
the batch variant marks the record 'failed' and moves on.

A command that succeeds but prints something that isn't a number is
treated differently by the two variants. Interactively the operator
sees the output and decides like for any other failure. In a batch
run nobody is there to look, and the likeliest cause is a
misconfigured command, so the run aborts before anything is recorded
for the commit.

The ledger is saved after every record whose outcome was decided, so
an interrupted run loses at most the one in-flight measurement.
"""

from __future__ import annotations

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field

from gitmetrics.adapters.registry import AdapterRegistry
from gitmetrics.core.engine.recovery import (
    Decision,
    FailureContext,
    RecoveryProtocol,
    describe_failure,
)
from gitmetrics.core.models.action import Action, Receipt
from gitmetrics.core.models.commit import CommitRecord, Ledger
from gitmetrics.core.models.settings import Settings

logger = logging.getLogger(__name__)


class MeasurementParseError(Exception):
    """The measurement command succeeded but its output isn't a number."""

    def __init__(self, commit_id: str, output: str):
        self.commit_id = commit_id
        self.output = output
        super().__init__(
            f"Measurement command output for {commit_id} is not a number: {output!r}. "
            "Check the command; it must print a single decimal value."
        )


@dataclass
class Attempt:
    """Result of one checkout + measure attempt for a commit."""

    commit_id: str
    value: float | None = None
    stage: str | None = None        # where it failed: "checkout" | "measure" | "parse"
    error: str = ""
    output: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.value is not None

    @classmethod
    def from_failure(cls, commit_id: str, stage: str, receipt: Receipt) -> Attempt:
        return cls(
            commit_id=commit_id,
            stage=stage,
            error=receipt.error or "unknown error",
            output=receipt.output,
            stderr=receipt.stderr,
        )


@dataclass
class EvaluationReport:
    """What a run did to the ledger."""

    measured: dict[str, float] = field(default_factory=dict)
    failed: list[str] = field(default_factory=list)
    broken: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    attempts: int = 0

    @property
    def evaluated(self) -> int:
        return len(self.measured) + len(self.failed) + len(self.broken) + len(self.skipped)

    @property
    def status(self) -> str:
        if not self.failed:
            return "ok"
        if self.measured:
            return "partial"
        return "failed"

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "evaluated": self.evaluated,
            "attempts": self.attempts,
            "measured": self.measured,
            "failed": self.failed,
            "broken": self.broken,
            "skipped": self.skipped,
        }


def parse_measurement(commit_id: str, output: str) -> float:
    """Parse the trimmed command output as a finite float.

    Raises:
        MeasurementParseError: If it isn't one.
    """
    text = output.strip()
    try:
        value = float(text)
    except ValueError:
        raise MeasurementParseError(commit_id, text) from None
    if not math.isfinite(value):
        raise MeasurementParseError(commit_id, text)
    return value


def evaluate_commit(
    record: CommitRecord,
    settings: Settings,
    registry: AdapterRegistry,
) -> Attempt:
    """Check out one commit and run the measurement command on it.

    Does not modify the record.

    Raises:
        MeasurementParseError: If the command succeeded with non-numeric output.
    """
    working_dir = str(settings.working_dir)

    checkout = registry.execute_action(
        Action(
            id=f"checkout:{record.id}",
            adapter="git",
            params={"operation": "checkout", "commit": record.id},
        ),
        working_dir=working_dir,
    )
    if not checkout.ok:
        logger.warning("Checkout of %s failed: %s", record.id, checkout.error)
        return Attempt.from_failure(record.id, "checkout", checkout)

    params: dict = {"command": settings.command}
    if settings.timeout is not None:
        params["timeout"] = settings.timeout
    measure = registry.execute_action(
        Action(id=f"measure:{record.id}", adapter="shell", params=params),
        working_dir=working_dir,
    )
    if not measure.ok:
        logger.warning("Measurement of %s failed: %s", record.id, measure.error)
        return Attempt.from_failure(record.id, "measure", measure)

    value = parse_measurement(record.id, measure.output)
    return Attempt(commit_id=record.id, value=value, output=measure.output)


def run_evaluation(
    ledger: Ledger,
    settings: Settings,
    registry: AdapterRegistry,
    save: Callable[[Ledger], None],
    recovery: Callable[[FailureContext], Decision] | None = None,
    progress: Callable[[str], None] | None = None,
) -> EvaluationReport:
    """Evaluate every record that needs it, in ledger order.

    Args:
        ledger: The merged ledger; records are updated in place.
        settings: Run configuration. ``settings.interactive`` picks the
            failure handling variant.
        registry: Adapter registry with 'git' and 'shell' adapters.
        save: Persists the ledger; called after every decided record.
        recovery: Decision function for the interactive variant. Defaults
            to a terminal-backed RecoveryProtocol.
        progress: Receives human-readable progress lines.

    Returns:
        EvaluationReport for this run.

    Raises:
        MeasurementParseError: On non-numeric command output in a batch
            run. The record being evaluated is left unchanged and not saved.
    """
    emit = progress or (lambda _line: None)
    if settings.interactive and recovery is None:
        recovery = RecoveryProtocol()

    report = EvaluationReport()
    pending = ledger.pending()
    logger.info("%d of %d commits need evaluation", len(pending), len(ledger.commits))

    for record in pending:
        attempt_no = 0
        while True:
            attempt_no += 1
            report.attempts += 1
            emit(f"git-metrics: evaluating {record.id} {record.description}")

            try:
                attempt = evaluate_commit(record, settings, registry)
            except MeasurementParseError as e:
                if not settings.interactive:
                    raise
                attempt = Attempt(
                    commit_id=record.id,
                    stage="parse",
                    error=f"output is not a number: {e.output!r}",
                    output=e.output,
                )
            if attempt.ok:
                assert attempt.value is not None
                record.record_measurement(attempt.value)
                report.measured[record.id] = attempt.value
                emit(f"git-metrics: => {attempt.value:f}")
                break

            failure = FailureContext(
                commit_id=record.id,
                description=record.description,
                stage=attempt.stage or "measure",
                error=attempt.error,
                output=attempt.output,
                stderr=attempt.stderr,
                attempt=attempt_no,
            )

            if not settings.interactive:
                record.mark_failed()
                report.failed.append(record.id)
                for line in describe_failure(failure):
                    emit(line)
                break

            assert recovery is not None
            decision = recovery(failure)
            if decision is Decision.RETRY:
                continue
            if decision is Decision.BROKEN:
                record.mark_broken()
                report.broken.append(record.id)
            else:
                report.skipped.append(record.id)
            break

        save(ledger)

    return report
