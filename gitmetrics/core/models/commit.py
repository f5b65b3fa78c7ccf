"""
Commit records and the ledger that holds them.

The ledger is the single document that captures every commit we know
about and what happened when we tried to measure it. It is serialized
to db.json and loaded on every run.

Record lifecycle:
    pending → measured   (terminal, never re-evaluated)
    pending → broken     (terminal, operator gave up on it)
    pending → failed     (transient, re-attempted by the next run)
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

# The only metric key recorded in a measurement.
METRIC_KEY = "size"

# Field names of the older db.json layout, mapped to the current ones.
_LEGACY_KEYS = {
    "commit": "id",
    "date": "timestamp",
    "desc": "description",
    "data": "measurement",
}


class CommitState(StrEnum):
    """Evaluation state of a commit record."""

    PENDING = "pending"
    MEASURED = "measured"
    FAILED = "failed"
    BROKEN = "broken"


class CommitRecord(BaseModel):
    """One tracked commit.

    ``id``, ``timestamp`` and ``description`` come from the upstream
    history and are never changed afterwards. ``measurement`` and
    ``outcome`` are written by the evaluation engine.
    """

    id: str
    timestamp: int
    description: str = ""
    measurement: dict[str, float] | None = None
    outcome: Literal["broken", "failed"] | None = None

    @model_validator(mode="before")
    @classmethod
    def _accept_legacy_keys(cls, data: Any) -> Any:
        """Read records written in the older db.json layout.

        That layout used ``commit``/``date``/``desc``/``data`` and a
        boolean ``broken``. Saving always writes the current field names.
        """
        if not isinstance(data, dict):
            return data
        data = dict(data)
        for old, new in _LEGACY_KEYS.items():
            if old in data:
                data.setdefault(new, data.pop(old))
        if data.pop("broken", False) and data.get("outcome") is None:
            data["outcome"] = "broken"
        return data

    @property
    def state(self) -> CommitState:
        if self.measurement is not None:
            return CommitState.MEASURED
        if self.outcome == "broken":
            return CommitState.BROKEN
        if self.outcome == "failed":
            return CommitState.FAILED
        return CommitState.PENDING

    @property
    def needs_evaluation(self) -> bool:
        """Whether the engine should (re)try this commit."""
        return self.state in (CommitState.PENDING, CommitState.FAILED)

    @property
    def size(self) -> float | None:
        """The recorded metric value, if measured."""
        if self.measurement is None:
            return None
        return self.measurement.get(METRIC_KEY)

    @property
    def short_id(self) -> str:
        return self.id[:12]

    def record_measurement(self, value: float) -> None:
        self.measurement = {METRIC_KEY: value}
        self.outcome = None

    def mark_failed(self) -> None:
        self.outcome = "failed"

    def mark_broken(self) -> None:
        self.outcome = "broken"

    def reset(self) -> None:
        """Return the record to pending so the next run measures it again."""
        self.measurement = None
        self.outcome = None

    def to_json(self) -> dict:
        """Serialize with stable field order, omitting unset fields."""
        return self.model_dump(mode="json", exclude_none=True)


class Ledger(BaseModel):
    """Ordered commit records, newest-first as enumerated upstream."""

    commits: list[CommitRecord] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> Ledger:
        seen: set[str] = set()
        for record in self.commits:
            if record.id in seen:
                raise ValueError(f"duplicate commit id in ledger: {record.id}")
            seen.add(record.id)
        return self

    def get(self, commit_id: str) -> CommitRecord | None:
        """Look up a record by full id."""
        for record in self.commits:
            if record.id == commit_id:
                return record
        return None

    def find_prefix(self, prefix: str) -> list[CommitRecord]:
        """All records whose id starts with ``prefix``."""
        return [r for r in self.commits if r.id.startswith(prefix)]

    def pending(self) -> list[CommitRecord]:
        """Records the engine will evaluate, in ledger order."""
        return [r for r in self.commits if r.needs_evaluation]

    def counts(self) -> dict[str, int]:
        """Number of records per state."""
        counts = {state.value: 0 for state in CommitState}
        for record in self.commits:
            counts[record.state.value] += 1
        counts["total"] = len(self.commits)
        return counts

    def latest_measured(self) -> CommitRecord | None:
        """The newest record that has a measurement."""
        for record in self.commits:
            if record.size is not None:
                return record
        return None

    def to_json(self) -> list[dict]:
        return [record.to_json() for record in self.commits]
