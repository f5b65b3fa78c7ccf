"""
Action and Receipt models.

An Action asks an adapter for one external step: read the history,
check out a commit, run the measurement command. The Receipt carries
the answer back, including whatever the process printed. Adapters put
failures in the Receipt instead of raising, which leaves the engine
free to decide per commit whether a failure is fatal or transient.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field


class Action(BaseModel):
    """One step for an adapter, e.g. ``checkout:<commit>`` on 'git'."""

    id: str
    adapter: str
    params: dict[str, Any] = Field(default_factory=dict)


class Receipt(BaseModel):
    """Outcome of an Action.

    ``output`` is the trimmed stdout of the process, kept on failure as
    well as on success: a half-finished build log is exactly what the
    operator needs to see when deciding whether a commit is broken.
    """

    adapter: str
    action_id: str
    status: Literal["ok", "failed"] = "ok"
    output: str = ""
    stderr: str = ""
    error: str | None = None
    duration_ms: int = 0
    finished_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "ok"

    @classmethod
    def success(cls, adapter: str, action_id: str, output: str = "", **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, output=output, **kwargs)

    @classmethod
    def failure(cls, adapter: str, action_id: str, error: str, **kwargs: Any) -> Receipt:
        return cls(adapter=adapter, action_id=action_id, status="failed", error=error, **kwargs)
