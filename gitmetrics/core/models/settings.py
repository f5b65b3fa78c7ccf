"""
Settings model — the immutable run configuration.

Built once per invocation from CLI flags and gitmetrics.yml, then passed
explicitly into the engine. Nothing below the CLI reads flags or the
environment directly.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field


class Settings(BaseModel):
    """Run configuration."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    command: str = Field(min_length=1)     # measurement command line
    working_dir: Path = Field(default_factory=Path.cwd)
    branch: str = "main"
    window: int = Field(default=500, ge=1, le=10_000)
    ledger_path: Path = Path("db.json")
    interactive: bool = True               # False: record failures and move on
    timeout: int | None = Field(default=None, ge=1)
