"""
Domain models — Pydantic types for git-metrics.

All models are re-exported here for convenient access:

    from gitmetrics.core.models import Action, Receipt, CommitRecord, Ledger, Settings
"""

from gitmetrics.core.models.action import Action, Receipt
from gitmetrics.core.models.commit import (
    METRIC_KEY,
    CommitRecord,
    CommitState,
    Ledger,
)
from gitmetrics.core.models.settings import Settings

__all__ = [
    # action.py
    "Action",
    "Receipt",
    # commit.py
    "METRIC_KEY",
    "CommitRecord",
    "CommitState",
    "Ledger",
    # settings.py
    "Settings",
]
