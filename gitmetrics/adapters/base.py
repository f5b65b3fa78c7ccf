"""
Adapter base — how the engine reaches git and the measurement command.

Nothing under ``gitmetrics.core`` calls subprocess itself. Every
external step is an Action handed to an Adapter through the registry,
so the evaluation loop runs the same against MockAdapters in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from pydantic import BaseModel

from gitmetrics.core.models.action import Action, Receipt


class ExecutionContext(BaseModel):
    """An Action plus the directory it runs in."""

    action: Action
    working_dir: str = "."

    def param(self, key: str, default: Any = None) -> Any:
        return self.action.params.get(key, default)


class Adapter(ABC):
    """A named gateway to one external tool.

    ``execute`` must not raise; report problems as a failed Receipt.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Registry key, e.g. 'git' or 'shell'."""

    @abstractmethod
    def is_available(self) -> bool:
        """Whether the tool behind this adapter can be found."""

    @abstractmethod
    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        """Check params before running; returns (ok, reason)."""

    @abstractmethod
    def execute(self, context: ExecutionContext) -> Receipt:
        """Run the action."""

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name}>"
