"""
Adapter registry — the single dispatch point for external steps.

The engine and services never hold adapters; they hand an Action to
``execute_action`` and get a Receipt back, whatever happens. Tests
register MockAdapters under 'git' and 'shell'; the CLI uses
``default_registry``.
"""

from __future__ import annotations

import logging
import time

from gitmetrics.adapters.base import Adapter, ExecutionContext
from gitmetrics.core.models.action import Action, Receipt

logger = logging.getLogger(__name__)


class AdapterRegistry:
    def __init__(self) -> None:
        self._adapters: dict[str, Adapter] = {}

    def register(self, adapter: Adapter) -> None:
        if adapter.name in self._adapters:
            logger.warning("Replacing adapter %r", adapter.name)
        self._adapters[adapter.name] = adapter

    def get(self, name: str) -> Adapter | None:
        return self._adapters.get(name)

    def execute_action(self, action: Action, working_dir: str = ".") -> Receipt:
        """Validate and run ``action`` in ``working_dir``.

        Never raises: a missing adapter, a rejected action or an adapter
        that blows up all produce a failed Receipt.
        """
        adapter = self._adapters.get(action.adapter)
        if adapter is None:
            return Receipt.failure(
                action.adapter, action.id, f"No adapter registered for '{action.adapter}'"
            )

        context = ExecutionContext(action=action, working_dir=working_dir)
        started = time.monotonic()
        try:
            valid, reason = adapter.validate(context)
            if not valid:
                return Receipt.failure(action.adapter, action.id, f"Validation failed: {reason}")
            receipt = adapter.execute(context)
        except Exception as e:
            logger.error("Adapter %s raised on %s: %s", action.adapter, action.id, e)
            receipt = Receipt.failure(action.adapter, action.id, f"Unexpected error: {e}")

        if not receipt.duration_ms:
            receipt.duration_ms = int((time.monotonic() - started) * 1000)
        logger.debug("%s → %s (%dms)", action.id, receipt.status, receipt.duration_ms)
        return receipt


def default_registry() -> AdapterRegistry:
    """Registry with the real git and shell adapters."""
    from gitmetrics.adapters.shell.command import ShellCommandAdapter
    from gitmetrics.adapters.vcs.git import GitAdapter

    registry = AdapterRegistry()
    registry.register(GitAdapter())
    registry.register(ShellCommandAdapter())
    return registry
