"""
Mock adapter — stands in for 'git' or 'shell' in tests.

Answers are looked up by action id: first any queued one-shot answers,
in order, then a sticky answer, then ``default_output``. Queueing a
failure in front of a sticky success scripts "fails once, then works
on retry".
"""

from __future__ import annotations

from gitmetrics.adapters.base import Adapter, ExecutionContext
from gitmetrics.core.models.action import Receipt


class MockAdapter(Adapter):
    def __init__(
        self,
        adapter_name: str = "mock",
        available: bool = True,
        default_output: str = "",
    ):
        self._name = adapter_name
        self._available = available
        self._default_output = default_output
        self._sticky: dict[str, Receipt] = {}
        self._queued: dict[str, list[Receipt]] = {}
        self.call_log: list[ExecutionContext] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_count(self) -> int:
        return len(self.call_log)

    @property
    def called_ids(self) -> list[str]:
        return [ctx.action.id for ctx in self.call_log]

    def is_available(self) -> bool:
        return self._available

    def set_output(self, action_id: str, output: str) -> None:
        """Succeed with ``output`` every time ``action_id`` runs."""
        self._sticky[action_id] = Receipt.success(self._name, action_id, output)

    def set_failure(
        self,
        action_id: str,
        error: str = "Mock failure",
        output: str = "",
        stderr: str = "",
    ) -> None:
        """Fail every time ``action_id`` runs."""
        self._sticky[action_id] = Receipt.failure(
            self._name, action_id, error, output=output, stderr=stderr
        )

    def queue_response(self, action_id: str, receipt: Receipt) -> None:
        """Answer the next call of ``action_id`` with ``receipt``, once."""
        self._queued.setdefault(action_id, []).append(receipt)

    def validate(self, context: ExecutionContext) -> tuple[bool, str]:
        return True, ""

    def execute(self, context: ExecutionContext) -> Receipt:
        self.call_log.append(context)
        action_id = context.action.id
        if self._queued.get(action_id):
            return self._queued[action_id].pop(0)
        if action_id in self._sticky:
            return self._sticky[action_id]
        return Receipt.success(self._name, action_id, self._default_output)

    def reset(self) -> None:
        self.call_log.clear()
        self._sticky.clear()
        self._queued.clear()
