"""
Shared test fixtures and configuration.
"""

from pathlib import Path

import pytest

from gitmetrics.adapters.mock import MockAdapter
from gitmetrics.adapters.registry import AdapterRegistry


@pytest.fixture
def ledger_path(tmp_path: Path) -> Path:
    """Path for a ledger file inside a temp directory."""
    return tmp_path / "db.json"


@pytest.fixture
def git_mock() -> MockAdapter:
    return MockAdapter(adapter_name="git", default_output="")


@pytest.fixture
def shell_mock() -> MockAdapter:
    """Measurement mock; every commit measures 100 unless configured."""
    return MockAdapter(adapter_name="shell", default_output="100")


@pytest.fixture
def registry(git_mock: MockAdapter, shell_mock: MockAdapter) -> AdapterRegistry:
    """Registry with mock git and shell adapters."""
    reg = AdapterRegistry()
    reg.register(git_mock)
    reg.register(shell_mock)
    return reg
