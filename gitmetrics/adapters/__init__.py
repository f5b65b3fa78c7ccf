"""Adapters — bindings for git and the measurement command.

Public re-exports for convenient access.
"""

from gitmetrics.adapters.base import Adapter, ExecutionContext
from gitmetrics.adapters.mock import MockAdapter
from gitmetrics.adapters.registry import AdapterRegistry, default_registry

__all__ = [
    "Adapter",
    "AdapterRegistry",
    "ExecutionContext",
    "MockAdapter",
    "default_registry",
]
