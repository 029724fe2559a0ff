"""Execution state stores."""

from policychain.state.memory import InMemoryExecutionStateStore, get_default_store

__all__ = ["InMemoryExecutionStateStore", "get_default_store"]
