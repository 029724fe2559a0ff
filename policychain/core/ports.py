"""Port interfaces the chain composer depends on."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Hashable
from typing import Any, Protocol, runtime_checkable

from policychain.core.models import ExecutionRequest, Policy

Continuation = Callable[[ExecutionRequest], Awaitable[Any]]
"""The rest of the chain from one point on: the next policy or the terminal."""


@runtime_checkable
class PolicyInvocationAdapter(Protocol):
    """How a concrete chain runs one policy and its terminal operation.

    Both hooks may return a plain value or an awaitable.  Failures must
    propagate unless the policy deliberately recovers from them.
    """

    def apply_policy(
        self,
        policy: Policy,
        next: Continuation,
        request: ExecutionRequest,
    ) -> Awaitable[Any] | Any:
        """Run ``policy``; it decides whether, when and with what to call ``next``."""

    def apply_terminal(self, request: ExecutionRequest) -> Awaitable[Any] | Any:
        """Run the intercepted operation with no further chain."""


@runtime_checkable
class ExecutionStateStore(Protocol):
    """Correlation-keyed store for policy state that outlives a suspension.

    A composed chain frees exactly one record per policy layer on exit:
    ``(execution_id, policy.policy_id)``.  Policies keep their variables under
    that key (a dict is fine).  Records under any other key are the writer's
    to release, typically with ``InMemoryExecutionStateStore.scoped``.
    """

    def put(self, execution_id: str, key: Hashable, value: Any) -> None:
        """Store ``value`` for one execution under ``key``."""

    def get(self, execution_id: str, key: Hashable, default: Any = None) -> Any:
        """Return the stored value, or ``default`` when absent."""

    def remove(self, execution_id: str, key: Hashable) -> None:
        """Drop one record; absent records are ignored."""


@runtime_checkable
class TelemetryPort(Protocol):
    """Counter and timing sink."""

    def incr(self, name: str, value: int = 1, labels: tuple[tuple[str, str], ...] = ()) -> None:
        """Increase named counter with optional labels."""

    def timing(self, name: str, value: float, labels: tuple[tuple[str, str], ...] = ()) -> None:
        """Record the duration of an operation in seconds."""
