"""Typed models flowing through a policy chain."""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from policychain.adapters.handlers import Interceptor


def _frozen_mapping(value: Mapping[str, Any] | None) -> Mapping[str, Any]:
    return MappingProxyType(dict(value or {}))


@dataclass(frozen=True, slots=True, kw_only=True, eq=False)
class Policy:
    """One ordered interceptor in a chain.

    The composer only looks at ``policy_id``.  ``config`` is opaque and is
    handed to whatever runs the policy; ``handler`` optionally points at that
    logic directly.
    """

    policy_id: str
    config: Mapping[str, Any] = field(default_factory=dict)
    handler: "Interceptor | None" = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "config", _frozen_mapping(self.config))

    def __repr__(self) -> str:
        return f"Policy({self.policy_id!r})"


@dataclass(frozen=True, slots=True, kw_only=True)
class ExecutionRequest:
    """Execution context passed through every continuation.

    Attributes:
        execution_id: Correlates every hop and state record of one execution.
        payload: The data the terminal operation works on.
        attributes: Side-channel values policies may read or add.
    """

    execution_id: str
    payload: Any = None
    attributes: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.execution_id:
            raise ValueError("execution_id must not be empty")
        object.__setattr__(self, "attributes", _frozen_mapping(self.attributes))

    @classmethod
    def new(cls, payload: Any = None, **attributes: Any) -> ExecutionRequest:
        """Start a fresh execution with a generated id."""
        return cls(execution_id=uuid.uuid4().hex, payload=payload, attributes=attributes)

    def evolve(self, **changes: Any) -> ExecutionRequest:
        """Return a copy with ``changes`` applied; the execution id is fixed."""
        execution_id = changes.get("execution_id", self.execution_id)
        if execution_id != self.execution_id:
            raise ValueError("a transformed request must keep its execution_id")
        return replace(self, **changes)

    def with_attributes(self, **attributes: Any) -> ExecutionRequest:
        merged = dict(self.attributes)
        merged.update(attributes)
        return replace(self, attributes=merged)
