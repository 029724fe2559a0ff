"""Invocation adapters that run policy logic supplied by collaborators.

Each policy's own behaviour is an :class:`Interceptor`, attached to the
policy directly or registered by policy id.  An interceptor may:

1. Transform the request and ``await next(request)``: **pass through**.
2. Return without calling ``next``: **short-circuit**.
3. Inspect or replace what ``next`` returned: **post-process**.
4. Catch a failure from ``next`` and return a fallback: **recover**.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable, Mapping
from typing import Any, Protocol, runtime_checkable

from policychain.core.models import ExecutionRequest, Policy
from policychain.core.ports import Continuation

Operation = Callable[..., Awaitable[Any] | Any]
"""The intercepted operation; sync or async."""


@runtime_checkable
class Interceptor(Protocol):
    """Business logic of one policy."""

    def __call__(
        self,
        policy: Policy,
        request: ExecutionRequest,
        next: Continuation,
    ) -> Awaitable[Any] | Any: ...


@runtime_checkable
class ParametersTransformer(Protocol):
    """Converts between an execution request and operation parameters."""

    def to_parameters(self, request: ExecutionRequest) -> Mapping[str, Any]:
        """Keyword arguments for the operation, taken from the request."""

    def from_parameters(self, parameters: Mapping[str, Any]) -> Any:
        """Request payload built from operation parameters."""


class InterceptorAdapter:
    """Runs ``policy.handler`` (or a handler registered for its id) and the operation."""

    def __init__(
        self,
        operation: Operation,
        *,
        handlers: Mapping[str, Interceptor] | None = None,
    ) -> None:
        self._operation = operation
        self._handlers = dict(handlers or {})

    def handler_for(self, policy: Policy) -> Interceptor | None:
        if policy.handler is not None:
            return policy.handler
        return self._handlers.get(policy.policy_id)

    def missing_handlers(self, policies: Iterable[Policy]) -> list[str]:
        """Ids of policies this adapter has no logic for."""
        return [p.policy_id for p in policies if self.handler_for(p) is None]

    def apply_policy(
        self,
        policy: Policy,
        next: Continuation,
        request: ExecutionRequest,
    ) -> Awaitable[Any] | Any:
        handler = self.handler_for(policy)
        if handler is None:
            raise LookupError(f"no handler registered for policy {policy.policy_id!r}")
        return handler(policy, request, next)

    def apply_terminal(self, request: ExecutionRequest) -> Awaitable[Any] | Any:
        return self._operation(request)


class OperationPolicyAdapter(InterceptorAdapter):
    """Adapter for operations that take keyword parameters instead of a request.

    Without a transformer the operation receives the request itself.
    """

    def __init__(
        self,
        operation: Operation,
        *,
        parameters_transformer: ParametersTransformer | None = None,
        handlers: Mapping[str, Interceptor] | None = None,
    ) -> None:
        super().__init__(operation, handlers=handlers)
        self._transformer = parameters_transformer

    @property
    def parameters_transformer(self) -> ParametersTransformer | None:
        return self._transformer

    def request_for(
        self,
        parameters: Mapping[str, Any],
        *,
        execution_id: str | None = None,
        **attributes: Any,
    ) -> ExecutionRequest:
        """Build the request that enters the chain for one operation call."""
        payload = self._transformer.from_parameters(parameters) if self._transformer is not None else dict(parameters)
        if execution_id is None:
            return ExecutionRequest.new(payload, **attributes)
        return ExecutionRequest(execution_id=execution_id, payload=payload, attributes=attributes)

    def apply_terminal(self, request: ExecutionRequest) -> Awaitable[Any] | Any:
        if self._transformer is None:
            return self._operation(request)
        return self._operation(**self._transformer.to_parameters(request))
