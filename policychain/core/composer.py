"""Policy chain composer.

Turns an ordered, non-empty list of policies plus one terminal operation into
a single continuation that behaves like nested decorators::

    request → p0 → p1 → … → p(n-1) → terminal
    result  ← p0 ← p1 ← … ← p(n-1) ← terminal

The chain is built with a right fold: the terminal is the only continuation
known up front, so each policy layer is created around the layer after it,
starting from the last policy.  Every layer, terminal included, normalizes
failures into :class:`DomainError` on its own, so a failure is wrapped once
where it happens and outer layers see a domain error they leave alone.

Usage::

    chain = compose(policies, adapter, store)
    result = await chain(ExecutionRequest.new(payload))
"""

from __future__ import annotations

import asyncio
import inspect
import time
from collections.abc import Awaitable, Sequence
from typing import Any

from loguru import logger

from policychain.config.schema import ChainSettings
from policychain.core.errors import InvalidConfigurationError, normalize_failure
from policychain.core.models import ExecutionRequest, Policy
from policychain.core.ports import (
    Continuation,
    ExecutionStateStore,
    PolicyInvocationAdapter,
    TelemetryPort,
)

TERMINAL_LAYER = "terminal"


async def _settle(result: Awaitable[Any] | Any) -> Any:
    if inspect.isawaitable(result):
        return await result
    return result


class PolicyChain:
    """Composed, stateless continuation over an ordered set of policies.

    One instance can serve any number of concurrent executions: everything
    execution-scoped lives in the state store, keyed by execution id.
    """

    __slots__ = ("_policies", "_adapter", "_store", "_telemetry", "_settings", "_entry")

    def __init__(
        self,
        policies: Sequence[Policy],
        adapter: PolicyInvocationAdapter,
        state_store: ExecutionStateStore,
        *,
        telemetry: TelemetryPort | None = None,
        settings: ChainSettings | None = None,
    ) -> None:
        self._policies = _validated(policies)
        self._adapter = adapter
        self._store = state_store
        self._settings = settings or ChainSettings()
        self._telemetry = telemetry if self._settings.telemetry.enabled else None
        self._entry = self._build()
        logger.debug("Composed {!r}", self)

    @property
    def policies(self) -> tuple[Policy, ...]:
        return self._policies

    @property
    def state_store(self) -> ExecutionStateStore:
        return self._store

    async def __call__(self, request: ExecutionRequest) -> Any:
        """Run *request* through every policy and the terminal operation."""
        started = time.perf_counter()
        status = "error"
        try:
            result = await self._entry(request)
            status = "ok"
            return result
        except asyncio.CancelledError:
            status = "cancelled"
            raise
        finally:
            self._metric("executions_total", labels=(("status", status),))
            self._timing("execution_seconds", time.perf_counter() - started)

    execute = __call__

    # ── Composition ──────────────────────────────────────────────────

    def _build(self) -> Continuation:
        composed = self._normalized(self._terminal_layer(), TERMINAL_LAYER)
        for policy in reversed(self._policies):
            composed = self._normalized(self._policy_layer(policy, composed), policy.policy_id)
        return composed

    def _terminal_layer(self) -> Continuation:
        adapter = self._adapter

        async def terminal(request: ExecutionRequest) -> Any:
            return await _settle(adapter.apply_terminal(request))

        return terminal

    def _policy_layer(self, policy: Policy, next: Continuation) -> Continuation:
        adapter = self._adapter
        store = self._store
        trace = self._settings.trace_hops

        async def layer(request: ExecutionRequest) -> Any:
            execution_id = request.execution_id
            if trace:
                logger.debug("policy {} enter (execution {})", policy.policy_id, execution_id)
            try:
                return await _settle(adapter.apply_policy(policy, next, request))
            finally:
                store.remove(execution_id, policy.policy_id)
                if trace:
                    logger.debug("policy {} exit (execution {})", policy.policy_id, execution_id)

        return layer

    def _normalized(self, continuation: Continuation, layer: str) -> Continuation:
        level = self._settings.failure_log_level

        async def normalized(request: ExecutionRequest) -> Any:
            try:
                return await continuation(request)
            except Exception as exc:
                error = normalize_failure(exc, layer=layer, execution_id=request.execution_id)
                if error is exc:
                    raise
                logger.log(
                    level,
                    "policy chain layer {} failed (execution {}): {!r}",
                    layer,
                    request.execution_id,
                    exc,
                )
                self._metric(
                    "failures_total",
                    labels=(("layer", layer), ("error", type(exc).__name__)),
                )
                raise error from exc

        return normalized

    # ── Telemetry ────────────────────────────────────────────────────

    def _metric(self, name: str, *, labels: tuple[tuple[str, str], ...] = ()) -> None:
        if self._telemetry is None:
            return
        metric = f"{self._settings.telemetry.prefix}_{name}"
        try:
            self._telemetry.incr(metric, labels=labels)
        except Exception as exc:
            logger.debug("telemetry incr failed {}: {}", metric, exc)

    def _timing(self, name: str, seconds: float) -> None:
        if self._telemetry is None:
            return
        metric = f"{self._settings.telemetry.prefix}_{name}"
        try:
            self._telemetry.timing(metric, seconds)
        except Exception as exc:
            logger.debug("telemetry timing failed {}: {}", metric, exc)

    def __len__(self) -> int:
        return len(self._policies)

    def __repr__(self) -> str:
        names = [p.policy_id for p in self._policies]
        return f"PolicyChain({' → '.join([*names, TERMINAL_LAYER])})"


def _validated(policies: Sequence[Policy]) -> tuple[Policy, ...]:
    ordered = tuple(policies)
    if not ordered:
        raise InvalidConfigurationError("policies list cannot be empty")
    seen: set[str] = set()
    for policy in ordered:
        if not policy.policy_id:
            raise InvalidConfigurationError("policy_id must not be empty")
        if policy.policy_id == TERMINAL_LAYER:
            raise InvalidConfigurationError(f"policy_id {TERMINAL_LAYER!r} is reserved")
        if policy.policy_id in seen:
            raise InvalidConfigurationError(f"duplicate policy_id {policy.policy_id!r} in chain")
        seen.add(policy.policy_id)
    return ordered


def compose(
    policies: Sequence[Policy],
    adapter: PolicyInvocationAdapter,
    state_store: ExecutionStateStore,
    *,
    telemetry: TelemetryPort | None = None,
    settings: ChainSettings | None = None,
) -> PolicyChain:
    """Compose *policies* around *adapter*'s terminal operation.

    Raises:
        InvalidConfigurationError: if *policies* is empty or its ids are
            empty or repeated.  Nothing is executed and the store is not
            touched while composing.
    """
    return PolicyChain(
        policies,
        adapter,
        state_store,
        telemetry=telemetry,
        settings=settings,
    )
