"""Factory wiring composed chains to one runtime context."""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from loguru import logger

from policychain.adapters.handlers import (
    Interceptor,
    Operation,
    OperationPolicyAdapter,
    ParametersTransformer,
)
from policychain.config.schema import ChainSettings
from policychain.core.composer import PolicyChain, compose
from policychain.core.errors import InvalidConfigurationError
from policychain.core.models import Policy
from policychain.core.ports import ExecutionStateStore, PolicyInvocationAdapter, TelemetryPort
from policychain.state.memory import get_default_store


class PolicyChainFactory:
    """Creates chains that share one state store, telemetry sink and settings."""

    def __init__(
        self,
        *,
        state_store: ExecutionStateStore | None = None,
        telemetry: TelemetryPort | None = None,
        settings: ChainSettings | None = None,
    ) -> None:
        self._state_store = state_store if state_store is not None else get_default_store()
        self._telemetry = telemetry
        self._settings = settings or ChainSettings()

    @property
    def state_store(self) -> ExecutionStateStore:
        return self._state_store

    @property
    def settings(self) -> ChainSettings:
        return self._settings

    def create(self, policies: Sequence[Policy], adapter: PolicyInvocationAdapter) -> PolicyChain:
        """Compose *policies* around *adapter*, rejecting policies it cannot run."""
        missing_handlers = getattr(adapter, "missing_handlers", None)
        if callable(missing_handlers):
            missing = missing_handlers(policies)
            if missing:
                raise InvalidConfigurationError("no handler for policies: " + ", ".join(missing))
        chain = compose(
            policies,
            adapter,
            self._state_store,
            telemetry=self._telemetry,
            settings=self._settings,
        )
        logger.debug("Factory created {!r} on {!r}", chain, self._state_store)
        return chain

    def create_operation_chain(
        self,
        policies: Sequence[Policy],
        operation: Operation,
        *,
        handlers: Mapping[str, Interceptor] | None = None,
        parameters_transformer: ParametersTransformer | None = None,
    ) -> tuple[PolicyChain, OperationPolicyAdapter]:
        """Build a chain around *operation* and return it with its adapter.

        The adapter's :meth:`~OperationPolicyAdapter.request_for` builds the
        request that enters the chain from operation parameters.
        """
        adapter = OperationPolicyAdapter(
            operation,
            parameters_transformer=parameters_transformer,
            handlers=handlers,
        )
        return self.create(policies, adapter), adapter
