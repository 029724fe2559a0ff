from collections.abc import Mapping
from typing import Any

import pytest

from policychain.adapters.handlers import InterceptorAdapter, OperationPolicyAdapter
from policychain.app.factory import PolicyChainFactory
from policychain.core.composer import compose
from policychain.core.errors import DomainError, InvalidConfigurationError
from policychain.core.models import ExecutionRequest, Policy
from policychain.core.ports import Continuation, PolicyInvocationAdapter
from policychain.state.memory import InMemoryExecutionStateStore, get_default_store
from policychain.telemetry.inmemory import InMemoryTelemetry


class KeywordTransformer:
    def to_parameters(self, request: ExecutionRequest) -> Mapping[str, Any]:
        return dict(request.payload)

    def from_parameters(self, parameters: Mapping[str, Any]) -> Any:
        return dict(parameters)


async def double_b(policy: Policy, request: ExecutionRequest, next: Continuation) -> Any:
    payload = dict(request.payload)
    payload["b"] *= policy.config.get("factor", 2)
    return await next(request.evolve(payload=payload))


def test_adapters_satisfy_invocation_port() -> None:
    assert isinstance(InterceptorAdapter(lambda request: None), PolicyInvocationAdapter)
    assert isinstance(OperationPolicyAdapter(lambda: None), PolicyInvocationAdapter)


async def test_handlers_are_resolved_by_policy_id() -> None:
    async def shout(policy: Policy, request: ExecutionRequest, next: Continuation) -> Any:
        return (await next(request)).upper()

    adapter = InterceptorAdapter(lambda request: f"hi {request.payload}", handlers={"shout": shout})
    chain = compose([Policy(policy_id="shout")], adapter, InMemoryExecutionStateStore())

    assert adapter.missing_handlers(chain.policies) == []
    assert await chain(ExecutionRequest.new("bob")) == "HI BOB"


async def test_missing_handler_fails_at_execution_when_composed_directly() -> None:
    adapter = InterceptorAdapter(lambda request: None)
    chain = compose([Policy(policy_id="ghost")], adapter, InMemoryExecutionStateStore())

    with pytest.raises(DomainError) as exc_info:
        await chain(ExecutionRequest.new())
    assert isinstance(exc_info.value.cause, LookupError)
    assert exc_info.value.layer == "ghost"


def test_factory_rejects_policies_without_handlers() -> None:
    factory = PolicyChainFactory(state_store=InMemoryExecutionStateStore())
    adapter = InterceptorAdapter(lambda request: None, handlers={"known": double_b})

    with pytest.raises(InvalidConfigurationError, match="ghost"):
        factory.create([Policy(policy_id="known"), Policy(policy_id="ghost")], adapter)


def test_factory_rejects_empty_policy_list() -> None:
    factory = PolicyChainFactory(state_store=InMemoryExecutionStateStore())
    with pytest.raises(InvalidConfigurationError):
        factory.create([], InterceptorAdapter(lambda request: None))


async def test_operation_chain_with_parameters_transformer() -> None:
    def add(a: int, b: int) -> int:
        return a + b

    store = InMemoryExecutionStateStore()
    telemetry = InMemoryTelemetry()
    factory = PolicyChainFactory(state_store=store, telemetry=telemetry)
    chain, adapter = factory.create_operation_chain(
        [Policy(policy_id="double", config={"factor": 3})],
        add,
        handlers={"double": double_b},
        parameters_transformer=KeywordTransformer(),
    )

    request = adapter.request_for({"a": 1, "b": 2}, execution_id="op-1", caller="test")

    assert request.payload == {"a": 1, "b": 2}
    assert request.attributes == {"caller": "test"}
    assert await chain(request) == 7
    assert chain.state_store is store
    assert telemetry.get_counter("policy_chain_executions_total", (("status", "ok"),)) == 1
    assert len(telemetry.get_timing_values("policy_chain_execution_seconds")) == 1


async def test_operation_without_transformer_receives_request() -> None:
    async def operation(request: ExecutionRequest) -> Any:
        return request.payload["b"]

    factory = PolicyChainFactory(state_store=InMemoryExecutionStateStore())
    chain, adapter = factory.create_operation_chain(
        [Policy(policy_id="double", handler=double_b)],
        operation,
    )

    request = adapter.request_for({"b": 5})
    assert request.execution_id
    assert adapter.parameters_transformer is None
    assert await chain(request) == 10


def test_factory_defaults_to_process_wide_store() -> None:
    assert PolicyChainFactory().state_store is get_default_store()
