"""policychain - compose ordered cross-cutting policies around one operation."""

__version__ = "0.1.0"

from policychain.adapters import (
    Interceptor,
    InterceptorAdapter,
    OperationPolicyAdapter,
    ParametersTransformer,
)
from policychain.app import PolicyChainFactory
from policychain.config import ChainSettings, load_settings
from policychain.core import (
    Continuation,
    DomainError,
    ExecutionRequest,
    ExecutionStateStore,
    InvalidConfigurationError,
    Policy,
    PolicyChain,
    PolicyChainError,
    PolicyInvocationAdapter,
    compose,
)
from policychain.state import InMemoryExecutionStateStore, get_default_store
from policychain.telemetry import InMemoryTelemetry, TelemetryPort

__all__ = [
    "ChainSettings",
    "Continuation",
    "DomainError",
    "ExecutionRequest",
    "ExecutionStateStore",
    "InMemoryExecutionStateStore",
    "InMemoryTelemetry",
    "Interceptor",
    "InterceptorAdapter",
    "InvalidConfigurationError",
    "OperationPolicyAdapter",
    "ParametersTransformer",
    "Policy",
    "PolicyChain",
    "PolicyChainError",
    "PolicyChainFactory",
    "PolicyInvocationAdapter",
    "TelemetryPort",
    "compose",
    "get_default_store",
    "load_settings",
]
