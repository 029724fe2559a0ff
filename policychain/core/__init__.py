"""Typed core models, ports and the chain composer."""

from policychain.core.composer import PolicyChain, compose
from policychain.core.errors import (
    DomainError,
    InvalidConfigurationError,
    PolicyChainError,
    normalize_failure,
)
from policychain.core.models import ExecutionRequest, Policy
from policychain.core.ports import (
    Continuation,
    ExecutionStateStore,
    PolicyInvocationAdapter,
    TelemetryPort,
)

__all__ = [
    "Continuation",
    "DomainError",
    "ExecutionRequest",
    "ExecutionStateStore",
    "InvalidConfigurationError",
    "Policy",
    "PolicyChain",
    "PolicyChainError",
    "PolicyInvocationAdapter",
    "TelemetryPort",
    "compose",
    "normalize_failure",
]
