"""Policy invocation adapters."""

from policychain.adapters.handlers import (
    InterceptorAdapter,
    Interceptor,
    Operation,
    OperationPolicyAdapter,
    ParametersTransformer,
)

__all__ = [
    "Interceptor",
    "InterceptorAdapter",
    "Operation",
    "OperationPolicyAdapter",
    "ParametersTransformer",
]
