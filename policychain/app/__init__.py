"""Application wiring for policy chains."""

from policychain.app.factory import PolicyChainFactory

__all__ = ["PolicyChainFactory"]
