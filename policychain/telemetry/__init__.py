"""Telemetry backends for policy chain observability."""

from policychain.core.ports import TelemetryPort
from policychain.telemetry.inmemory import InMemoryTelemetry

__all__ = [
    "InMemoryTelemetry",
    "TelemetryPort",
]
