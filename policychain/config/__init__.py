"""Configuration module for policychain."""

from policychain.config.loader import get_config_path, load_settings, save_settings
from policychain.config.schema import ChainSettings, TelemetryConfig

__all__ = ["ChainSettings", "TelemetryConfig", "get_config_path", "load_settings", "save_settings"]
