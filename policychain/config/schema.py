"""Configuration schema using Pydantic."""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class TelemetryConfig(BaseModel):
    """Counters and timings recorded by composed chains."""

    model_config = ConfigDict(extra="ignore")

    enabled: bool = True
    prefix: str = Field(default="policy_chain", min_length=1)


class ChainSettings(BaseSettings):
    """Root configuration for policychain."""

    model_config = SettingsConfigDict(
        extra="ignore",
        populate_by_name=True,
        env_prefix="POLICYCHAIN_",
        env_nested_delimiter="__",
    )

    trace_hops: bool = False
    failure_log_level: str = "DEBUG"
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @field_validator("failure_log_level")
    @classmethod
    def _validate_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}; expected one of {', '.join(_LOG_LEVELS)}")
        return level
