"""Configuration module for the mainnet monitor."""

from typing import Dict, List, Literal

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class MetricThreshold(BaseModel):
    """Warning/critical levels for one metric"""

    warning: float
    critical: float
    # "above": larger values are worse, "below": smaller values are worse
    direction: Literal["above", "below"] = "above"


def default_thresholds() -> Dict[str, MetricThreshold]:
    return {
        "rpc_latency": MetricThreshold(warning=1000, critical=3000),
        "response_time": MetricThreshold(warning=2000, critical=5000),
        "error_rate": MetricThreshold(warning=5, critical=10),
        "success_rate": MetricThreshold(warning=95, critical=90, direction="below"),
    }


class Config(BaseSettings):
    """Configuration for the mainnet monitor."""

    model_config = SettingsConfigDict(env_prefix="MAINNET_MONITOR_", extra="forbid")

    # Endpoints, tried in order: primary first, then fallbacks
    primary_endpoint: str = Field(default="wss://s1.ripple.com")
    fallback_endpoints: List[str] = Field(
        default_factory=lambda: ["wss://s2.ripple.com", "wss://xrplcluster.com"]
    )

    # Retry policy
    max_retries: int = Field(default=3)
    base_delay_ms: float = Field(default=1000)
    max_delay_ms: float = Field(default=10000)
    backoff_multiplier: float = Field(default=2.0)
    retry_execution_errors: bool = Field(default=False)

    # Confirmation
    default_commitment: Literal["processed", "confirmed", "finalized"] = Field(
        default="confirmed"
    )
    confirmation_timeout_seconds: float = Field(default=60)
    confirmation_poll_interval: float = Field(default=1.0)

    # Batching
    batch_size: int = Field(default=10)
    batch_pause_ms: float = Field(default=100)

    # Monitoring loops
    metrics_interval_seconds: float = Field(default=30)
    health_check_interval_seconds: float = Field(default=300)
    history_size: int = Field(default=100)

    # Trend detection
    trend_window: int = Field(default=10)
    latency_trend_fraction: float = Field(default=0.2)
    latency_trend_floor_ms: float = Field(default=1000)
    response_trend_fraction: float = Field(default=0.3)
    response_trend_floor_ms: float = Field(default=2000)

    # Alerting
    thresholds: Dict[str, MetricThreshold] = Field(default_factory=default_thresholds)
    alert_cooldown_seconds: float = Field(default=300)
    degraded_error_rate: float = Field(default=5)

    # Dashboard
    dashboard_alert_limit: int = Field(default=50)
    dashboard_batch_limit: int = Field(default=20)

    @field_validator("fallback_endpoints", mode="before")
    def split_endpoints(cls, v):
        """Accept a comma separated string of endpoints."""
        if isinstance(v, str):
            return [e.strip() for e in v.split(",") if e.strip()]
        return v

    @field_validator("max_retries")
    def validate_max_retries(cls, v):
        """Validate retry count."""
        if v < 0:
            raise ValueError("max_retries must not be negative")
        return v

    @field_validator("backoff_multiplier")
    def validate_multiplier(cls, v):
        """Validate backoff multiplier."""
        if v < 1:
            raise ValueError(f"Invalid backoff multiplier: {v}")
        return v

    @field_validator(
        "base_delay_ms",
        "confirmation_timeout_seconds",
        "confirmation_poll_interval",
        "metrics_interval_seconds",
        "health_check_interval_seconds",
    )
    def validate_positive(cls, v):
        """Validate durations."""
        if v <= 0:
            raise ValueError("Durations must be positive")
        return v

    @field_validator("batch_size", "history_size", "trend_window")
    def validate_sizes(cls, v):
        """Validate sizes."""
        if v < 1:
            raise ValueError("Sizes must be at least 1")
        return v

    @model_validator(mode="after")
    def validate_delay_range(self):
        """Max delay can't be below the base delay."""
        if self.max_delay_ms < self.base_delay_ms:
            raise ValueError("max_delay_ms must be >= base_delay_ms")
        return self

    @property
    def endpoints(self) -> List[str]:
        """All endpoints in the order they are tried"""
        return [self.primary_endpoint, *self.fallback_endpoints]
