"""
Shared configuration management for the access-control library.
"""

from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .logging import configure_logging, get_logger
from .metrics import AccessControlMetrics


class AccessControlConfig(BaseSettings):
    """Settings read from ``ACCESS_CONTROL_*`` environment variables or ``.env``."""

    model_config = SettingsConfigDict(
        env_prefix="ACCESS_CONTROL_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    json_logs: bool = Field(default=True)

    # Observability
    enable_metrics: bool = Field(default=False)

    # Redis persistence provider
    redis_url: str = Field(default="redis://localhost:6379/0")
    redis_grants_key: str = Field(default="access_control:grants")


def get_config(**overrides) -> AccessControlConfig:
    """Get library configuration, with explicit overrides taking precedence over env."""
    return AccessControlConfig(**overrides)


def apply_config(
    config: Optional[AccessControlConfig] = None,
    service_name: str = "access_control"
) -> Optional[AccessControlMetrics]:
    """
    Configure logging from ``config`` and build the metrics collector.

    Returns an AccessControlMetrics to hand to the controllers and the
    synchronizer when ``enable_metrics`` is set, otherwise None.
    """
    config = config or get_config()
    configure_logging(service_name, log_level=config.log_level, json_logs=config.json_logs)

    metrics = AccessControlMetrics() if config.enable_metrics else None
    get_logger(f"{service_name}.config").info(
        "Access control configured",
        env=config.env,
        log_level=config.log_level,
        metrics_enabled=metrics is not None
    )
    return metrics
