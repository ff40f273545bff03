"""
Configuration Models - Pydantic Models for Type-Safe Config.

All configuration is validated at load time using Pydantic.
"""

from __future__ import annotations

from typing import Any, List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from voltdb_prometheus.domain.entities import Credentials, StatsSelector, TlsSettings

DEFAULT_VOLTDB_PORT = 21211
DEFAULT_WEBSERVER_PORT = 1234


def _split_list(value: Any) -> Any:
    """Accept "a,b,c" as well as a YAML list."""
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return value


class ConnectionPolicyConfig(BaseModel):
    """Retry and circuit breaker settings for connect attempts."""

    retry_attempts: int = Field(default=1, ge=1, le=10)
    retry_base_delay_seconds: float = Field(default=0.5, ge=0)
    failure_threshold: int = Field(default=5, ge=1)
    recovery_seconds: float = Field(default=30.0, ge=0)


class AgentConfig(BaseModel):
    """Root configuration object."""

    servers: List[str] = Field(default_factory=lambda: ["localhost"])
    port: int = Field(default=DEFAULT_VOLTDB_PORT, ge=1, le=65535)
    webserver_port: int = Field(default=DEFAULT_WEBSERVER_PORT, ge=1, le=65535)
    user: str = ""
    password: str = ""
    credentials_file: Optional[str] = None
    ssl_enabled: bool = False
    ssl_config_file: Optional[str] = None
    stats: Optional[List[str]] = None
    skip_stats: Optional[List[str]] = None
    delta: bool = False
    min_gather_interval_seconds: float = Field(default=1.5, ge=0)
    gather_timeout_seconds: Optional[float] = Field(default=60.0, gt=0)
    connection: ConnectionPolicyConfig = Field(default_factory=ConnectionPolicyConfig)
    log_level: str = Field(default="INFO")
    log_json: bool = False

    @field_validator("servers", "stats", "skip_stats", mode="before")
    @classmethod
    def _comma_lists(cls, value: Any) -> Any:
        return _split_list(value)

    @field_validator("servers")
    @classmethod
    def _servers_not_empty(cls, value: List[str]) -> List[str]:
        if not value:
            raise ValueError("at least one server is required")
        return value

    @field_validator("stats", "skip_stats")
    @classmethod
    def _known_stats(cls, value: Optional[List[str]]) -> Optional[List[str]]:
        if value is not None:
            StatsSelector.parse_list(value)
        return value

    @field_validator("log_level")
    @classmethod
    def _log_level(cls, value: str) -> str:
        level = value.upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"invalid log level {value}")
        return level

    @model_validator(mode="after")
    def _check_selection(self) -> "AgentConfig":
        if self.stats is not None and self.skip_stats is not None:
            raise ValueError("can't set both stats and skip_stats")
        if not self.enabled_selectors():
            raise ValueError("no statistics to poll")
        if self.ssl_config_file:
            self.ssl_enabled = True
        return self

    def enabled_selectors(self) -> List[StatsSelector]:
        """Selectors to poll, in declaration order."""
        if self.stats is not None:
            return StatsSelector.parse_list(self.stats)
        selected = list(StatsSelector)
        if self.skip_stats is not None:
            skipped = set(StatsSelector.parse_list(self.skip_stats))
            selected = [s for s in selected if s not in skipped]
        return selected

    @property
    def credentials(self) -> Credentials:
        return Credentials(username=self.user, password=self.password)

    @property
    def tls(self) -> TlsSettings:
        return TlsSettings(enabled=self.ssl_enabled, config_file=self.ssl_config_file)

    @property
    def interval(self) -> int:
        """The @Statistics interval argument: 1 for delta mode, else 0."""
        return 1 if self.delta else 0

    model_config = {"populate_by_name": True}
