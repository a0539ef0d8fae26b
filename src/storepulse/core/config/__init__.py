"""Configuration models for storepulse.

The root model is DashboardConfig, usually loaded from YAML:

    api:
      base_url: https://dashboard.example.com
      timeout_seconds: 10
    retry:
      max_attempts: 3
      base_delay_ms: 1000
    network:
      auto_retry_on_reconnect: true
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError

from storepulse.core.config.client import ApiConfig, LogConfig
from storepulse.core.config.resilience import ClassifierConfig, NetworkConfig, RetryConfig
from storepulse.core.errors.exceptions import ConfigError


class DashboardConfig(BaseModel):
    """Root configuration for the dashboard client."""

    api: ApiConfig = Field(default_factory=ApiConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    network: NetworkConfig = Field(default_factory=NetworkConfig)
    classifier: ClassifierConfig = Field(default_factory=ClassifierConfig)
    logging: LogConfig = Field(default_factory=LogConfig)

    @property
    def probe_url(self) -> str:
        """URL used for reachability probes."""
        return self.network.probe_url or self.api.base_url

    @classmethod
    def from_yaml(cls, path: Path) -> DashboardConfig:
        """Load configuration from a YAML file.

        Raises:
            ConfigError: If the file is missing, unparseable or invalid.
        """
        try:
            with open(path) as f:
                text = f.read()
        except OSError as e:
            raise ConfigError(f"Cannot read config file {path}: {e}") from e
        return cls.from_yaml_string(text)

    @classmethod
    def from_yaml_string(cls, yaml_str: str) -> DashboardConfig:
        """Load configuration from a YAML string."""
        try:
            data = yaml.safe_load(yaml_str)
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML: {e}") from e
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise ConfigError("Config root must be a mapping")
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(str(e)) from e


__all__ = [
    "ApiConfig",
    "ClassifierConfig",
    "DashboardConfig",
    "LogConfig",
    "NetworkConfig",
    "RetryConfig",
]
