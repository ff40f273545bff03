"""
Configuration Package - Models and Loaders.

This package handles all configuration aspects of the agent:
    - Pydantic models for type-safe configuration
    - YAML loader with command-line overrides
    - Credentials file and environment fallback

Configuration Structure:
    - AgentConfig: Root configuration object
    - ConnectionPolicyConfig: Connect retry / circuit breaker settings
"""

from voltdb_prometheus.config.loader import ConfigLoader, load_config, read_credentials_file
from voltdb_prometheus.config.models import AgentConfig, ConnectionPolicyConfig

__all__ = [
    "AgentConfig",
    "ConfigLoader",
    "ConnectionPolicyConfig",
    "load_config",
    "read_credentials_file",
]
