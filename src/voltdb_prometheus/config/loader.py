"""
Configuration Loader - YAML Loading with Validation.

Loads configuration from YAML files, merges command-line overrides,
resolves credentials and validates using Pydantic models.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import ValidationError

from voltdb_prometheus.config.models import AgentConfig
from voltdb_prometheus.domain.errors import ConfigError

logger = logging.getLogger(__name__)

ENV_USERNAME = "VOLTDB_USERNAME"
ENV_PASSWORD = "VOLTDB_PASSWORD"


class ConfigLoader:
    """Loads and validates agent configuration."""

    def __init__(
        self,
        base_path: Optional[Path] = None,
        environ: Optional[Mapping[str, str]] = None,
    ) -> None:
        """
        Initialize config loader.

        Args:
            base_path: Base path for relative config paths
            environ: Environment used for credential fallback (default os.environ)
        """
        self._base_path = base_path or Path(".")
        self._environ = os.environ if environ is None else environ

    def load(
        self,
        config_path: Optional[Union[str, Path]] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ) -> AgentConfig:
        """
        Load configuration from an optional YAML file plus overrides.

        Args:
            config_path: Path to YAML config file
            overrides: Values (typically from the command line) that win
                over the file

        Returns:
            Validated AgentConfig object

        Raises:
            ConfigError: If the file is missing or the config is invalid
        """
        config_dict: Dict[str, Any] = {}
        if config_path is not None:
            path = self._resolve_path(config_path)
            if not path.exists():
                raise ConfigError(f"Config file not found: {path}")
            config_dict = self._load_yaml(path)

        if overrides:
            config_dict = self._merge_configs(config_dict, overrides)

        return self.load_from_dict(config_dict)

    def load_from_dict(self, config_dict: Dict[str, Any]) -> AgentConfig:
        """
        Load configuration from dictionary.

        Args:
            config_dict: Configuration as dictionary

        Returns:
            Validated AgentConfig object with credentials resolved

        Raises:
            ConfigError: If the config is invalid
        """
        resolved = self._resolve_credentials(dict(config_dict))
        try:
            config = AgentConfig.model_validate(resolved)
        except ValidationError as e:
            raise ConfigError(str(e)) from e

        self._check_ssl_file(config)
        return config

    def _resolve_path(self, path: Union[str, Path]) -> Path:
        """Resolve config path relative to base path."""
        p = Path(path)
        if p.is_absolute():
            return p
        return self._base_path / p

    def _load_yaml(self, path: Path) -> Dict[str, Any]:
        """Load YAML file."""
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def _merge_configs(
        self,
        base: Dict[str, Any],
        overlay: Dict[str, Any],
    ) -> Dict[str, Any]:
        """Deep merge overlay into base config; None values in overlay are skipped."""
        result = dict(base)
        for key, value in overlay.items():
            if value is None:
                continue
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value
        return result

    def _resolve_credentials(self, config: Dict[str, Any]) -> Dict[str, Any]:
        """Apply the credentials file or environment fallback."""
        user = config.get("user") or ""
        password = config.get("password") or ""
        creds_file = config.get("credentials_file")

        if creds_file:
            if user or password:
                raise ConfigError("can't specify credentials file with user or password")
            props = read_credentials_file(self._resolve_path(creds_file))
            user = props.get("username", "")
            if not user:
                raise ConfigError(f"'username' not found in credentials file {creds_file}")
            password = props.get("password", "")

        if not user and not password:
            env_user = self._environ.get(ENV_USERNAME, "")
            if env_user:
                user = env_user
                password = self._environ.get(ENV_PASSWORD, "")
                logger.info("Using VoltDB credentials from environment variables")

        config["user"] = user
        config["password"] = password
        return config

    def _check_ssl_file(self, config: AgentConfig) -> None:
        if config.ssl_config_file is None:
            return
        path = self._resolve_path(config.ssl_config_file)
        if not (path.is_file() and os.access(path, os.R_OK)):
            raise ConfigError(f"cannot read SSL configuration file {config.ssl_config_file}")


def read_credentials_file(path: Path) -> Dict[str, str]:
    """
    Read a properties-style credentials file.

    Lines are ``key=value`` or ``key: value``; blank lines and lines
    starting with ``#`` or ``!`` are ignored.

    Raises:
        ConfigError: If the file cannot be read
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"cannot read credentials file {path}: {e}") from e

    props: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line[0] in "#!":
            continue
        seps = [i for i in (line.find("="), line.find(":")) if i >= 0]
        if not seps:
            props[line] = ""
            continue
        idx = min(seps)
        props[line[:idx].strip()] = line[idx + 1:].strip()
    return props


def load_config(
    config_path: Optional[Union[str, Path]] = None,
    overrides: Optional[Dict[str, Any]] = None,
    base_path: Optional[Path] = None,
) -> AgentConfig:
    """
    Convenience function to load configuration.

    Args:
        config_path: Path to YAML config file
        overrides: Values that take precedence over the file
        base_path: Base path for resolving relative paths

    Returns:
        Validated AgentConfig object
    """
    loader = ConfigLoader(base_path=base_path)
    return loader.load(config_path, overrides)
