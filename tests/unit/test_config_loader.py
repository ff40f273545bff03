"""
Unit Tests for ConfigLoader and AgentConfig.

Test Aspects Covered:
    ✅ Business Logic: YAML loading, override merging, category selection
    ✅ Credentials: Properties file, environment fallback, exclusivity
    ✅ Error Handling: Invalid YAML, missing files, invalid values
"""

from __future__ import annotations

from pathlib import Path

import pytest

from voltdb_prometheus.config.loader import ConfigLoader, load_config, read_credentials_file
from voltdb_prometheus.config.models import AgentConfig
from voltdb_prometheus.domain.entities import StatsSelector
from voltdb_prometheus.domain.errors import ConfigError


class TestConfigLoader:
    """Test cases for ConfigLoader."""

    def test_loads_sample_yaml(self, sample_config_path: Path) -> None:
        """
        SCENARIO: Sample configuration file
        EXPECTED: AgentConfig with the file's values
        """
        # Arrange
        loader = ConfigLoader(environ={})

        # Act
        config = loader.load(sample_config_path)

        # Assert
        assert isinstance(config, AgentConfig)
        assert config.servers == ["db1", "db2"]
        assert config.port == 21212
        assert config.webserver_port == 9101
        assert config.enabled_selectors() == [
            StatsSelector.CPU,
            StatsSelector.MEMORY,
            StatsSelector.QUEUE,
        ]
        assert config.interval == 1
        assert config.connection.retry_attempts == 2
        assert config.gather_timeout_seconds == 30
        assert config.log_level == "DEBUG"

    def test_applies_defaults(self) -> None:
        """
        SCENARIO: No file, no overrides
        EXPECTED: Defaults applied
        """
        # Act
        config = ConfigLoader(environ={}).load()

        # Assert
        assert config.servers == ["localhost"]
        assert config.port == 21211
        assert config.webserver_port == 1234
        assert config.min_gather_interval_seconds == 1.5
        assert config.gather_timeout_seconds == 60
        assert config.enabled_selectors() == list(StatsSelector)
        assert config.interval == 0

    def test_overrides_win_over_file(self, sample_config_path: Path) -> None:
        # Arrange
        loader = ConfigLoader(environ={})

        # Act
        config = loader.load(sample_config_path, {"port": 30000, "servers": "other"})

        # Assert
        assert config.port == 30000
        assert config.servers == ["other"]
        assert config.webserver_port == 9101

    def test_none_overrides_ignored(self, sample_config_path: Path) -> None:
        config = ConfigLoader(environ={}).load(sample_config_path, {"port": None, "delta": None})

        assert config.port == 21212
        assert config.delta is True

    def test_nested_overrides_merge(self, sample_config_path: Path) -> None:
        config = ConfigLoader(environ={}).load(
            sample_config_path, {"connection": {"failure_threshold": 9}}
        )

        assert config.connection.failure_threshold == 9
        assert config.connection.retry_attempts == 2

    def test_relative_path_uses_base_path(self, tmp_path: Path) -> None:
        # Arrange
        (tmp_path / "agent.yaml").write_text("port: 4000\n")

        # Act
        config = ConfigLoader(base_path=tmp_path, environ={}).load("agent.yaml")

        # Assert
        assert config.port == 4000

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """
        SCENARIO: Config file does not exist
        EXPECTED: ConfigError raised
        """
        with pytest.raises(ConfigError, match="not found"):
            ConfigLoader(environ={}).load(tmp_path / "nonexistent.yaml")

    def test_invalid_yaml_raises(self, tmp_path: Path) -> None:
        # Arrange
        config_file = tmp_path / "bad.yaml"
        config_file.write_text("servers: [db1\n  port: :")

        # Act & Assert
        with pytest.raises(ConfigError, match="Invalid YAML"):
            ConfigLoader(environ={}).load(config_file)

    def test_non_mapping_yaml_raises(self, tmp_path: Path) -> None:
        config_file = tmp_path / "list.yaml"
        config_file.write_text("- a\n- b\n")

        with pytest.raises(ConfigError, match="must contain a mapping"):
            ConfigLoader(environ={}).load(config_file)

    def test_load_config_convenience(self, sample_config_path: Path) -> None:
        config = load_config(sample_config_path, {"user": "admin", "password": "pw"})

        assert config.credentials.username == "admin"


class TestSelection:
    """Test cases for category selection."""

    def test_stats_and_skipstats_exclusive(self) -> None:
        with pytest.raises(ConfigError, match="can't set both"):
            ConfigLoader(environ={}).load(overrides={"stats": "CPU", "skip_stats": "GC"})

    def test_skip_stats(self) -> None:
        config = ConfigLoader(environ={}).load(overrides={"skip_stats": "INITIATOR,idletime"})

        selected = config.enabled_selectors()
        assert StatsSelector.INITIATOR not in selected
        assert StatsSelector.IDLETIME not in selected
        assert len(selected) == len(StatsSelector) - 2

    def test_unknown_category_rejected(self) -> None:
        with pytest.raises(ConfigError, match="REPLICATION"):
            ConfigLoader(environ={}).load(overrides={"stats": "CPU,REPLICATION"})

    def test_skipping_everything_rejected(self) -> None:
        all_names = ",".join(s.value for s in StatsSelector)

        with pytest.raises(ConfigError, match="no statistics to poll"):
            ConfigLoader(environ={}).load(overrides={"skip_stats": all_names})

    def test_invalid_port_rejected(self) -> None:
        with pytest.raises(ConfigError):
            ConfigLoader(environ={}).load(overrides={"port": 70000})

    def test_invalid_log_level_rejected(self) -> None:
        with pytest.raises(ConfigError, match="invalid log level"):
            ConfigLoader(environ={}).load(overrides={"log_level": "chatty"})


class TestCredentials:
    """Test cases for credentials resolution."""

    def test_credentials_file(self, tmp_path: Path) -> None:
        """
        SCENARIO: Credentials file with username and password
        EXPECTED: Credentials taken from the file
        """
        # Arrange
        creds = tmp_path / "creds.properties"
        creds.write_text("# agent login\nusername = monitor\npassword: s3cret\n")

        # Act
        config = ConfigLoader(base_path=tmp_path, environ={}).load(
            overrides={"credentials_file": "creds.properties"}
        )

        # Assert
        assert config.user == "monitor"
        assert config.password == "s3cret"

    def test_credentials_file_with_user_rejected(self, tmp_path: Path) -> None:
        creds = tmp_path / "creds.properties"
        creds.write_text("username=monitor\n")

        with pytest.raises(ConfigError, match="can't specify credentials file"):
            ConfigLoader(environ={}).load(
                overrides={"credentials_file": str(creds), "user": "admin"}
            )

    def test_credentials_file_without_username_rejected(self, tmp_path: Path) -> None:
        creds = tmp_path / "creds.properties"
        creds.write_text("password=only\n")

        with pytest.raises(ConfigError, match="'username' not found"):
            ConfigLoader(environ={}).load(overrides={"credentials_file": str(creds)})

    def test_unreadable_credentials_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read credentials file"):
            read_credentials_file(tmp_path / "missing.properties")

    def test_environment_fallback(self) -> None:
        """
        SCENARIO: No user or password given, VOLTDB_USERNAME set
        EXPECTED: Credentials taken from the environment
        """
        # Arrange
        environ = {"VOLTDB_USERNAME": "envuser", "VOLTDB_PASSWORD": "envpw"}

        # Act
        config = ConfigLoader(environ=environ).load()

        # Assert
        assert config.user == "envuser"
        assert config.password == "envpw"

    def test_explicit_user_beats_environment(self) -> None:
        environ = {"VOLTDB_USERNAME": "envuser", "VOLTDB_PASSWORD": "envpw"}

        config = ConfigLoader(environ=environ).load(overrides={"user": "cli"})

        assert config.user == "cli"
        assert config.password == ""

    def test_password_masked_in_repr(self) -> None:
        config = AgentConfig(user="admin", password="hunter2")

        assert "hunter2" not in repr(config.credentials)

    def test_read_properties_file(self, tmp_path: Path) -> None:
        path = tmp_path / "creds"
        path.write_text("! comment\n\nusername=a=b\nflag\n")

        props = read_credentials_file(path)

        assert props == {"username": "a=b", "flag": ""}


class TestTls:
    """Test cases for TLS settings."""

    def test_ssl_file_enables_tls(self, tmp_path: Path) -> None:
        # Arrange
        ssl_file = tmp_path / "ssl.properties"
        ssl_file.write_text("truststore=/etc/voltdb/truststore\n")

        # Act
        config = ConfigLoader(environ={}).load(overrides={"ssl_config_file": str(ssl_file)})

        # Assert
        assert config.tls.enabled is True
        assert config.tls.config_file == str(ssl_file)

    def test_unreadable_ssl_file_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="cannot read SSL configuration file"):
            ConfigLoader(environ={}).load(
                overrides={"ssl_config_file": str(tmp_path / "missing.properties")}
            )
