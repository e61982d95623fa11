"""Tests for configuration models and YAML loading."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from labrador.config.models import (
    ConnectionConfig,
    DatabaseType,
    EnvironmentSettings,
    LabradorConfig,
    resolve_user,
)
from labrador.config.parser import ConfigParser, create_sample_config, get_config, validate_config_file
from labrador.exceptions import ConfigurationError


def write_yaml(path: Path, content) -> Path:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump(content, f)
    return path


class TestConnectionConfig:

    def test_defaults(self) -> None:
        config = ConnectionConfig(database="browse")
        assert config.type == DatabaseType.POSTGRESQL
        assert config.host == "localhost"
        assert config.port is None
        assert config.user is None
        assert config.options == {}

    def test_aliases(self) -> None:
        config = ConnectionConfig(driver="postgresql", username="labrador", database="browse")
        assert config.user == "labrador"

    def test_blank_user_is_missing(self) -> None:
        assert ConnectionConfig(database="browse", user="").user is None

    @pytest.mark.parametrize("port", [0, 70000])
    def test_invalid_port(self, port: int) -> None:
        with pytest.raises(ValidationError):
            ConnectionConfig(database="browse", port=port)

    def test_database_required(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionConfig(host="localhost")

    def test_unsupported_type(self) -> None:
        with pytest.raises(ValidationError):
            ConnectionConfig(type="mysql", database="browse")


class TestResolveUser:

    def test_given_user(self) -> None:
        assert resolve_user("alice") == "alice"

    def test_os_user(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("labrador.config.models.getpass.getuser", lambda: "os_user")
        assert resolve_user(None) == "os_user"
        assert resolve_user("") == "os_user"


class TestLabradorConfig:

    def test_first_database_is_default(self) -> None:
        config = LabradorConfig(databases={"a": {"database": "a"}, "b": {"database": "b"}})
        assert config.default_database == "a"

    def test_unknown_default(self) -> None:
        with pytest.raises(ValidationError):
            LabradorConfig(databases={"a": {"database": "a"}}, default_database="b")


class TestConfigParser:

    def test_load(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "labrador.yaml", {
            "databases": {
                "adapter_test": {
                    "type": "postgresql",
                    "host": "localhost",
                    "port": 5432,
                    "database": "labrador_test",
                    "user": "labrador",
                },
            },
        })

        config = ConfigParser().load_config(path)

        assert isinstance(config, LabradorConfig)
        assert config.default_database == "adapter_test"
        assert config.databases["adapter_test"].port == 5432

    def test_environment_variables(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("TEST_DB_PASSWORD", "secret123")
        monkeypatch.delenv("TEST_DB_USER", raising=False)
        path = write_yaml(tmp_path / "labrador.yaml", {
            "databases": {
                "main": {
                    "database": "browse",
                    "user": "${TEST_DB_USER:-}",
                    "password": "${TEST_DB_PASSWORD}",
                },
            },
        })

        config = ConfigParser().load_config(path)

        assert config.databases["main"].password == "secret123"
        assert config.databases["main"].user is None

    def test_missing_environment_variable(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("UNSET_PASSWORD_VAR", raising=False)
        path = write_yaml(tmp_path / "labrador.yaml", {
            "databases": {"main": {"database": "browse", "password": "${UNSET_PASSWORD_VAR}"}},
        })
        with pytest.raises(ConfigurationError, match="UNSET_PASSWORD_VAR"):
            ConfigParser().load_config(path)

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigurationError):
            ConfigParser().load_config(tmp_path / "nope.yaml")

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "labrador.yaml"
        path.write_text("")
        with pytest.raises(ConfigurationError, match="empty"):
            ConfigParser().load_config(path)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        path = tmp_path / "labrador.yaml"
        path.write_text("databases: [unclosed")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigParser().load_config(path)

    def test_invalid_config(self, tmp_path: Path) -> None:
        path = write_yaml(tmp_path / "labrador.yaml", {"databases": {"main": {"port": 5432}}})
        with pytest.raises(ConfigurationError, match="validation failed"):
            ConfigParser().load_config(path)

    def test_default_location(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        (tmp_path / "config").mkdir()
        write_yaml(tmp_path / "config" / "database.yml", {"databases": {"main": {"database": "browse"}}})
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LABRADOR_CONFIG_FILE", raising=False)

        config = ConfigParser(EnvironmentSettings()).load_config()

        assert config.databases["main"].database == "browse"

    def test_config_file_setting(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = write_yaml(tmp_path / "custom.yaml", {"databases": {"env": {"database": "from_env"}}})
        monkeypatch.setenv("LABRADOR_CONFIG_FILE", str(path))
        monkeypatch.chdir(tmp_path)

        config = ConfigParser().load_config()

        assert config.default_database == "env"

    def test_no_config_anywhere(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.chdir(tmp_path)
        monkeypatch.delenv("LABRADOR_CONFIG_FILE", raising=False)
        with pytest.raises(ConfigurationError, match="No configuration file"):
            ConfigParser().load_config()

    def test_sample_config_is_valid(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("LABRADOR_DB_USER", raising=False)
        path = tmp_path / "sample.yaml"
        create_sample_config(path)

        assert validate_config_file(path)
        config = get_config(path)
        assert config.default_database == "dev"
        assert config.databases["dev"].user is None


class TestEnvironmentSettings:

    def test_prefix(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("LABRADOR_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("LABRADOR_DEBUG", "true")
        settings = EnvironmentSettings()
        assert settings.log_level == "DEBUG"
        assert settings.debug is True
