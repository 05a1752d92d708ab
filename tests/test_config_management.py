"""Test suite for config management functionality.

This test suite validates:
- Config path resolution (argument, environment variable, default location)
- Config loader validation
- CLI config commands
"""
import json
from argparse import Namespace
from pathlib import Path

import pytest
import yaml

from gcp_kms_facade.secrets.domains import config_loader
from gcp_kms_facade.secrets.domains.config_loader import ConfigError


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Fixture to create a temporary home directory for testing."""
    fake_home = tmp_path / "home"
    fake_home.mkdir()
    monkeypatch.setenv("HOME", str(fake_home))
    monkeypatch.setattr(Path, "home", lambda: fake_home)
    monkeypatch.delenv(config_loader.CONFIG_ENV_VAR, raising=False)
    return fake_home


@pytest.fixture
def default_config_file(temp_home):
    """Path of the default config file (not created)."""
    path = temp_home / ".config" / "gcp-kms-facade" / "config.yml"
    path.parent.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def service_account_file(tmp_path):
    sa_file = tmp_path / "test-sa.json"
    sa_file.write_text(json.dumps({"type": "service_account"}))
    return sa_file


@pytest.fixture
def sample_config_content(service_account_file):
    """Sample valid config content."""
    return {
        "gcp": {
            "project_id": "test-project"
        },
        "authentication": {
            "type": "service_account",
            "service_account_path": str(service_account_file)
        },
        "kms": {
            "secret_names": {
                "kms_credentials": "google_kms_credentials",
                "kms_keyring": "google_kms_keyring",
                "kms_app_secret": "google_kms_app_secret",
            }
        }
    }


def _write(path, content):
    with open(path, 'w') as f:
        yaml.dump(content, f)
    return path


class TestConfigPathResolution:
    """Test suite for resolve_config_path."""

    def test_explicit_path_wins(self, temp_home, monkeypatch, tmp_path):
        monkeypatch.setenv(config_loader.CONFIG_ENV_VAR, str(tmp_path / "env.yml"))

        path, source = config_loader.resolve_config_path(str(tmp_path / "cli.yml"))

        assert path == tmp_path / "cli.yml"
        assert source == "argument"

    def test_environment_variable(self, temp_home, monkeypatch, tmp_path):
        monkeypatch.setenv(config_loader.CONFIG_ENV_VAR, str(tmp_path / "env.yml"))

        path, source = config_loader.resolve_config_path()

        assert path == tmp_path / "env.yml"
        assert source == "environment"

    def test_default_location(self, temp_home, default_config_file):
        path, source = config_loader.resolve_config_path()

        assert path == default_config_file
        assert source == "default"

    def test_default_location_follows_home(self, temp_home, monkeypatch, tmp_path):
        """Test the default path is computed per call, not cached at import."""
        other_home = tmp_path / "other"
        monkeypatch.setattr(Path, "home", lambda: other_home)

        path, _ = config_loader.resolve_config_path()

        assert path == other_home / ".config" / "gcp-kms-facade" / "config.yml"


class TestConfigLoader:
    """Test suite for load_config."""

    def test_load_config_success(self, default_config_file, sample_config_content):
        _write(default_config_file, sample_config_content)

        config = config_loader.load_config()

        assert config["gcp"]["project_id"] == "test-project"
        assert config["kms"]["secret_names"]["kms_keyring"] == "google_kms_keyring"

    def test_load_config_from_explicit_path(self, temp_home, tmp_path):
        config_file = _write(tmp_path / "custom.yml", {"gcp": {"project_id": "custom-project"}})

        config = config_loader.load_config(str(config_file))

        assert config["gcp"]["project_id"] == "custom-project"
        assert config["kms"] == {"secret_names": {}}

    def test_missing_file(self, temp_home):
        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "Configuration file not found" in str(exc_info.value)

    def test_empty_config_file(self, default_config_file):
        default_config_file.write_text("")

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "empty" in str(exc_info.value).lower()

    def test_invalid_yaml_config(self, default_config_file):
        default_config_file.write_text("invalid: yaml: content: [")

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "parse" in str(exc_info.value).lower()

    def test_non_mapping_config(self, default_config_file):
        default_config_file.write_text("- just\n- a list\n")

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "mapping" in str(exc_info.value)

    def test_missing_project_id(self, default_config_file):
        _write(default_config_file, {"gcp": {}})

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "gcp.project_id" in str(exc_info.value)

    def test_unsupported_auth_type(self, default_config_file, sample_config_content):
        sample_config_content["authentication"]["type"] = "oauth2"
        _write(default_config_file, sample_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "Unsupported authentication type" in str(exc_info.value)

    def test_service_account_file_must_exist(self, default_config_file, sample_config_content):
        sample_config_content["authentication"]["service_account_path"] = "/nonexistent/sa.json"
        _write(default_config_file, sample_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "Service account file not found" in str(exc_info.value)

    def test_missing_service_account_path(self, default_config_file, sample_config_content):
        del sample_config_content["authentication"]["service_account_path"]
        _write(default_config_file, sample_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "service_account_path" in str(exc_info.value)

    def test_unknown_logical_secret_name(self, default_config_file, sample_config_content):
        sample_config_content["kms"]["secret_names"]["kms_pepper"] = "pepper"
        _write(default_config_file, sample_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "kms_pepper" in str(exc_info.value)

    def test_invalid_secret_id(self, default_config_file, sample_config_content):
        sample_config_content["kms"]["secret_names"]["kms_keyring"] = "key.ring"
        _write(default_config_file, sample_config_content)

        with pytest.raises(ConfigError) as exc_info:
            config_loader.load_config()

        assert "Invalid secret id" in str(exc_info.value)

    def test_secret_names_must_be_mapping(self, default_config_file, sample_config_content):
        sample_config_content["kms"]["secret_names"] = ["kms_keyring"]
        _write(default_config_file, sample_config_content)

        with pytest.raises(ConfigError):
            config_loader.load_config()


class TestConfigCLI:
    """Test suite for the config show command."""

    def test_config_show_default(self, default_config_file, sample_config_content, capsys):
        from gcp_kms_facade.cli.main import cmd_config_show

        _write(default_config_file, sample_config_content)
        cmd_config_show(Namespace(config=None))

        captured = capsys.readouterr()
        assert str(default_config_file) in captured.out
        assert "Source: default" in captured.out
        assert "not found" not in captured.out

    def test_config_show_missing_file(self, temp_home, tmp_path, capsys):
        from gcp_kms_facade.cli.main import cmd_config_show

        cmd_config_show(Namespace(config=str(tmp_path / "missing.yml")))

        captured = capsys.readouterr()
        assert "Source: argument (file not found)" in captured.out
