"""Tests for configuration loading and server address policy."""

from pathlib import Path

import pytest

from smartui_sdk.config import (
    DEFAULT_SERVER_ADDRESS,
    AddressPolicy,
    Config,
    load_config,
    resolve_server_address,
)
from smartui_sdk.errors import ConfigurationError


class TestResolveServerAddress:
    """Explicit policy for an unset server address."""

    def test_configured_address_wins(self):
        config = Config(server_address="http://10.0.0.5:8080/", address_policy="fail-if-unset")
        assert resolve_server_address(config) == "http://10.0.0.5:8080"

    def test_default_to_localhost(self):
        assert resolve_server_address(Config()) == DEFAULT_SERVER_ADDRESS

    def test_fail_if_unset(self):
        config = Config(address_policy=AddressPolicy.FAIL_IF_UNSET)
        with pytest.raises(ConfigurationError, match="SMARTUI_SERVER_ADDRESS"):
            resolve_server_address(config)

    def test_env_variable(self, monkeypatch):
        monkeypatch.setenv("SMARTUI_SERVER_ADDRESS", "http://ci-host:49152")
        assert resolve_server_address(Config()) == "http://ci-host:49152"


class TestLoadConfig:
    """YAML and environment sources."""

    def test_defaults(self):
        config = Config()
        assert config.timeout == 30.0
        assert config.raise_errors is True
        assert config.tracker.retry_attempts == 3
        assert config.tracker.results_dir == Path("test-results")
        assert config.upload.enabled is False

    def test_yaml_under_smartui_key(self, tmp_path):
        path = tmp_path / "smartui.yaml"
        path.write_text(
            "smartui:\n"
            "  server_address: http://yaml-host:1234\n"
            "  raise_errors: false\n"
            "  tracker:\n"
            "    retry_attempts: 5\n"
        )

        config = load_config(path)

        assert config.server_address == "http://yaml-host:1234"
        assert config.raise_errors is False
        assert config.tracker.retry_attempts == 5

    def test_environment_overrides_yaml(self, tmp_path, monkeypatch):
        path = tmp_path / "smartui.yaml"
        path.write_text("server_address: http://yaml-host:1234\n")
        monkeypatch.setenv("SMARTUI_SERVER_ADDRESS", "http://env-host:4321")
        monkeypatch.setenv("SMARTUI_TRACKER__RETRY_ATTEMPTS", "7")

        config = load_config(path)

        assert config.server_address == "http://env-host:4321"
        assert config.tracker.retry_attempts == 7

    def test_discovers_file_in_cwd(self, tmp_path, monkeypatch):
        (tmp_path / ".smartui.yaml").write_text("interactive_mode: true\n")
        monkeypatch.chdir(tmp_path)

        assert load_config().interactive_mode is True
