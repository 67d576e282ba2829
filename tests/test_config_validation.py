"""Tests for configuration validation with Pydantic."""

import tempfile
from pathlib import Path

import pytest
import yaml
from pydantic import ValidationError

from layerkit.domain.config import AppConfig, BackoffConfig, LayerConfig
from layerkit.infrastructure.config.config_manager import (
    ENV_OVERRIDES,
    ConfigManager,
    ConfigurationError,
)
from layerkit.infrastructure.http_client import BackoffPolicy


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Run every test in an empty directory without LAYER_* variables"""
    for name in ENV_OVERRIDES:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


class TestLayerConfigValidation:
    """Tests for LayerConfig validation."""

    def test_defaults(self):
        config = LayerConfig()
        assert config.app_id is None
        assert config.token is None
        assert config.api_version == "1.0"
        assert config.base_url == "https://api.layer.com"
        assert config.timeout == 30.0

    def test_timeout_must_be_positive(self):
        """Test zero timeout is rejected"""
        with pytest.raises(ValidationError, match="timeout"):
            LayerConfig(timeout=0)

    def test_timeout_can_be_disabled(self):
        assert LayerConfig(timeout=None).timeout is None


class TestBackoffConfigValidation:
    """Tests for BackoffConfig validation."""

    def test_valid_backoff_config(self):
        config = BackoffConfig(max_attempts=5, min_delay=0.5, max_delay=10.0)
        assert config.max_attempts == 5
        assert config.min_delay == 0.5

    def test_zero_attempts_allowed(self):
        """Zero attempts still means one attempt at runtime"""
        assert BackoffConfig(max_attempts=0).max_attempts == 0

    def test_max_attempts_too_high(self):
        with pytest.raises(ValidationError, match="max_attempts"):
            BackoffConfig(max_attempts=21)

    def test_negative_min_delay(self):
        with pytest.raises(ValidationError, match="min_delay"):
            BackoffConfig(min_delay=-0.1)

    def test_negative_max_delay(self):
        with pytest.raises(ValidationError, match="max_delay"):
            BackoffConfig(max_delay=-1)

    def test_max_below_min_is_accepted(self):
        config = BackoffConfig(min_delay=2.0, max_delay=1.0)
        assert config.to_policy().delay_before(1) == 1.0

    def test_to_policy(self):
        policy = BackoffConfig(max_attempts=4, min_delay=0.2, max_delay=3.0).to_policy()
        assert policy == BackoffPolicy(max_attempts=4, min_delay=0.2, max_delay=3.0)


class TestAppConfigValidation:
    """Tests for AppConfig validation."""

    def test_valid_app_config(self):
        config = AppConfig()
        assert isinstance(config.layer, LayerConfig)
        assert isinstance(config.backoff, BackoffConfig)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            AppConfig(metrics={"enabled": True})

    def test_nested_validation(self):
        with pytest.raises(ValidationError, match="max_attempts"):
            AppConfig(backoff={"max_attempts": 100})

    def test_assignment_is_validated(self):
        config = AppConfig()
        with pytest.raises(ValidationError):
            config.backoff = "fast"


class TestConfigManagerValidation:
    """Tests for ConfigManager validation."""

    def test_load_valid_config_from_file(self):
        """Test loading valid configuration from file"""
        config_data = {
            "layer": {"app_id": "app-1", "token": "secret", "api_version": "2.0"},
            "backoff": {"max_attempts": 5},
        }

        with tempfile.NamedTemporaryFile(mode="w", suffix=".yml", delete=False) as f:
            yaml.dump(config_data, f)
            config_path = f.name

        try:
            manager = ConfigManager(config_path=config_path)
            assert manager.config.layer.app_id == "app-1"
            assert manager.config.layer.api_version == "2.0"
            # Values missing from the file keep their defaults
            assert manager.config.layer.base_url == "https://api.layer.com"
            assert manager.config.backoff.max_attempts == 5
            assert manager.config.backoff.min_delay == 0.1
        finally:
            Path(config_path).unlink()

    def test_load_invalid_config_raises_error(self, tmp_path):
        config_path = tmp_path / "bad.yml"
        config_path.write_text(yaml.dump({"backoff": {"min_delay": -5}}), encoding="utf-8")

        with pytest.raises(ConfigurationError, match="backoff.min_delay"):
            ConfigManager(config_path=config_path)

    def test_invalid_yaml_raises_error(self, tmp_path):
        config_path = tmp_path / "broken.yml"
        config_path.write_text("layer: [unclosed\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            ConfigManager(config_path=config_path)

    def test_non_mapping_file_raises_error(self, tmp_path):
        config_path = tmp_path / "list.yml"
        config_path.write_text("- a\n- b\n", encoding="utf-8")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager(config_path=config_path)

    def test_empty_file_uses_defaults(self, tmp_path):
        config_path = tmp_path / "empty.yml"
        config_path.write_text("", encoding="utf-8")

        manager = ConfigManager(config_path=config_path)
        assert manager.config == AppConfig()

    def test_default_config_is_valid(self):
        """Test default configuration is valid"""
        manager = ConfigManager()
        assert manager.config_path is None
        assert isinstance(manager.config, AppConfig)
        assert manager.config.layer.token is None

    def test_config_file_found_in_parent_directory(self, tmp_path, monkeypatch):
        (tmp_path / ".layerkit.yml").write_text(
            yaml.dump({"layer": {"app_id": "from-parent"}}), encoding="utf-8"
        )
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)

        manager = ConfigManager()
        assert manager.config_path == tmp_path / ".layerkit.yml"
        assert manager.config.layer.app_id == "from-parent"

    def test_get_typed_config_sections(self):
        """Test getter methods return typed models"""
        manager = ConfigManager()

        assert isinstance(manager.get_layer_config(), LayerConfig)
        assert isinstance(manager.get_backoff_config(), BackoffConfig)

    def test_get_with_dot_notation(self):
        manager = ConfigManager()

        assert manager.get("backoff.max_attempts") == 3
        assert manager.get("layer.api_version") == "1.0"
        assert manager.get("layer.missing", "fallback") == "fallback"
        assert manager.get("nope") is None

    def test_env_overrides_work(self, monkeypatch, tmp_path):
        """Test environment variable overrides"""
        config_path = tmp_path / "cfg.yml"
        config_path.write_text(yaml.dump({"layer": {"token": "from-file"}}), encoding="utf-8")
        monkeypatch.setenv("LAYER_APP_ID", "env-app")
        monkeypatch.setenv("LAYER_TOKEN", "env-token")
        monkeypatch.setenv("LAYER_API_VERSION", "3.0")
        monkeypatch.setenv("LAYER_BASE_URL", "https://layer.internal.test")

        manager = ConfigManager(config_path=config_path)
        assert manager.config.layer.app_id == "env-app"
        assert manager.config.layer.token == "env-token"
        assert manager.config.layer.api_version == "3.0"
        assert manager.config.layer.base_url == "https://layer.internal.test"

    def test_empty_env_value_is_ignored(self, monkeypatch):
        monkeypatch.setenv("LAYER_API_VERSION", "")

        manager = ConfigManager()
        assert manager.config.layer.api_version == "1.0"
