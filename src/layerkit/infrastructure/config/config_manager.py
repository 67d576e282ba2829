"""Configuration manager for loading and validating .layerkit.yml"""

import copy
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import ValidationError

from layerkit.domain.config import AppConfig, BackoffConfig, LayerConfig

logger = logging.getLogger(__name__)

CONFIG_FILE_NAME = ".layerkit.yml"

# Environment variable -> key in the "layer" section
ENV_OVERRIDES = {
    "LAYER_APP_ID": "app_id",
    "LAYER_TOKEN": "token",
    "LAYER_API_VERSION": "api_version",
    "LAYER_BASE_URL": "base_url",
}


class ConfigurationError(Exception):
    """Configuration validation error."""

    pass


class ConfigManager:
    """Manages configuration from .layerkit.yml and environment variables

    Configuration priority (later wins):
    1. Default values (defined in Pydantic models)
    2. .layerkit.yml file (searched from current directory upwards)
    3. Environment variables (LAYER_*)
    4. CLI arguments (handled by CLI layer)
    """

    DEFAULT_CONFIG = {
        "layer": {
            "app_id": None,
            "token": None,
            "api_version": "1.0",
            "base_url": "https://api.layer.com",
            "timeout": 30.0,
        },
        "backoff": {
            "max_attempts": 3,
            "min_delay": 0.1,
            "max_delay": 5.0,
        },
    }

    def __init__(self, config_path: Optional[Path] = None):
        """Initialize config manager

        Args:
            config_path: Path to .layerkit.yml (searches from current dir if None)

        Raises:
            ConfigurationError: If the file cannot be parsed or validation fails
        """
        if isinstance(config_path, str):
            config_path = Path(config_path)
        self.config_path = config_path or self._find_config_file()
        try:
            self.config: AppConfig = self._load_config()
        except ValidationError as e:
            errors = []
            for error in e.errors():
                field = ".".join(str(x) for x in error["loc"])
                errors.append(f"  - {field}: {error['msg']}")
            raise ConfigurationError(
                "Configuration validation failed:\n" + "\n".join(errors)
            ) from e

    def _find_config_file(self) -> Optional[Path]:
        current = Path.cwd()
        for parent in [current] + list(current.parents):
            config_file = parent / CONFIG_FILE_NAME
            if config_file.exists():
                logger.info(f"Found config file: {config_file}")
                return config_file
        logger.debug(f"No {CONFIG_FILE_NAME} found, using defaults")
        return None

    def _load_config(self) -> AppConfig:
        """Load configuration from file and environment, then validate

        Raises:
            ValidationError: If configuration is invalid
            ConfigurationError: If the file is not valid YAML
        """
        config_dict = copy.deepcopy(self.DEFAULT_CONFIG)

        if self.config_path and self.config_path.exists():
            try:
                with open(self.config_path, "r", encoding="utf-8") as f:
                    file_config = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigurationError(f"Invalid YAML in {self.config_path}: {e}") from e
            if not isinstance(file_config, dict):
                raise ConfigurationError(f"{self.config_path} must contain a mapping")
            config_dict = self._merge_config(config_dict, file_config)
            logger.info(f"Loaded configuration from {self.config_path}")

        config_dict = self._apply_env_overrides(config_dict)
        return AppConfig(**config_dict)

    def _merge_config(self, base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """Recursively merge configuration dictionaries"""
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._merge_config(result[key], value)
            else:
                result[key] = value
        return result

    def _apply_env_overrides(self, config: Dict[str, Any]) -> Dict[str, Any]:
        layer = config.setdefault("layer", {})
        if not isinstance(layer, dict):
            # Leave it to validation to report the bad section
            return config
        for env_name, key in ENV_OVERRIDES.items():
            value = os.getenv(env_name)
            if value:
                layer[key] = value
        return config

    def get_layer_config(self) -> LayerConfig:
        """Get Layer API connection configuration"""
        return self.config.layer

    def get_backoff_config(self) -> BackoffConfig:
        """Get backoff configuration"""
        return self.config.backoff

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by key (supports dot notation)

        Args:
            key: Configuration key (e.g., "layer.app_id" or "backoff")
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config.model_dump()
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value
