"""Configuration models with Pydantic validation."""

from layerkit.domain.config.app import AppConfig
from layerkit.domain.config.backoff import BackoffConfig
from layerkit.domain.config.layer import LayerConfig

__all__ = [
    "AppConfig",
    "BackoffConfig",
    "LayerConfig",
]
