"""Main application configuration model."""

from pydantic import BaseModel, ConfigDict, Field

from layerkit.domain.config.backoff import BackoffConfig
from layerkit.domain.config.layer import LayerConfig


class AppConfig(BaseModel):
    """Main application configuration.

    Root model aggregating all configuration sections. Validation is
    performed at load time to fail fast on configuration errors.

    Attributes:
        layer: Layer API connection configuration
        backoff: Retry/backoff configuration
    """

    layer: LayerConfig = Field(default_factory=LayerConfig)
    backoff: BackoffConfig = Field(default_factory=BackoffConfig)

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",  # Reject unknown sections
        json_schema_extra={
            "example": {
                "layer": {
                    "app_id": "00000000-0000-0000-0000-000000000000",
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
        },
    )
