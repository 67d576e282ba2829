"""Layer API connection configuration model."""

from typing import Optional

from pydantic import BaseModel, Field


class LayerConfig(BaseModel):
    """Configuration for the Layer API connection.

    Attributes:
        app_id: Layer application ID (None = from LAYER_APP_ID env)
        token: Platform API token (None = from LAYER_TOKEN env)
        api_version: API version sent in the Accept header
        base_url: API root URL
        timeout: Per-attempt transport timeout in seconds (None = no timeout)
    """

    app_id: Optional[str] = None
    token: Optional[str] = None
    api_version: str = "1.0"
    base_url: str = "https://api.layer.com"
    timeout: Optional[float] = Field(30.0, gt=0.0)
