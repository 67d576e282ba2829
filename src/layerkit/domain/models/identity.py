"""Identity model - a user known to the Layer API"""

from typing import Dict, Optional

from pydantic import Field, JsonValue

from layerkit.domain.models.base import Resource


class Identity(Resource):
    """Represents a user identity"""

    display_name: str = ""
    avatar_url: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    phone_number: Optional[str] = None
    email_address: Optional[str] = None
    metadata: Dict[str, JsonValue] = Field(default_factory=dict)
