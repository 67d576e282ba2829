"""Conversation model - a single conversation resource from the Layer API"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, JsonValue

from layerkit.domain.models.base import Resource
from layerkit.domain.models.message import Message


class Conversation(Resource):
    """Represents a conversation resource

    When creating a conversation only ``participants``, ``distinct`` and
    ``metadata`` are meaningful; the service fills in the rest.
    """

    id: Optional[str] = None
    url: str = ""
    messages_url: str = ""
    created_at: Optional[datetime] = None
    participants: List[str] = Field(default_factory=list)
    metadata: Dict[str, JsonValue] = Field(default_factory=dict)
    distinct: bool = False
    last_message: Optional[Message] = None
    unread_message_count: int = 0
