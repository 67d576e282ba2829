"""Message model - a single message resource from the Layer API"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import Field, JsonValue

from layerkit.domain.models.base import Resource


class MessagePart(Resource):
    """One MIME part of a message"""

    id: Optional[str] = None
    mime_type: str = "text/plain"
    content: Optional[Dict[str, JsonValue]] = None  # Rich content descriptor for large parts
    body: str = ""


class Sender(Resource):
    """Sender of a message (user or named system sender)"""

    name: Optional[str] = None
    user_id: Optional[str] = None


class ConversationRef(Resource):
    """Reference from a message back to its conversation"""

    id: str = ""
    url: str = ""


class Message(Resource):
    """Represents a message resource"""

    id: Optional[str] = None
    url: str = ""
    is_unread: bool = False
    parts: List[MessagePart] = Field(default_factory=list)
    received_at: Optional[datetime] = None
    recipient_status: Dict[str, str] = Field(default_factory=dict)
    sender: Sender = Field(default_factory=Sender)
    sent_at: Optional[datetime] = None
    conversation: Optional[ConversationRef] = None

    @classmethod
    def text(cls, body: str, *, user_id: Optional[str] = None, name: Optional[str] = None) -> "Message":
        """Build a single-part plain text message ready to send"""
        return cls(
            parts=[MessagePart(mime_type="text/plain", body=body)],
            sender=Sender(name=name, user_id=user_id),
        )
