"""WebHook models - webhook registrations and the payloads Layer delivers"""

import json
from datetime import datetime
from typing import Any, Dict, List, Optional, Union

from pydantic import Field, JsonValue, ValidationError

from layerkit.domain.errors import DecodeError
from layerkit.domain.models.base import Resource
from layerkit.domain.models.conversation import Conversation
from layerkit.domain.models.message import Message


class WebHook(Resource):
    """Represents a webhook registration

    To register one, ``target_url``, ``events`` and ``secret`` are required;
    ``config`` is echoed back in every delivery.
    """

    id: Optional[str] = None
    url: str = ""
    status: str = ""
    status_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    version: str = ""
    target_url: str = ""
    events: List[str] = Field(default_factory=list)
    secret: str = ""
    config: Dict[str, JsonValue] = Field(default_factory=dict)


class Actor(Resource):
    name: Optional[str] = None
    user_id: Optional[str] = None


class WebHookEvent(Resource):
    """Information about the event that caused a webhook to fire"""

    id: str = ""
    created_at: Optional[datetime] = None
    type: str = ""
    actor: Actor = Field(default_factory=Actor)


class WebHookMessagePayload(Resource):
    """Body of a message.* webhook delivery"""

    event: WebHookEvent
    message: Message
    config: Dict[str, JsonValue] = Field(default_factory=dict)


class WebHookConversationPayload(Resource):
    """Body of a conversation.* webhook delivery"""

    event: WebHookEvent
    conversation: Conversation
    config: Dict[str, JsonValue] = Field(default_factory=dict)


WebHookPayload = Union[WebHookMessagePayload, WebHookConversationPayload]


def parse_webhook_payload(raw: Union[bytes, str, Dict[str, Any]]) -> WebHookPayload:
    """Decode the body of a webhook delivery

    Args:
        raw: Request body as received (bytes/str) or already-parsed JSON

    Returns:
        WebHookMessagePayload or WebHookConversationPayload

    Raises:
        DecodeError: If the body is not JSON or matches neither payload shape
    """
    if isinstance(raw, (bytes, str)):
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise DecodeError(f"Webhook payload is not valid JSON: {e}") from e
    else:
        data = raw

    if not isinstance(data, dict):
        raise DecodeError(f"Webhook payload must be a JSON object, got {type(data).__name__}")

    try:
        if "message" in data:
            return WebHookMessagePayload.model_validate(data)
        if "conversation" in data:
            return WebHookConversationPayload.model_validate(data)
    except ValidationError as e:
        raise DecodeError(f"Invalid webhook payload: {e}") from e

    raise DecodeError("Webhook payload has neither a message nor a conversation")
