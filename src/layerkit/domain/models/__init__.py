"""Layer API resource models"""

from layerkit.domain.models.conversation import Conversation
from layerkit.domain.models.edit import EditRequest, PatchOperation
from layerkit.domain.models.identity import Identity
from layerkit.domain.models.message import ConversationRef, Message, MessagePart, Sender
from layerkit.domain.models.webhook import (
    Actor,
    WebHook,
    WebHookConversationPayload,
    WebHookEvent,
    WebHookMessagePayload,
    parse_webhook_payload,
)

__all__ = [
    "Actor",
    "Conversation",
    "ConversationRef",
    "EditRequest",
    "Identity",
    "Message",
    "MessagePart",
    "PatchOperation",
    "Sender",
    "WebHook",
    "WebHookConversationPayload",
    "WebHookEvent",
    "WebHookMessagePayload",
    "parse_webhook_payload",
]
