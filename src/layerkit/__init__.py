"""layerkit - client library for the Layer Platform API"""

from layerkit.domain.errors import (
    AggregatedFailure,
    AttemptFailure,
    DecodeError,
    HTTPStatusError,
    LayerError,
    RequestBuildError,
    TransportError,
    UnexpectedStatusError,
)
from layerkit.domain.models import (
    Conversation,
    EditRequest,
    Identity,
    Message,
    PatchOperation,
    WebHook,
    parse_webhook_payload,
)
from layerkit.infrastructure.http_client import (
    AttemptRecord,
    BackoffPolicy,
    backoff_policy_from_dict,
    log_attempt,
    send_with_backoff,
)
from layerkit.infrastructure.layer.client import LayerClient, extract_uuid
from layerkit.infrastructure.request_builder import RequestKind, build_request

__version__ = "0.1.0"

__all__ = [
    "AggregatedFailure",
    "AttemptFailure",
    "AttemptRecord",
    "BackoffPolicy",
    "Conversation",
    "DecodeError",
    "EditRequest",
    "HTTPStatusError",
    "Identity",
    "LayerClient",
    "LayerError",
    "Message",
    "PatchOperation",
    "RequestBuildError",
    "RequestKind",
    "TransportError",
    "UnexpectedStatusError",
    "WebHook",
    "backoff_policy_from_dict",
    "build_request",
    "extract_uuid",
    "log_attempt",
    "parse_webhook_payload",
    "send_with_backoff",
]
