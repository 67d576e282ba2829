"""Build authenticated requests for the Layer API"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Dict, Optional, Sequence

import requests
from pydantic import BaseModel

from layerkit.domain.errors import RequestBuildError

RESOURCE_MEDIA_TYPE = "application/vnd.layer+json"
WEBHOOKS_MEDIA_TYPE = "application/vnd.layer.webhooks+json"
PATCH_CONTENT_TYPE = "application/vnd.layer-patch+json"
JSON_CONTENT_TYPE = "application/json"


class RequestKind(str, Enum):
    """What a request does, which decides verb, content type and overrides"""

    READ = "read"
    CREATE = "create"
    REPLACE = "replace"
    PATCH = "patch"
    DELETE = "delete"

    @property
    def http_method(self) -> str:
        return _HTTP_METHODS[self]

    @property
    def has_body(self) -> bool:
        return self in (RequestKind.CREATE, RequestKind.REPLACE, RequestKind.PATCH)


# PATCH travels as POST with X-HTTP-Method-Override
_HTTP_METHODS = {
    RequestKind.READ: "GET",
    RequestKind.CREATE: "POST",
    RequestKind.REPLACE: "PUT",
    RequestKind.PATCH: "POST",
    RequestKind.DELETE: "DELETE",
}


def accept_header(version: str, webhooks: bool = False) -> str:
    media_type = WEBHOOKS_MEDIA_TYPE if webhooks else RESOURCE_MEDIA_TYPE
    return f"{media_type}; version={version}"


def _to_jsonable(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.to_payload() if hasattr(body, "to_payload") else body.model_dump(mode="json")
    if isinstance(body, (list, tuple)):
        return [_to_jsonable(item) for item in body]
    return body


def encode_body(body: Any) -> bytes:
    """Serialize a request body (models, lists of models, plain JSON) to bytes

    Raises:
        RequestBuildError: If the body cannot be represented as JSON
    """
    try:
        return json.dumps(_to_jsonable(body), allow_nan=False).encode("utf-8")
    except (TypeError, ValueError) as e:
        raise RequestBuildError(f"Failed to serialize request body: {e}") from e


def build_request(
    kind: RequestKind,
    url: str,
    *,
    token: str,
    version: str,
    body: Any = None,
    webhooks: bool = False,
    params: Optional[Dict[str, Any]] = None,
) -> requests.PreparedRequest:
    """Build a fully formed request for the Layer API

    Args:
        kind: Request kind (read/create/replace/patch/delete)
        url: Target URL
        token: Bearer token
        version: API version for the Accept header
        body: JSON-encodable body, pydantic model or list of models.
            For PATCH it is a sequence of EditRequest instructions.
        webhooks: Use the webhooks media type instead of the resource one
        params: Optional query parameters

    Returns:
        Prepared request ready for send_with_backoff

    Raises:
        RequestBuildError: If the body cannot be serialized
    """
    headers = {
        "Authorization": f"Bearer {token}",
        "Accept": accept_header(version, webhooks=webhooks),
    }

    data: Optional[bytes] = None
    if kind.has_body:
        if kind is RequestKind.PATCH:
            if not isinstance(body, Sequence) or isinstance(body, (str, bytes)):
                raise RequestBuildError("PATCH body must be a sequence of edit instructions")
            headers["X-HTTP-Method-Override"] = "PATCH"
            headers["Content-Type"] = PATCH_CONTENT_TYPE
        else:
            headers["Content-Type"] = JSON_CONTENT_TYPE
        data = encode_body(body)
    elif body is not None:
        raise RequestBuildError(f"{kind.value} requests do not carry a body")

    try:
        return requests.Request(
            kind.http_method, url, headers=headers, data=data, params=params or None
        ).prepare()
    except requests.exceptions.RequestException as e:
        raise RequestBuildError(f"Invalid request for {url}: {e}") from e
