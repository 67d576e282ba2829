"""Tests for request building"""

from __future__ import annotations

import json

import pytest

from layerkit.domain.errors import RequestBuildError
from layerkit.domain.models import Conversation, EditRequest
from layerkit.infrastructure.request_builder import RequestKind, accept_header, build_request

URL = "https://api.layer.test/apps/app/conversations"


class TestHeaders:
    def test_read_request_headers(self):
        req = build_request(RequestKind.READ, URL, token="secret", version="1.0")

        assert req.method == "GET"
        assert req.url == URL
        assert req.headers["Authorization"] == "Bearer secret"
        assert req.headers["Accept"] == "application/vnd.layer+json; version=1.0"
        assert req.body is None
        assert "Content-Type" not in req.headers

    def test_webhooks_media_type(self):
        req = build_request(RequestKind.READ, URL, token="t", version="2.0", webhooks=True)
        assert req.headers["Accept"] == "application/vnd.layer.webhooks+json; version=2.0"

    def test_accept_header(self):
        assert accept_header("3.0") == "application/vnd.layer+json; version=3.0"
        assert accept_header("3.0", webhooks=True) == "application/vnd.layer.webhooks+json; version=3.0"

    def test_delete_request(self):
        req = build_request(RequestKind.DELETE, URL, token="t", version="1.0")
        assert req.method == "DELETE"
        assert req.body is None

    def test_query_params(self):
        req = build_request(
            RequestKind.READ, URL, token="t", version="1.0", params={"page_size": "10", "from_id": "m1"}
        )
        assert req.url == URL + "?page_size=10&from_id=m1"


class TestBodies:
    def test_create_encodes_model_as_json(self):
        pending = Conversation(participants=["a", "b"], distinct=True, metadata={"title": "hi"})

        req = build_request(RequestKind.CREATE, URL, token="t", version="1.0", body=pending)

        assert req.method == "POST"
        assert req.headers["Content-Type"] == "application/json"
        body = json.loads(req.body)
        assert body["participants"] == ["a", "b"]
        assert body["distinct"] is True
        assert body["metadata"] == {"title": "hi"}
        # unset optional fields are not sent
        assert "id" not in body
        assert "created_at" not in body

    def test_replace_uses_put(self):
        req = build_request(RequestKind.REPLACE, URL, token="t", version="1.0", body={"x": 1})
        assert req.method == "PUT"
        assert json.loads(req.body) == {"x": 1}

    def test_patch_is_post_with_method_override(self):
        changes = [EditRequest.set("metadata.title", "new"), EditRequest.add("participants", "c")]

        req = build_request(RequestKind.PATCH, URL, token="t", version="1.0", body=changes)

        assert req.method == "POST"
        assert req.headers["X-HTTP-Method-Override"] == "PATCH"
        assert req.headers["Content-Type"] == "application/vnd.layer-patch+json"
        assert json.loads(req.body) == [
            {"operation": "set", "property": "metadata.title", "value": "new"},
            {"operation": "add", "property": "participants", "value": "c"},
        ]

    def test_patch_requires_a_sequence(self):
        with pytest.raises(RequestBuildError, match="sequence"):
            build_request(RequestKind.PATCH, URL, token="t", version="1.0", body=EditRequest.delete("x"))

    def test_unserializable_body_fails_before_any_attempt(self):
        with pytest.raises(RequestBuildError, match="serialize"):
            build_request(RequestKind.CREATE, URL, token="t", version="1.0", body={"when": object()})

    def test_nan_is_rejected(self):
        with pytest.raises(RequestBuildError):
            build_request(RequestKind.CREATE, URL, token="t", version="1.0", body={"x": float("nan")})

    def test_body_on_read_is_rejected(self):
        with pytest.raises(RequestBuildError, match="do not carry a body"):
            build_request(RequestKind.READ, URL, token="t", version="1.0", body={"x": 1})

    def test_invalid_url(self):
        with pytest.raises(RequestBuildError):
            build_request(RequestKind.READ, "not a url", token="t", version="1.0")


class TestRequestKind:
    @pytest.mark.parametrize(
        "kind, method",
        [
            (RequestKind.READ, "GET"),
            (RequestKind.CREATE, "POST"),
            (RequestKind.REPLACE, "PUT"),
            (RequestKind.PATCH, "POST"),
            (RequestKind.DELETE, "DELETE"),
        ],
    )
    def test_http_method(self, kind, method):
        assert kind.http_method == method
