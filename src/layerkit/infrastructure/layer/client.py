"""Layer Platform API client"""

import functools
import logging
from typing import Any, Callable, Collection, Iterator, List, Optional, Sequence, Type, TypeVar, Union
from urllib.parse import quote

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

from layerkit.domain.config import AppConfig
from layerkit.domain.errors import DecodeError, UnexpectedStatusError
from layerkit.domain.models import Conversation, EditRequest, Identity, Message, WebHook
from layerkit.infrastructure.http_client import AttemptObserver, BackoffPolicy, send_with_backoff
from layerkit.infrastructure.request_builder import RequestKind, build_request

logger = logging.getLogger(__name__)

BASE_URL = "https://api.layer.com"
UUID_LENGTH = 36

# Statuses each kind of operation accepts once the executor reports success
READ_STATUSES = range(200, 300)
CREATE_STATUSES = (200, 201)
EDIT_STATUSES = (200, 201, 204)
DELETE_STATUSES = (204,)
WEBHOOK_ACTION_STATUSES = (200, 201, 202)

T = TypeVar("T")


def extract_uuid(identifier: str) -> str:
    """Return the 36 character UUID at the end of a Layer identifier.

    ``layer:///conversations/<uuid>`` becomes ``<uuid>``; identifiers shorter
    than 36 characters are returned unchanged.
    """
    if len(identifier) < UUID_LENGTH:
        return identifier
    return identifier[-UUID_LENGTH:]


@functools.lru_cache(maxsize=None)
def _adapter(model: Any) -> TypeAdapter:
    """Decoder for a model or List[model], built once per type"""
    return TypeAdapter(model)


def _resource_id(resource: Union[BaseModel, str], kind: str) -> str:
    """Path segment for a resource given as a model or a raw identifier"""
    identifier = resource if isinstance(resource, str) else getattr(resource, "id", None)
    if not identifier:
        raise ValueError(f"{kind} id is required")
    return extract_uuid(identifier)


class LayerClient:
    """Client for Layer Platform API operations"""

    def __init__(
        self,
        app_id: str,
        token: str,
        version: str = "1.0",
        backoff: Optional[BackoffPolicy] = None,
        *,
        base_url: str = BASE_URL,
        session: Optional[requests.Session] = None,
        observer: Optional[AttemptObserver] = None,
        sleep: Optional[Callable[[float], None]] = None,
        timeout: Optional[float] = None,
    ):
        """Initialize Layer client

        Args:
            app_id: Layer application ID (the account the API calls act on)
            token: Platform API bearer token
            version: API version sent in the Accept header
            backoff: Backoff policy applied to every call (default: BackoffPolicy())
            base_url: API root URL
            session: requests session shared by all calls of this client
            observer: Receives an AttemptRecord per attempt (default: log line)
            sleep: Blocking sleep used between attempts (default: time.sleep)
            timeout: Per-attempt transport timeout in seconds
        """
        if not app_id:
            raise ValueError("Layer app id is required")
        if not token:
            raise ValueError(
                "Layer API token is required. "
                "Set LAYER_TOKEN environment variable or provide in config."
            )

        self.app_id = extract_uuid(app_id)
        self.token = token
        self.version = version
        self.backoff = backoff if backoff is not None else BackoffPolicy()
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.observer = observer
        self.sleep = sleep
        self.timeout = timeout

        logger.info(f"Layer client initialized for app {self.app_id} at {self.base_url}")

    @classmethod
    def from_config(cls, config: Any, **kwargs: Any) -> "LayerClient":
        """Create a client from an AppConfig (or a ConfigManager holding one)

        Keyword arguments are passed through to the constructor.
        """
        app_config = config if isinstance(config, AppConfig) else config.config
        layer = app_config.layer
        return cls(
            layer.app_id,
            layer.token,
            layer.api_version,
            app_config.backoff.to_policy(),
            base_url=layer.base_url,
            timeout=layer.timeout,
            **kwargs,
        )

    # ------------------------------------------------------------------
    # Plumbing
    # ------------------------------------------------------------------

    def _url(self, *segments: str) -> str:
        path = [quote(segment, safe="") for segment in ("apps", self.app_id, *segments)]
        return "/".join([self.base_url, *path])

    def _request(
        self,
        operation: str,
        kind: RequestKind,
        url: str,
        *,
        expected: Collection[int],
        body: Any = None,
        webhooks: bool = False,
        params: Optional[dict] = None,
    ) -> requests.Response:
        """Build, execute with backoff and check the status of one request

        Raises:
            RequestBuildError: If the request cannot be built
            AggregatedFailure: If every attempt failed
            UnexpectedStatusError: If the final status is not expected for the operation
        """
        request = build_request(
            kind,
            url,
            token=self.token,
            version=self.version,
            body=body,
            webhooks=webhooks,
            params=params,
        )
        logger.debug(f"{operation}: {request.method} {request.url}")

        response = send_with_backoff(
            request,
            self.backoff,
            session=self.session,
            observer=self.observer,
            sleep=self.sleep,
            timeout=self.timeout,
        )
        if response.status_code not in expected:
            body_text = response.text
            response.close()
            raise UnexpectedStatusError(operation, response.status_code, body_text)
        return response

    def _decode(self, operation: str, response: requests.Response, model: Type[T]) -> T:
        """Decode a response body into a model or list of models

        Decode failures are never retried.
        """
        try:
            if not response.content:
                raise DecodeError(f"{operation}: empty response body (status {response.status_code})")
            try:
                return _adapter(model).validate_json(response.content)
            except ValidationError as e:
                raise DecodeError(f"{operation}: failed to decode response: {e}") from e
        finally:
            response.close()

    # ------------------------------------------------------------------
    # Conversations
    # ------------------------------------------------------------------

    def get_conversations_by_user(self, user_id: str) -> List[Conversation]:
        """Retrieve all conversations from the perspective of a user

        Args:
            user_id: User ID

        Returns:
            List of Conversation objects
        """
        response = self._request(
            "get_conversations_by_user",
            RequestKind.READ,
            self._url("users", user_id, "conversations"),
            expected=READ_STATUSES,
        )
        return self._decode("get_conversations_by_user", response, List[Conversation])

    def get_conversation_by_user(
        self, user_id: str, conversation_id: Union[Conversation, str]
    ) -> Conversation:
        """Retrieve a conversation from the perspective of a user"""
        url = self._url(
            "users", user_id, "conversations", _resource_id(conversation_id, "Conversation")
        )
        response = self._request(
            "get_conversation_by_user", RequestKind.READ, url, expected=READ_STATUSES
        )
        return self._decode("get_conversation_by_user", response, Conversation)

    def get_conversation(self, conversation_id: Union[Conversation, str]) -> Conversation:
        """Retrieve a conversation from the system perspective by its ID"""
        url = self._url("conversations", _resource_id(conversation_id, "Conversation"))
        response = self._request("get_conversation", RequestKind.READ, url, expected=READ_STATUSES)
        return self._decode("get_conversation", response, Conversation)

    def create_conversation(self, pending: Conversation) -> Conversation:
        """Create a new conversation

        Not idempotent: a retry after a transport error may create it twice
        unless ``pending.distinct`` is set.

        Args:
            pending: Conversation to create (participants, distinct, metadata)

        Returns:
            The conversation as created by Layer
        """
        response = self._request(
            "create_conversation",
            RequestKind.CREATE,
            self._url("conversations"),
            expected=CREATE_STATUSES,
            body=pending,
        )
        return self._decode("create_conversation", response, Conversation)

    def edit_conversation(
        self, conversation: Union[Conversation, str], changes: Sequence[EditRequest]
    ) -> Conversation:
        """Apply edit instructions to a conversation

        Layer answers edits with 204 No Content; the updated conversation is
        then fetched so callers always get the current state back.

        Args:
            conversation: Conversation (or its ID) to modify
            changes: Edit instructions applied in order

        Returns:
            The updated conversation
        """
        conversation_id = _resource_id(conversation, "Conversation")
        response = self._request(
            "edit_conversation",
            RequestKind.PATCH,
            self._url("conversations", conversation_id),
            expected=EDIT_STATUSES,
            body=list(changes),
        )
        if response.status_code == 204 or not response.content:
            response.close()
            return self.get_conversation(conversation_id)
        return self._decode("edit_conversation", response, Conversation)

    def delete_conversation(self, conversation: Union[Conversation, str]) -> None:
        """Delete a conversation globally, for all participants and devices"""
        url = self._url("conversations", _resource_id(conversation, "Conversation"))
        response = self._request(
            "delete_conversation", RequestKind.DELETE, url, expected=DELETE_STATUSES
        )
        response.close()

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def send_message(self, message: Message, conversation: Union[Conversation, str]) -> Message:
        """Send a message to a conversation

        Not idempotent: a retry after a transport error may deliver the
        message twice.
        """
        url = self._url(
            "conversations", _resource_id(conversation, "Conversation"), "messages"
        )
        response = self._request(
            "send_message", RequestKind.CREATE, url, expected=CREATE_STATUSES, body=message
        )
        return self._decode("send_message", response, Message)

    def retrieve_messages(
        self,
        conversation: Union[Conversation, str],
        page_size: int = 0,
        from_id: str = "",
    ) -> List[Message]:
        """Retrieve one page of messages of a conversation (system perspective)

        Args:
            conversation: Conversation (or its ID)
            page_size: Number of messages per page (0 = service default)
            from_id: Return messages older than this message ID

        Returns:
            List of Message objects, newest first
        """
        params = {}
        if page_size > 0:
            params["page_size"] = str(page_size)
        if from_id:
            params["from_id"] = from_id

        url = self._url(
            "conversations", _resource_id(conversation, "Conversation"), "messages"
        )
        response = self._request(
            "retrieve_messages", RequestKind.READ, url, expected=READ_STATUSES, params=params
        )
        return self._decode("retrieve_messages", response, List[Message])

    def iter_messages(
        self, conversation: Union[Conversation, str], page_size: int = 100
    ) -> Iterator[Message]:
        """Iterate over every message of a conversation, page by page

        Pages are requested lazily with from_id set to the last message seen.
        """
        from_id = ""
        while True:
            page = self.retrieve_messages(conversation, page_size=page_size, from_id=from_id)
            yield from page
            if not page or len(page) < page_size or not page[-1].id:
                return
            from_id = page[-1].id

    def retrieve_messages_by_user(
        self, user_id: str, conversation: Union[Conversation, str]
    ) -> List[Message]:
        """Retrieve the messages of a conversation from the perspective of a user"""
        url = self._url(
            "users",
            user_id,
            "conversations",
            _resource_id(conversation, "Conversation"),
            "messages",
        )
        response = self._request(
            "retrieve_messages_by_user", RequestKind.READ, url, expected=READ_STATUSES
        )
        return self._decode("retrieve_messages_by_user", response, List[Message])

    def delete_message(
        self, message: Union[Message, str], conversation: Union[Conversation, str]
    ) -> None:
        """Delete a message from a conversation"""
        url = self._url(
            "conversations",
            _resource_id(conversation, "Conversation"),
            "messages",
            _resource_id(message, "Message"),
        )
        response = self._request("delete_message", RequestKind.DELETE, url, expected=DELETE_STATUSES)
        response.close()

    # ------------------------------------------------------------------
    # Identities
    # ------------------------------------------------------------------

    def register_identity(self, user_id: str, identity: Identity) -> None:
        """Create a new known user identity"""
        response = self._request(
            "register_identity",
            RequestKind.CREATE,
            self._url("users", user_id, "identity"),
            expected=EDIT_STATUSES,
            body=identity,
        )
        response.close()

    def update_identity(
        self, user_id: str, changes: Union[EditRequest, Sequence[EditRequest]]
    ) -> Identity:
        """Apply edit instructions to a user identity

        Args:
            user_id: User ID
            changes: A single edit instruction or a sequence of them

        Returns:
            The updated identity (fetched again if Layer answers 204)
        """
        if isinstance(changes, EditRequest):
            changes = [changes]
        response = self._request(
            "update_identity",
            RequestKind.PATCH,
            self._url("users", user_id, "identity"),
            expected=EDIT_STATUSES,
            body=list(changes),
        )
        if response.status_code == 204 or not response.content:
            response.close()
            return self.retrieve_identity(user_id)
        return self._decode("update_identity", response, Identity)

    def retrieve_identity(self, user_id: str) -> Identity:
        """Fetch the identity of a user"""
        response = self._request(
            "retrieve_identity",
            RequestKind.READ,
            self._url("users", user_id, "identity"),
            expected=READ_STATUSES,
        )
        return self._decode("retrieve_identity", response, Identity)

    def delete_identity(self, user_id: str) -> None:
        """Remove the identity of a user"""
        response = self._request(
            "delete_identity",
            RequestKind.DELETE,
            self._url("users", user_id, "identity"),
            expected=DELETE_STATUSES,
        )
        response.close()

    # ------------------------------------------------------------------
    # WebHooks
    # ------------------------------------------------------------------

    def register_webhook(self, webhook: WebHook) -> WebHook:
        """Register a new webhook; returns the webhook as created by Layer"""
        response = self._request(
            "register_webhook",
            RequestKind.CREATE,
            self._url("webhooks"),
            expected=CREATE_STATUSES,
            body=webhook,
            webhooks=True,
        )
        return self._decode("register_webhook", response, WebHook)

    def list_webhooks(self) -> List[WebHook]:
        """List all webhooks registered for the app"""
        response = self._request(
            "list_webhooks",
            RequestKind.READ,
            self._url("webhooks"),
            expected=READ_STATUSES,
            webhooks=True,
        )
        return self._decode("list_webhooks", response, List[WebHook])

    def get_webhook(self, webhook_id: Union[WebHook, str]) -> WebHook:
        """Fetch a webhook by ID"""
        response = self._request(
            "get_webhook",
            RequestKind.READ,
            self._url("webhooks", _resource_id(webhook_id, "WebHook")),
            expected=READ_STATUSES,
            webhooks=True,
        )
        return self._decode("get_webhook", response, WebHook)

    def activate_webhook(self, webhook: Union[WebHook, str]) -> WebHook:
        """Activate a webhook so Layer starts delivering events to it"""
        return self._webhook_action("activate", webhook)

    def deactivate_webhook(self, webhook: Union[WebHook, str]) -> WebHook:
        """Deactivate a webhook so Layer stops delivering events to it"""
        return self._webhook_action("deactivate", webhook)

    def _webhook_action(self, action: str, webhook: Union[WebHook, str]) -> WebHook:
        operation = f"{action}_webhook"
        response = self._request(
            operation,
            RequestKind.CREATE,
            self._url("webhooks", _resource_id(webhook, "WebHook"), action),
            expected=WEBHOOK_ACTION_STATUSES,
            body=webhook if isinstance(webhook, WebHook) else {},
            webhooks=True,
        )
        return self._decode(operation, response, WebHook)

    def delete_webhook(self, webhook: Union[WebHook, str]) -> None:
        """Remove a webhook from the app"""
        response = self._request(
            "delete_webhook",
            RequestKind.DELETE,
            self._url("webhooks", _resource_id(webhook, "WebHook")),
            expected=DELETE_STATUSES,
            webhooks=True,
        )
        response.close()
