"""Bot backend REST client using httpx."""

from dataclasses import dataclass
from typing import Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from ..config import bot_api_url
from ..errors import DecodeError, HttpError, NetworkError
from ..logging_config import get_logger
from .schemas import (
    CreateConversationRequest,
    CreateConversationResponse,
    CreateUserRequest,
    CreateUserResponse,
    ListMessagesResponse,
    MessagePayload,
    RawMessage,
    SendMessageRequest,
    SendMessageResponse,
)

logger = get_logger(__name__)

USER_KEY_HEADER = "X-User-Key"

ResponseModel = TypeVar("ResponseModel", bound=BaseModel)


@dataclass
class RemoteUser:
    """Anonymous chat participant issued by the backend."""

    key: str
    remote_user_id: str


@dataclass
class RemoteConversation:
    """Conversation issued by the backend."""

    conversation_id: str
    created_at: str


class IBotApiClient(Protocol):
    """Typed access to the bot backend. No retries at this layer."""

    async def create_user(self) -> RemoteUser:
        """Create an anonymous chat user and return its key."""
        ...

    async def create_conversation(self, user_key: str) -> RemoteConversation:
        """Open a conversation for the user."""
        ...

    async def send_message(
        self, user_key: str, conversation_id: str, text: str
    ) -> RawMessage:
        """Send a text message and return the confirmed message."""
        ...

    async def list_messages(
        self, user_key: str, conversation_id: str
    ) -> list[RawMessage]:
        """List the messages of a conversation."""
        ...

    async def close(self) -> None:
        """Release the HTTP connection pool."""
        ...


class BotApiClient:
    """Bot backend client.

    Raises NetworkError, HttpError or DecodeError; never retries.
    """

    def __init__(
        self,
        base_url: str | None = None,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self._base_url = (base_url or bot_api_url()).rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def close(self) -> None:
        """Release the HTTP connection pool."""
        if self._owns_client:
            await self._client.aclose()

    async def create_user(self) -> RemoteUser:
        """Create an anonymous chat user and return its key."""
        data = await self._request(
            "POST", "users", json=CreateUserRequest().model_dump(by_alias=True)
        )
        response = self._decode(CreateUserResponse, data)

        if response.code is not None and response.message is not None:
            raise HttpError(response.code, response.message)
        if response.user is None or response.key is None:
            raise DecodeError(f"Failed to parse user response: {data}")

        logger.info("Remote user created: %s", response.user.id)
        return RemoteUser(key=response.key, remote_user_id=response.user.id)

    async def create_conversation(self, user_key: str) -> RemoteConversation:
        """Open a conversation for the user."""
        data = await self._request(
            "POST",
            "conversations",
            user_key=user_key,
            json=CreateConversationRequest().model_dump(by_alias=True),
        )
        response = self._decode(CreateConversationResponse, data)

        logger.info("Conversation created: %s", response.conversation.id)
        return RemoteConversation(
            conversation_id=response.conversation.id,
            created_at=response.conversation.created_at,
        )

    async def send_message(
        self, user_key: str, conversation_id: str, text: str
    ) -> RawMessage:
        """Send a text message and return the confirmed message."""
        request = SendMessageRequest(
            payload=MessagePayload(type="text", text=text),
            conversation_id=conversation_id,
        )
        data = await self._request(
            "POST",
            "messages",
            user_key=user_key,
            json=request.model_dump(by_alias=True, exclude_none=True),
        )
        return self._decode(SendMessageResponse, data).message

    async def list_messages(
        self, user_key: str, conversation_id: str
    ) -> list[RawMessage]:
        """List the messages of a conversation."""
        data = await self._request(
            "GET",
            f"conversations/{conversation_id}/messages",
            user_key=user_key,
        )
        messages = self._decode(ListMessagesResponse, data).messages
        logger.debug("Fetched %d messages for %s", len(messages), conversation_id)
        return messages

    async def _request(
        self,
        method: str,
        path: str,
        user_key: str | None = None,
        json: dict | None = None,
    ) -> dict:
        """Issue a request and return the decoded JSON object."""
        headers = {"Content-Type": "application/json"}
        if user_key is not None:
            headers[USER_KEY_HEADER] = user_key

        try:
            response = await self._client.request(
                method,
                f"{self._base_url}/{path}",
                headers=headers,
                json=json,
            )
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e}") from e

        if not response.is_success:
            raise HttpError(response.status_code, response.text)

        try:
            data = response.json()
        except ValueError as e:
            raise DecodeError(f"API response is not JSON: {e}") from e

        if not isinstance(data, dict):
            raise DecodeError(f"API response is not an object: {data!r}")
        return data

    @staticmethod
    def _decode(model: type[ResponseModel], data: dict) -> ResponseModel:
        try:
            return model.model_validate(data)
        except ValidationError as e:
            raise DecodeError(f"API response format error: {e}") from e
