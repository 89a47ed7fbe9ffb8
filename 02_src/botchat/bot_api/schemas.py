"""Wire-format models for the bot backend."""

from pydantic import BaseModel, ConfigDict, Field


class WireModel(BaseModel):
    """Base for backend payloads: camelCase on the wire, extra keys ignored."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class OptionPayload(WireModel):
    """A choice offered by the bot."""

    label: str
    value: str


class MessagePayload(WireModel):
    """Content of a message."""

    type: str = "text"
    text: str | None = None
    image_url: str | None = Field(default=None, alias="imageUrl")
    options: list[OptionPayload] | None = None


class RawMessage(WireModel):
    """A message as returned by the backend."""

    id: str
    conversation_id: str = Field(alias="conversationId")
    user_id: str | None = Field(default=None, alias="userId")
    tags: list[str] | None = None
    payload: MessagePayload
    created_at: str = Field(alias="createdAt")
    updated_at: str | None = Field(default=None, alias="updatedAt")


class RemoteUserRecord(WireModel):
    id: str
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class CreateUserResponse(WireModel):
    """Response to POST /users (or an error envelope)."""

    user: RemoteUserRecord | None = None
    key: str | None = None
    id: str | None = None
    code: int | None = None
    type: str | None = None
    message: str | None = None


class RemoteConversationRecord(WireModel):
    id: str
    created_at: str = Field(alias="createdAt")
    updated_at: str = Field(alias="updatedAt")


class CreateConversationResponse(WireModel):
    """Response to POST /conversations."""

    conversation: RemoteConversationRecord


class SendMessageResponse(WireModel):
    """Response to POST /messages."""

    message: RawMessage
    error: str | None = None
    code: int | None = None


class ListMessagesResponse(WireModel):
    """Response to GET /conversations/{id}/messages."""

    messages: list[RawMessage]
    meta: dict = Field(default_factory=dict)


class CreateUserRequest(WireModel):
    name: str = "Botchat User"
    email: str = "user@example.com"
    metadata: dict[str, str] = Field(
        default_factory=lambda: {"platform": "python", "deviceType": "desktop"}
    )


class CreateConversationRequest(WireModel):
    metadata: dict[str, str] = Field(default_factory=lambda: {"source": "botchat"})


class SendMessageRequest(WireModel):
    payload: MessagePayload
    conversation_id: str = Field(alias="conversationId")
