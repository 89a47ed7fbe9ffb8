"""Translation of backend messages into chat Messages."""

from ..bot_api.schemas import MessagePayload, RawMessage
from ..models import (
    BOT_PREFIX,
    DEFAULT_BOT_ID,
    USER_PREFIX,
    Message,
    MessageKind,
    MessageOption,
)

# Payload types honoured as-is; anything else falls through to shape inference.
EXPLICIT_KINDS = (
    MessageKind.CHOICE,
    MessageKind.DROPDOWN,
    MessageKind.IMAGE,
    MessageKind.BUTTON,
)


def is_user_origin(raw_user_id: str | None, user_key: str) -> bool:
    """Whether a backend userId belongs to the local chat user.

    Substring match of the user key in the raw id. Keys that contain one
    another, or a bot id that happens to contain the key, are misclassified.
    """
    if not raw_user_id or not user_key:
        return False
    return user_key in raw_user_id


def infer_kind(payload: MessagePayload) -> MessageKind:
    """Pick the render kind from the payload type, then from its shape."""
    declared = (payload.type or "").lower()
    for kind in EXPLICIT_KINDS:
        if declared == kind.value:
            return kind
    if payload.options:
        return MessageKind.BUTTON
    return MessageKind.TEXT


def sender_id_for(raw_user_id: str | None, user_key: str) -> str:
    if is_user_origin(raw_user_id, user_key):
        return f"{USER_PREFIX}{raw_user_id}"
    return f"{BOT_PREFIX}{raw_user_id or DEFAULT_BOT_ID}"


def map_message(raw: RawMessage, user_key: str) -> Message:
    """Convert one backend message."""
    payload = raw.payload
    options = (
        [MessageOption(label=o.label, value=o.value) for o in payload.options]
        if payload.options is not None
        else None
    )
    return Message(
        id=raw.id,
        conversation_id=raw.conversation_id,
        sender_id=sender_id_for(raw.user_id, user_key),
        text=payload.text,
        kind=infer_kind(payload),
        created_at=raw.created_at,
        image_url=payload.image_url,
        options=options,
    )


def map_messages(raws: list[RawMessage], user_key: str) -> list[Message]:
    return [map_message(raw, user_key) for raw in raws]
