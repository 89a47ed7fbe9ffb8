"""Message-related data models."""

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any

USER_PREFIX = "user_"
BOT_PREFIX = "bot_"
TEMP_PREFIX = "temp_"
DEFAULT_BOT_ID = "botpress"


class MessageKind(str, Enum):
    """How a message is rendered."""

    TEXT = "text"
    IMAGE = "image"
    BUTTON = "button"
    DROPDOWN = "dropdown"
    CHOICE = "choice"


@dataclass(frozen=True)
class MessageOption:
    """A selectable option attached to a bot prompt."""

    label: str
    value: str


@dataclass
class Message:
    """A single chat turn."""

    id: str
    conversation_id: str
    sender_id: str  # "user_..." or "bot_..."
    created_at: str  # ISO-8601, sortable as a string
    text: str | None = None
    kind: MessageKind = MessageKind.TEXT
    image_url: str | None = None
    options: list[MessageOption] | None = None
    interacted: bool = False

    @property
    def is_user(self) -> bool:
        return self.sender_id.startswith(USER_PREFIX)

    @property
    def is_temp(self) -> bool:
        return self.id.startswith(TEMP_PREFIX)

    @property
    def has_options(self) -> bool:
        return bool(self.options)

    def copy(self) -> "Message":
        """Detached copy, safe to keep after the live list moves on."""
        options = list(self.options) if self.options is not None else None
        return replace(self, options=options)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "conversationId": self.conversation_id,
            "senderId": self.sender_id,
            "text": self.text,
            "kind": self.kind.value,
            "createdAt": self.created_at,
            "imageUrl": self.image_url,
            "options": (
                [{"label": o.label, "value": o.value} for o in self.options]
                if self.options is not None
                else None
            ),
            "interacted": self.interacted,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        try:
            kind = MessageKind(data.get("kind") or "text")
        except ValueError:
            kind = MessageKind.TEXT
        options = data.get("options")
        return cls(
            id=data.get("id") or "",
            conversation_id=data.get("conversationId") or "",
            sender_id=data.get("senderId") or "",
            text=data.get("text"),
            kind=kind,
            created_at=data.get("createdAt") or "",
            image_url=data.get("imageUrl"),
            options=(
                [MessageOption(label=o["label"], value=o["value"]) for o in options]
                if options is not None
                else None
            ),
            interacted=bool(data.get("interacted", False)),
        )


@dataclass
class SavedConversation:
    """A transcript snapshot kept in the history store."""

    id: str
    title: str
    saved_at: str  # human-formatted, e.g. "Oct 19, 2026 14:05"
    user_key: str
    conversation_id: str
    messages: list[Message] = field(default_factory=list)
    created_at: datetime | None = None  # set by the store


def utc_now_iso() -> str:
    """Current time in the backend's timestamp format (millis, Z suffix)."""
    now = datetime.now(timezone.utc).isoformat(timespec="milliseconds")
    return now.replace("+00:00", "Z")
