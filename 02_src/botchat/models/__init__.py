"""Core data models for botchat."""

from .messages import (
    BOT_PREFIX,
    DEFAULT_BOT_ID,
    TEMP_PREFIX,
    USER_PREFIX,
    Message,
    MessageKind,
    MessageOption,
    SavedConversation,
    utc_now_iso,
)
from .session import AuthUser, SessionEvent, SessionState, Topic

__all__ = [
    # Messages
    "Message",
    "MessageKind",
    "MessageOption",
    "SavedConversation",
    "utc_now_iso",
    "USER_PREFIX",
    "BOT_PREFIX",
    "TEMP_PREFIX",
    "DEFAULT_BOT_ID",
    # Session
    "SessionState",
    "SessionEvent",
    "Topic",
    # Auth
    "AuthUser",
]
