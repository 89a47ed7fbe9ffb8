"""Bot backend client module."""

from .client import BotApiClient, IBotApiClient, RemoteConversation, RemoteUser
from .schemas import MessagePayload, OptionPayload, RawMessage

__all__ = [
    "BotApiClient",
    "IBotApiClient",
    "RemoteUser",
    "RemoteConversation",
    "RawMessage",
    "MessagePayload",
    "OptionPayload",
]
