"""Bot chat client."""

from .app import Application, IApplication
from .auth import FirebaseAuthProvider, IAuthProvider
from .bot_api import BotApiClient, IBotApiClient, RawMessage
from .conversation import (
    ConversationSession,
    IConversationSession,
    Poller,
    map_message,
    reconcile,
)
from .errors import (
    AuthError,
    BotApiError,
    BotchatError,
    DecodeError,
    HttpError,
    NetworkError,
    Unauthenticated,
)
from .event_bus import EventBus, IEventBus
from .history import HistoryStore, IHistoryStore
from .models import (
    AuthUser,
    Message,
    MessageKind,
    MessageOption,
    SavedConversation,
    SessionEvent,
    SessionState,
    Topic,
)

__all__ = [
    # Application
    "Application",
    "IApplication",
    # Models
    "Message",
    "MessageKind",
    "MessageOption",
    "SavedConversation",
    "SessionState",
    "SessionEvent",
    "Topic",
    "AuthUser",
    # Errors
    "BotchatError",
    "BotApiError",
    "NetworkError",
    "HttpError",
    "DecodeError",
    "Unauthenticated",
    "AuthError",
    # Components
    "IBotApiClient",
    "BotApiClient",
    "RawMessage",
    "IConversationSession",
    "ConversationSession",
    "Poller",
    "reconcile",
    "map_message",
    "IEventBus",
    "EventBus",
    "IHistoryStore",
    "HistoryStore",
    "IAuthProvider",
    "FirebaseAuthProvider",
]
