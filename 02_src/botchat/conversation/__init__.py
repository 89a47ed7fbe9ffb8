"""Conversation module."""

from .mapper import infer_kind, is_user_origin, map_message, map_messages
from .poller import PollHandle, Poller
from .reconciler import reconcile
from .session import ConversationSession, IConversationSession

__all__ = [
    "ConversationSession",
    "IConversationSession",
    "Poller",
    "PollHandle",
    "reconcile",
    "map_message",
    "map_messages",
    "infer_kind",
    "is_user_origin",
]
