"""Session and event data models."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class SessionState(str, Enum):
    """Lifecycle of a conversation session."""

    UNINITIALIZED = "uninitialized"
    BOOTSTRAPPING = "bootstrapping"
    ACTIVE = "active"
    RESETTING = "resetting"
    TERMINATED = "terminated"


class Topic(str, Enum):
    """EventBus topics."""

    MESSAGES = "messages"  # message list replaced
    STATUS = "status"  # status label changed
    STATE = "state"  # SessionState transition
    INPUT = "input"  # draft text changed


@dataclass
class SessionEvent:
    """An update signal published by the conversation session."""

    topic: Topic
    payload: dict
    timestamp: datetime


@dataclass
class AuthUser:
    """The signed-in app user, as reported by the identity provider."""

    uid: str
    email: str | None = None
    email_verified: bool = False
    display_name: str | None = None
    id_token: str | None = field(default=None, repr=False)
    refresh_token: str | None = field(default=None, repr=False)
