"""Pytest configuration and fixtures."""

import sys
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


def make_raw(
    id: str,
    text: str | None = "Hi",
    user_id: str | None = "k1",
    created_at: str = "2024-01-01T12:00:00.000Z",
    conversation_id: str = "c1",
    **payload,
):
    """Build a backend message the way the API returns it."""
    from botchat.bot_api import RawMessage

    body = {"type": payload.pop("type", "text"), "text": text}
    body.update(payload)
    data = {
        "id": id,
        "conversationId": conversation_id,
        "payload": body,
        "createdAt": created_at,
    }
    if user_id is not None:
        data["userId"] = user_id
    return RawMessage.model_validate(data)


@pytest.fixture
def raw_message():
    """Factory for backend messages."""
    return make_raw


@pytest.fixture
def event_bus():
    """Create EventBus."""
    from botchat.event_bus import EventBus

    return EventBus()


@pytest.fixture
def mock_bot_api():
    """Create mock bot API client issuing user key k1 and conversation c1."""
    from botchat.bot_api import RemoteConversation, RemoteUser

    api = Mock()
    api.create_user = AsyncMock(return_value=RemoteUser(key="k1", remote_user_id="u1"))
    api.create_conversation = AsyncMock(
        return_value=RemoteConversation(
            conversation_id="c1", created_at="2024-01-01T11:59:00.000Z"
        )
    )
    api.send_message = AsyncMock(
        return_value=make_raw("srv-sent", text="sent", user_id="k1")
    )
    api.list_messages = AsyncMock(return_value=[])
    api.close = AsyncMock()
    return api


@pytest.fixture
def signed_in_auth():
    """Auth stand-in with a signed-in user."""
    from botchat.models import AuthUser

    auth = Mock()
    auth.current_user = AuthUser(uid="uid1", email="alice@example.com")
    auth.is_authenticated = True
    return auth


@pytest.fixture
def signed_out_auth():
    """Auth stand-in without a user."""
    auth = Mock()
    auth.current_user = None
    auth.is_authenticated = False
    return auth


@pytest_asyncio.fixture
async def history(signed_in_auth):
    """Create in-memory history store for testing."""
    from botchat.history import HistoryStore

    store = HistoryStore(signed_in_auth, ":memory:")
    await store.init()
    yield store
    await store.close()


@pytest_asyncio.fixture
async def session(mock_bot_api, event_bus, history):
    """Create ConversationSession with a fast poll interval."""
    from botchat.conversation import ConversationSession

    s = ConversationSession(
        bot_api=mock_bot_api,
        event_bus=event_bus,
        history=history,
        interval=0.01,
    )
    yield s
    await s.close()


@pytest.fixture
def recorded_events(event_bus):
    """Collect every published SessionEvent."""
    from botchat.models import Topic

    events = []

    async def record(event):
        events.append(event)

    for topic in Topic:
        event_bus.subscribe(topic, record)
    return events
