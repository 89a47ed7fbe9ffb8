"""Conversation session: bootstrap, optimistic send, polling, reset."""

import time
import uuid
from datetime import datetime
from typing import Any, Protocol

from ..bot_api import IBotApiClient, RawMessage
from ..config import poll_interval
from ..errors import BotApiError
from ..event_bus import IEventBus
from ..history import IHistoryStore
from ..logging_config import get_logger
from ..models import (
    TEMP_PREFIX,
    USER_PREFIX,
    Message,
    MessageKind,
    SavedConversation,
    SessionState,
    Topic,
    utc_now_iso,
)
from .mapper import map_messages
from .poller import Poller
from .reconciler import reconcile

logger = get_logger(__name__)

SAVED_AT_FORMAT = "%b %d, %Y %H:%M"
TITLE_LENGTH = 20


class IConversationSession(Protocol):
    """The single live conversation of the signed-in user."""

    async def bootstrap(self) -> bool:
        """Create remote user and conversation, then start polling."""
        ...

    async def send(self, text: str) -> Message | None:
        """Show the message immediately, then send it to the backend."""
        ...

    async def reset(self) -> bool:
        """Drop the conversation and bootstrap a brand-new one."""
        ...

    async def close(self) -> None:
        """Stop polling for good."""
        ...


class ConversationSession:
    """Owns user key, conversation id and the visible message list.

    The message list is written only by the optimistic append in send() and
    by the poll merge; both run on the event loop without an await between
    reading and writing the list.
    """

    def __init__(
        self,
        bot_api: IBotApiClient,
        event_bus: IEventBus,
        history: IHistoryStore | None = None,
        interval: float | None = None,
    ):
        self._bot_api = bot_api
        self._event_bus = event_bus
        self._history = history
        self._poller: Poller[list[RawMessage]] = Poller(
            interval if interval is not None else poll_interval(),
            on_error=self._on_poll_error,
            name="messages",
        )

        self._state = SessionState.UNINITIALIZED
        self._user_key: str | None = None
        self._conversation_id: str | None = None
        self._messages: list[Message] = []
        self._input_text = ""
        self._status = ""
        # Bumped whenever the conversation is swapped out; stale work checks it
        self._generation = 0
        self._last_temp_millis = 0
        # Generation of the bootstrap in flight, if any
        self._bootstrapping: int | None = None

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user_key(self) -> str | None:
        return self._user_key

    @property
    def conversation_id(self) -> str | None:
        return self._conversation_id

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def input_text(self) -> str:
        return self._input_text

    @property
    def status(self) -> str:
        return self._status

    @property
    def polling(self) -> bool:
        return self._poller.running

    def snapshot(self) -> dict[str, Any]:
        """Plain view of the session for front ends."""
        return {
            "state": self._state.value,
            "userKey": self._user_key,
            "conversationId": self._conversation_id,
            "status": self._status,
            "inputText": self._input_text,
            "messages": [m.to_dict() for m in self._messages],
        }

    # Lifecycle

    async def bootstrap(self) -> bool:
        """Create remote user and conversation, then start polling."""
        if self._state == SessionState.TERMINATED:
            raise RuntimeError("Session terminated")

        generation = self._generation
        self._bootstrapping = generation
        try:
            return await self._bootstrap(generation)
        finally:
            if self._bootstrapping == generation:
                self._bootstrapping = None

    async def _bootstrap(self, generation: int) -> bool:
        await self._set_state(SessionState.BOOTSTRAPPING)

        try:
            user = await self._bot_api.create_user()
        except BotApiError as e:
            logger.error("Error creating user: %s", e)
            await self._set_status(f"Error creating user: {e}")
            return False
        if generation != self._generation:
            return False
        await self._set_status(f"User created: {user.key}")

        try:
            conversation = await self._bot_api.create_conversation(user.key)
        except BotApiError as e:
            logger.error("Error creating conversation: %s", e)
            await self._set_status(f"Error creating conversation: {e}")
            return False
        if generation != self._generation:
            return False

        self._user_key = user.key
        self._conversation_id = conversation.conversation_id
        await self._set_state(SessionState.ACTIVE)
        await self._set_status(f"Conversation created: {conversation.conversation_id}")
        logger.info("Session active", extra=self._log_extra())

        self._start_polling()
        return True

    async def retry(self) -> bool:
        """Manual retry after a failed bootstrap."""
        if self._bootstrapping is not None:
            return False
        if self._state not in (SessionState.UNINITIALIZED, SessionState.BOOTSTRAPPING):
            return False
        return await self.bootstrap()

    async def reset(self) -> bool:
        """Drop the conversation and bootstrap a brand-new one."""
        if self._state == SessionState.TERMINATED:
            raise RuntimeError("Session terminated")

        await self._teardown()
        self._user_key = None
        self._conversation_id = None
        self._messages = []
        self._input_text = ""
        await self._set_state(SessionState.RESETTING)
        await self._set_status("Resetting conversation...")
        await self._publish_messages()
        await self._event_bus.publish(Topic.INPUT, {"inputText": ""})

        return await self.bootstrap()

    async def load(self, saved: SavedConversation) -> None:
        """Resume a saved conversation and poll it again."""
        if self._state == SessionState.TERMINATED:
            raise RuntimeError("Session terminated")

        await self._teardown()
        self._user_key = saved.user_key
        self._conversation_id = saved.conversation_id
        self._messages = [m.copy() for m in saved.messages]
        await self._set_state(SessionState.ACTIVE)
        await self._set_status(f"Loaded conversation: {saved.title}")
        await self._publish_messages()

        self._start_polling()

    async def close(self) -> None:
        """Stop polling for good."""
        if self._state == SessionState.TERMINATED:
            return
        await self._teardown()
        await self._set_state(SessionState.TERMINATED)
        logger.info("Session closed")

    # Messaging

    async def send(self, text: str) -> Message | None:
        """Show the message immediately, then send it to the backend.

        A failed send keeps the optimistic message; the next poll settles it.
        """
        optimistic = self._append_optimistic(text)
        if optimistic is None:
            return None

        user_key = self._user_key
        conversation_id = self._conversation_id
        await self._publish_messages()
        await self._event_bus.publish(Topic.INPUT, {"inputText": ""})
        await self._set_status("Sending message...")

        try:
            await self._bot_api.send_message(user_key, conversation_id, text)
        except BotApiError as e:
            logger.error("Error sending message: %s", e)
            await self._set_status(f"Error sending message: {e}")
        else:
            await self._set_status("Message sent")

        return optimistic

    async def choose(self, message_id: str, value: str) -> Message | None:
        """Answer a bot prompt with one of its options."""
        prompt = next((m for m in self._messages if m.id == message_id), None)
        if prompt is None or prompt.interacted or not prompt.has_options:
            return None
        if value not in [o.value for o in prompt.options]:
            return None

        # The optimistic append marks the prompt interacted
        return await self.send(value)

    async def update_input(self, text: str) -> None:
        self._input_text = text
        await self._event_bus.publish(Topic.INPUT, {"inputText": text})

    # History

    async def save(self, title: str | None = None) -> SavedConversation | None:
        """Snapshot the conversation into the history store."""
        if self._history is None:
            raise RuntimeError("No history store configured")

        if not self._messages or not self._user_key or not self._conversation_id:
            await self._set_status("Cannot save an empty conversation")
            return None

        record = SavedConversation(
            id=str(uuid.uuid4()),
            title=(title or "").strip() or self.default_title(),
            saved_at=datetime.now().strftime(SAVED_AT_FORMAT),
            user_key=self._user_key,
            conversation_id=self._conversation_id,
            messages=[m.copy() for m in self._messages],
        )

        await self._set_status("Saving conversation...")
        try:
            await self._history.save(record)
        except Exception as e:
            await self._set_status(f"Error saving conversation: {e}")
            raise

        await self._set_status("Conversation saved")
        return record

    def default_title(self) -> str:
        """First user text (shortened), else a dated title."""
        first = next((m for m in self._messages if m.is_user), None)
        text = (first.text or "") if first else ""
        if not text.strip():
            return f"Conversation {datetime.now().strftime(SAVED_AT_FORMAT)}"
        if len(text) > TITLE_LENGTH:
            return text[:TITLE_LENGTH] + "..."
        return text

    # Internals

    def _append_optimistic(self, text: str) -> Message | None:
        """Synchronous part of send(): append and freeze earlier prompts."""
        if not text or not text.strip():
            return None
        if self._state != SessionState.ACTIVE:
            return None
        if not self._user_key or not self._conversation_id:
            return None

        message = Message(
            id=f"{TEMP_PREFIX}{self._next_temp_millis()}",
            conversation_id=self._conversation_id,
            sender_id=f"{USER_PREFIX}{self._user_key}",
            text=text,
            kind=MessageKind.TEXT,
            created_at=utc_now_iso(),
        )
        self._messages = self._messages + [message]
        self._input_text = ""

        # Older prompts cannot be answered once the conversation moves on
        for existing in self._messages:
            if not existing.is_user and existing.has_options:
                existing.interacted = True

        return message

    def _next_temp_millis(self) -> int:
        millis = int(time.time() * 1000)
        if millis <= self._last_temp_millis:
            millis = self._last_temp_millis + 1
        self._last_temp_millis = millis
        return millis

    def _start_polling(self) -> None:
        user_key = self._user_key
        conversation_id = self._conversation_id
        generation = self._generation

        async def fetch() -> list[RawMessage]:
            return await self._bot_api.list_messages(user_key, conversation_id)

        async def apply(raws: list[RawMessage]) -> None:
            if generation != self._generation:
                return
            merged = reconcile(map_messages(raws, user_key), self._messages)
            if merged is None:
                return
            self._messages = merged
            logger.debug("Updated message list with %d messages", len(merged))
            await self._publish_messages()
            await self._set_status("Updated messages")

        def should_continue() -> bool:
            return self._user_key is not None and self._conversation_id is not None

        self._poller.start(fetch, apply, should_continue)

    async def _teardown(self) -> None:
        self._generation += 1
        await self._poller.stop()

    async def _on_poll_error(self, error: Exception) -> None:
        await self._set_status(f"Error getting messages: {error}")

    def _log_extra(self) -> dict[str, Any]:
        return {
            "session_state": self._state.value,
            "user_key": self._user_key,
            "conversation_id": self._conversation_id,
        }

    async def _set_status(self, status: str) -> None:
        self._status = status
        await self._event_bus.publish(Topic.STATUS, {"status": status})

    async def _set_state(self, state: SessionState) -> None:
        if state == self._state:
            return
        previous = self._state
        self._state = state
        logger.debug(
            "Session state %s -> %s",
            previous.value,
            state.value,
            extra=self._log_extra(),
        )
        await self._event_bus.publish(
            Topic.STATE, {"from": previous.value, "to": state.value}
        )

    async def _publish_messages(self) -> None:
        await self._event_bus.publish(
            Topic.MESSAGES, {"messages": [m.to_dict() for m in self._messages]}
        )
