"""Application bootstrap and lifecycle management."""

import os
from typing import Protocol

from .auth import FirebaseAuthProvider, IAuthProvider
from .bot_api import BotApiClient, IBotApiClient
from .config import resolve_db_path
from .conversation import ConversationSession
from .errors import Unauthenticated
from .event_bus import EventBus
from .history import HistoryStore, IHistoryStore
from .logging_config import get_logger
from .models import SessionState

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def open_session(self, bootstrap: bool = True) -> ConversationSession:
        """Return the live session, creating one if needed."""
        ...

    async def close_session(self) -> None:
        """Tear down the live session."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        auth: IAuthProvider | None = None,
        bot_api: IBotApiClient | None = None,
        poll_interval: float | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._poll_interval = poll_interval

        # Components (injected ones are kept, the rest built in start())
        self._auth: IAuthProvider | None = auth
        self._bot_api: IBotApiClient | None = bot_api
        self._history: IHistoryStore | None = None
        self._event_bus: EventBus | None = None
        self._session: ConversationSession | None = None
        # uid of the signed-in user the live session belongs to
        self._session_owner: str | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Auth (no dependencies)
        if self._auth is None:
            self._auth = FirebaseAuthProvider()
        self._auth.on_sign_out(self.close_session)
        logger.info("Auth provider initialized")

        # 2. History store (depends on Auth for the user partition)
        self._history = HistoryStore(self._auth, self._db_path)
        await self._history.init()
        logger.info("History store initialized")

        # 3. EventBus (no dependencies)
        self._event_bus = EventBus()

        # 4. Bot API client (no internal dependencies)
        if self._bot_api is None:
            self._bot_api = BotApiClient()
        logger.info("Bot API client initialized")
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        await self.close_session()
        if self._bot_api:
            await self._bot_api.close()
        if self._history:
            await self._history.close()
            logger.info("History store closed")
        if self._auth:
            await self._auth.close()

    async def open_session(self, bootstrap: bool = True) -> ConversationSession:
        """Return the live session, creating one if needed.

        A new session is bootstrapped unless bootstrap is False (it is about to
        load a saved conversation).
        """
        user = self.auth.current_user
        if not self.auth.is_authenticated or user is None:
            raise Unauthenticated()

        if self._session and self._session_owner != user.uid:
            # Signed in as someone else without signing out first
            logger.info("Signed-in user changed, closing previous session")
            await self.close_session()

        session = self._session
        if session is None or session.state == SessionState.TERMINATED:
            session = ConversationSession(
                bot_api=self.bot_api,
                event_bus=self.event_bus,
                history=self.history,
                interval=self._poll_interval,
            )
            self._session = session
            self._session_owner = user.uid
            if bootstrap:
                await session.bootstrap()
        return session

    async def close_session(self) -> None:
        """Tear down the live session."""
        if self._session:
            await self._session.close()
            self._session = None
            self._session_owner = None

    @property
    def auth(self) -> IAuthProvider:
        """Get auth provider instance."""
        if not self._auth:
            raise RuntimeError("Application not started")
        return self._auth

    @property
    def history(self) -> IHistoryStore:
        """Get history store instance."""
        if not self._history:
            raise RuntimeError("Application not started")
        return self._history

    @property
    def event_bus(self) -> EventBus:
        """Get event bus instance."""
        if not self._event_bus:
            raise RuntimeError("Application not started")
        return self._event_bus

    @property
    def bot_api(self) -> IBotApiClient:
        """Get bot API client instance."""
        if not self._bot_api:
            raise RuntimeError("Application not started")
        return self._bot_api

    @property
    def session(self) -> ConversationSession | None:
        """The live conversation session, if one was opened."""
        return self._session
