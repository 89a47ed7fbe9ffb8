"""Tests for the history store."""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio

from botchat.errors import Unauthenticated
from botchat.history import HistoryStore
from botchat.models import AuthUser, Message, MessageKind, MessageOption, SavedConversation


class FakeClock:
    """Settable clock for retention tests."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


def make_saved(id: str, title: str = "Chat", text: str = "Hi") -> SavedConversation:
    return SavedConversation(
        id=id,
        title=title,
        saved_at="Jan 01, 2024 12:00",
        user_key="k1",
        conversation_id="c1",
        messages=[
            Message(
                id="srv1",
                conversation_id="c1",
                sender_id="user_k1",
                created_at="2024-01-01T12:00:00.000Z",
                text=text,
            ),
            Message(
                id="srv2",
                conversation_id="c1",
                sender_id="bot_botpress",
                created_at="2024-01-01T12:00:01.000Z",
                text="Pick",
                kind=MessageKind.CHOICE,
                options=[MessageOption(label="A", value="a")],
                interacted=True,
            ),
        ],
    )


@pytest.fixture
def clock():
    return FakeClock(datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc))


@pytest_asyncio.fixture
async def store(signed_in_auth, clock):
    """In-memory store with a settable clock."""
    s = HistoryStore(signed_in_auth, ":memory:", retention=30, clock=clock)
    await s.init()
    yield s
    await s.close()


class TestHistoryStore:
    """Tests for HistoryStore."""

    @pytest.mark.asyncio
    async def test_save_and_list(self, store, clock):
        """Test that a saved transcript comes back intact."""
        saved = make_saved("s1")

        returned_id = await store.save(saved)
        items = await store.list()

        assert returned_id == "s1"
        assert saved.created_at == clock.now
        assert len(items) == 1
        item = items[0]
        assert item.title == "Chat"
        assert item.user_key == "k1"
        assert item.conversation_id == "c1"
        assert item.created_at == clock.now
        assert item.messages == saved.messages

    @pytest.mark.asyncio
    async def test_newest_first(self, store, clock):
        await store.save(make_saved("older"))
        clock.now += timedelta(minutes=5)
        await store.save(make_saved("newer"))

        assert [c.id for c in await store.list()] == ["newer", "older"]

    @pytest.mark.asyncio
    async def test_save_same_id_replaces(self, store):
        await store.save(make_saved("s1", title="First"))
        await store.save(make_saved("s1", title="Second"))

        items = await store.list()

        assert [c.title for c in items] == ["Second"]

    @pytest.mark.asyncio
    async def test_get(self, store):
        await store.save(make_saved("s1"))

        assert (await store.get("s1")).id == "s1"
        assert await store.get("missing") is None

    @pytest.mark.asyncio
    async def test_delete(self, store):
        await store.save(make_saved("s1"))
        await store.save(make_saved("s2"))

        await store.delete("s1")

        assert [c.id for c in await store.list()] == ["s2"]

    @pytest.mark.asyncio
    async def test_delete_missing_is_noop(self, store):
        await store.delete("missing")
        assert await store.list() == []


class TestRetention:
    """Tests for the retention sweep."""

    @pytest.mark.asyncio
    async def test_list_never_returns_expired(self, store, clock):
        """Test that transcripts older than the retention window disappear."""
        await store.save(make_saved("old"))
        clock.now += timedelta(days=20)
        await store.save(make_saved("recent"))

        clock.now += timedelta(days=11)
        items = await store.list()

        assert [c.id for c in items] == ["recent"]
        cutoff = clock.now - timedelta(days=30)
        assert all(c.created_at >= cutoff for c in items)

    @pytest.mark.asyncio
    async def test_exactly_at_cutoff_is_kept(self, store, clock):
        await store.save(make_saved("edge"))
        clock.now += timedelta(days=30)

        assert [c.id for c in await store.list()] == ["edge"]

    @pytest.mark.asyncio
    async def test_delete_old_counts(self, store, clock):
        await store.save(make_saved("a"))
        await store.save(make_saved("b"))
        clock.now += timedelta(days=31)

        assert await store.delete_old() == 2
        assert await store.delete_old() == 0


class TestPartitioning:
    """Tests for per-user partitioning."""

    @pytest.mark.asyncio
    async def test_users_see_only_their_own(self, store, signed_in_auth):
        await store.save(make_saved("mine"))

        signed_in_auth.current_user = AuthUser(uid="someone-else")
        await store.save(make_saved("theirs"))
        assert [c.id for c in await store.list()] == ["theirs"]

        signed_in_auth.current_user = AuthUser(uid="uid1")
        assert [c.id for c in await store.list()] == ["mine"]

    @pytest.mark.asyncio
    async def test_same_id_for_two_users(self, store, signed_in_auth):
        await store.save(make_saved("s1", title="Mine"))
        signed_in_auth.current_user = AuthUser(uid="u2")
        await store.save(make_saved("s1", title="Theirs"))

        assert [c.title for c in await store.list()] == ["Theirs"]
        signed_in_auth.current_user = AuthUser(uid="uid1")
        assert [c.title for c in await store.list()] == ["Mine"]

    @pytest.mark.asyncio
    async def test_signed_out(self, store, signed_in_auth):
        await store.save(make_saved("s1"))
        signed_in_auth.current_user = None

        assert await store.list() == []
        assert await store.delete_old() == 0
        with pytest.raises(Unauthenticated):
            await store.save(make_saved("s2"))
        with pytest.raises(Unauthenticated):
            await store.delete("s1")


class TestLifecycle:
    """Tests for store setup."""

    @pytest.mark.asyncio
    async def test_not_initialized(self, signed_in_auth):
        store = HistoryStore(signed_in_auth, ":memory:")

        with pytest.raises(RuntimeError):
            await store.list()

    @pytest.mark.asyncio
    async def test_file_database_persists(self, signed_in_auth, tmp_path):
        db_path = tmp_path / "history.db"

        store = HistoryStore(signed_in_auth, db_path)
        await store.init()
        await store.save(make_saved("s1"))
        await store.close()

        reopened = HistoryStore(signed_in_auth, db_path)
        await reopened.init()
        try:
            assert [c.id for c in await reopened.list()] == ["s1"]
        finally:
            await reopened.close()
