"""Tests for the bot backend client."""

import json

import httpx
import pytest

from botchat.bot_api import BotApiClient
from botchat.errors import DecodeError, HttpError, NetworkError

BASE_URL = "https://bot.test/api"


def make_client(handler) -> BotApiClient:
    """BotApiClient wired to an in-process transport."""
    http = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return BotApiClient(base_url=BASE_URL, client=http)


MESSAGE = {
    "id": "m1",
    "conversationId": "c1",
    "userId": "k1",
    "payload": {"type": "text", "text": "Hi"},
    "createdAt": "2024-01-01T12:00:00.000Z",
    "updatedAt": "2024-01-01T12:00:00.000Z",
    "tags": [],
}


class TestCreateUser:
    """Tests for create_user()."""

    @pytest.mark.asyncio
    async def test_create_user(self):
        """Test request shape and decoding of the user key."""
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            seen["user_key"] = request.headers.get("X-User-Key")
            return httpx.Response(
                200,
                json={
                    "user": {
                        "id": "u1",
                        "createdAt": "2024-01-01T12:00:00.000Z",
                        "updatedAt": "2024-01-01T12:00:00.000Z",
                    },
                    "key": "k1",
                },
            )

        client = make_client(handler)
        user = await client.create_user()

        assert user.key == "k1"
        assert user.remote_user_id == "u1"
        assert seen["method"] == "POST"
        assert seen["url"] == f"{BASE_URL}/users"
        assert seen["user_key"] is None
        assert "name" in seen["body"]
        assert seen["body"]["metadata"]["platform"] == "python"

    @pytest.mark.asyncio
    async def test_error_envelope(self):
        """Test that an error body with a 200 status still fails."""

        def handler(request):
            return httpx.Response(200, json={"code": 429, "type": "RateLimited", "message": "Slow down"})

        client = make_client(handler)

        with pytest.raises(HttpError) as exc_info:
            await client.create_user()

        assert exc_info.value.status == 429
        assert exc_info.value.body == "Slow down"

    @pytest.mark.asyncio
    async def test_missing_key(self):
        def handler(request):
            return httpx.Response(200, json={"user": None})

        client = make_client(handler)

        with pytest.raises(DecodeError):
            await client.create_user()


class TestConversationCalls:
    """Tests for conversation and message endpoints."""

    @pytest.mark.asyncio
    async def test_create_conversation(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["user_key"] = request.headers.get("X-User-Key")
            return httpx.Response(
                200,
                json={
                    "conversation": {
                        "id": "c1",
                        "createdAt": "2024-01-01T12:00:00.000Z",
                        "updatedAt": "2024-01-01T12:00:00.000Z",
                    }
                },
            )

        client = make_client(handler)
        conversation = await client.create_conversation("k1")

        assert conversation.conversation_id == "c1"
        assert conversation.created_at == "2024-01-01T12:00:00.000Z"
        assert seen["url"] == f"{BASE_URL}/conversations"
        assert seen["user_key"] == "k1"

    @pytest.mark.asyncio
    async def test_send_message(self):
        seen = {}

        def handler(request):
            seen["url"] = str(request.url)
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={"message": MESSAGE})

        client = make_client(handler)
        message = await client.send_message("k1", "c1", "Hi")

        assert message.id == "m1"
        assert message.conversation_id == "c1"
        assert seen["url"] == f"{BASE_URL}/messages"
        assert seen["body"] == {
            "payload": {"type": "text", "text": "Hi"},
            "conversationId": "c1",
        }

    @pytest.mark.asyncio
    async def test_list_messages(self):
        seen = {}
        bot_message = dict(
            MESSAGE,
            id="m2",
            userId="bot",
            payload={"type": "choice", "text": "Pick", "options": [{"label": "A", "value": "a"}]},
        )

        def handler(request):
            seen["method"] = request.method
            seen["url"] = str(request.url)
            return httpx.Response(200, json={"messages": [MESSAGE, bot_message], "meta": {}})

        client = make_client(handler)
        messages = await client.list_messages("k1", "c1")

        assert [m.id for m in messages] == ["m1", "m2"]
        assert messages[1].payload.options[0].value == "a"
        assert seen["method"] == "GET"
        assert seen["url"] == f"{BASE_URL}/conversations/c1/messages"

    @pytest.mark.asyncio
    async def test_empty_conversation(self):
        def handler(request):
            return httpx.Response(200, json={"messages": []})

        client = make_client(handler)

        assert await client.list_messages("k1", "c1") == []


class TestErrors:
    """Tests for error mapping."""

    @pytest.mark.asyncio
    async def test_http_error(self):
        def handler(request):
            return httpx.Response(404, text="Conversation not found")

        client = make_client(handler)

        with pytest.raises(HttpError) as exc_info:
            await client.list_messages("k1", "c1")

        assert exc_info.value.status == 404
        assert str(exc_info.value) == "HTTP Error 404: Conversation not found"

    @pytest.mark.asyncio
    async def test_network_error(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(NetworkError):
            await client.create_conversation("k1")

    @pytest.mark.asyncio
    async def test_undecodable_body_is_network_error(self):
        def handler(request):
            raise httpx.DecodingError("bad gzip stream", request=request)

        client = make_client(handler)

        with pytest.raises(NetworkError):
            await client.list_messages("k1", "c1")

    @pytest.mark.asyncio
    async def test_not_json(self):
        def handler(request):
            return httpx.Response(200, text="<html>oops</html>")

        client = make_client(handler)

        with pytest.raises(DecodeError):
            await client.list_messages("k1", "c1")

    @pytest.mark.asyncio
    async def test_wrong_shape(self):
        def handler(request):
            return httpx.Response(200, json={"messages": [{"id": "m1"}]})

        client = make_client(handler)

        with pytest.raises(DecodeError):
            await client.list_messages("k1", "c1")

    @pytest.mark.asyncio
    async def test_json_array_body(self):
        def handler(request):
            return httpx.Response(200, json=[MESSAGE])

        client = make_client(handler)

        with pytest.raises(DecodeError):
            await client.list_messages("k1", "c1")

    @pytest.mark.asyncio
    async def test_close_keeps_injected_client(self):
        http = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: httpx.Response(200)))
        client = BotApiClient(base_url=BASE_URL, client=http)

        await client.close()

        assert not http.is_closed
        await http.aclose()
