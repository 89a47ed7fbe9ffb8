"""Chat API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application
from ..errors import to_http_exception


class SendRequest(BaseModel):
    """Request model for sending a message."""

    text: str


class ChoiceRequest(BaseModel):
    """Request model for answering a bot prompt."""

    message_id: str
    value: str


class InputRequest(BaseModel):
    text: str


class SessionResponse(BaseModel):
    """Response model for the chat view."""

    state: str
    userKey: str | None = None
    conversationId: str | None = None
    status: str
    inputText: str
    messages: list[dict[str, Any]]


def create_chat_router(app: Application) -> APIRouter:
    """Create chat router."""
    router = APIRouter(prefix="/api/chat", tags=["chat"])

    @router.get("", response_model=SessionResponse)
    async def get_session() -> dict:
        """Chat view; opens a conversation on first access."""
        try:
            session = await app.open_session()
            return session.snapshot()
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/messages", response_model=SessionResponse)
    async def send_message(request: SendRequest) -> dict:
        """Send a message; it is visible in the response right away."""
        try:
            session = await app.open_session()
            await session.send(request.text)
            return session.snapshot()
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/choices", response_model=SessionResponse)
    async def choose(request: ChoiceRequest) -> dict:
        """Answer a button/choice/dropdown prompt."""
        try:
            session = await app.open_session()
            sent = await session.choose(request.message_id, request.value)
            if sent is None:
                raise HTTPException(status_code=409, detail="Prompt cannot be answered")
            return session.snapshot()
        except Exception as e:
            raise to_http_exception(e)

    @router.put("/input", response_model=SessionResponse)
    async def update_input(request: InputRequest) -> dict:
        try:
            session = await app.open_session()
            await session.update_input(request.text)
            return session.snapshot()
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/reset", response_model=SessionResponse)
    async def reset() -> dict:
        """Start over with a new remote user and conversation."""
        try:
            session = await app.open_session()
            await session.reset()
            return session.snapshot()
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/retry", response_model=SessionResponse)
    async def retry() -> dict:
        """Retry a failed bootstrap."""
        try:
            session = await app.open_session()
            await session.retry()
            return session.snapshot()
        except Exception as e:
            raise to_http_exception(e)

    return router
