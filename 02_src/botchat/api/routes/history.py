"""History API routes."""

from typing import Any

from pydantic import BaseModel
from fastapi import APIRouter, HTTPException

from ...app import Application
from ...models import SavedConversation
from ..errors import to_http_exception


class SaveRequest(BaseModel):
    """Request model for saving the current conversation."""

    title: str | None = None


class SavedConversationResponse(BaseModel):
    """Response model for a saved conversation."""

    id: str
    title: str
    saved_at: str
    user_key: str
    conversation_id: str
    message_count: int
    messages: list[dict[str, Any]]


class StatusResponse(BaseModel):
    status: str


def _payload(conversation: SavedConversation) -> dict:
    return {
        "id": conversation.id,
        "title": conversation.title,
        "saved_at": conversation.saved_at,
        "user_key": conversation.user_key,
        "conversation_id": conversation.conversation_id,
        "message_count": len(conversation.messages),
        "messages": [m.to_dict() for m in conversation.messages],
    }


def create_history_router(app: Application) -> APIRouter:
    """Create history router."""
    router = APIRouter(prefix="/api/history", tags=["history"])

    @router.get("", response_model=list[SavedConversationResponse])
    async def list_conversations() -> list[dict]:
        """Saved conversations, newest first; expired ones are purged."""
        try:
            return [_payload(c) for c in await app.history.list()]
        except Exception as e:
            raise to_http_exception(e)

    @router.post("", response_model=SavedConversationResponse)
    async def save_conversation(request: SaveRequest) -> dict:
        """Save the current conversation."""
        try:
            session = await app.open_session()
            saved = await session.save(request.title)
            if saved is None:
                raise HTTPException(status_code=409, detail=session.status)
            return _payload(saved)
        except Exception as e:
            raise to_http_exception(e)

    @router.delete("/{conversation_id}", response_model=StatusResponse)
    async def delete_conversation(conversation_id: str) -> dict:
        try:
            await app.history.delete(conversation_id)
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/{conversation_id}/load", response_model=StatusResponse)
    async def load_conversation(conversation_id: str) -> dict:
        """Resume a saved conversation in the chat view."""
        try:
            saved = await app.history.get(conversation_id)
            if saved is None:
                raise HTTPException(status_code=404, detail="Conversation not found")
            session = await app.open_session(bootstrap=False)
            await session.load(saved)
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    return router
