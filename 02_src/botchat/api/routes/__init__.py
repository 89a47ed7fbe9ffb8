"""API routers."""

from .auth import create_auth_router
from .chat import create_chat_router
from .history import create_history_router

__all__ = ["create_auth_router", "create_chat_router", "create_history_router"]
