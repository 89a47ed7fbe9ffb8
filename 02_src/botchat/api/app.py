"""FastAPI application setup."""

import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from ..app import Application
from .routes import create_auth_router, create_chat_router, create_history_router


# Global application instance
_app: Application | None = None


def get_app() -> Application:
    """Get the global application instance."""
    global _app
    if not _app:
        _app = Application()
    return _app


def create_fastapi_app(application: Application | None = None) -> FastAPI:
    """Create and configure FastAPI application."""
    application = application or get_app()

    @asynccontextmanager
    async def lifespan(fastapi_app: FastAPI):
        """Manage application lifespan."""
        await application.start()
        yield
        await application.stop()

    fastapi_app = FastAPI(
        title="botchat API",
        description="Local API of the bot chat client",
        version="0.1.0",
        lifespan=lifespan,
    )

    origins = os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=[o.strip() for o in origins if o.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    fastapi_app.include_router(create_auth_router(application))
    fastapi_app.include_router(create_chat_router(application))
    fastapi_app.include_router(create_history_router(application))

    return fastapi_app
