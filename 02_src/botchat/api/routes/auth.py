"""Auth API routes."""

from pydantic import BaseModel
from fastapi import APIRouter

from ...app import Application
from ...models import AuthUser
from ..errors import to_http_exception


class CredentialsRequest(BaseModel):
    """Request model for email/password sign-in and sign-up."""

    email: str
    password: str


class GoogleSignInRequest(BaseModel):
    """Request model for Google sign-in."""

    id_token: str


class PasswordResetRequest(BaseModel):
    email: str


class UserResponse(BaseModel):
    """Response model for the signed-in user."""

    uid: str
    email: str | None = None
    email_verified: bool = False
    display_name: str | None = None


class StatusResponse(BaseModel):
    status: str


def _user_payload(user: AuthUser) -> dict:
    return {
        "uid": user.uid,
        "email": user.email,
        "email_verified": user.email_verified,
        "display_name": user.display_name,
    }


def create_auth_router(app: Application) -> APIRouter:
    """Create auth router."""
    router = APIRouter(prefix="/api/auth", tags=["auth"])

    @router.post("/sign-in", response_model=UserResponse)
    async def sign_in(request: CredentialsRequest) -> dict:
        """Sign in with email and password."""
        try:
            user = await app.auth.sign_in(request.email, request.password)
            return _user_payload(user)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/sign-up", response_model=UserResponse)
    async def sign_up(request: CredentialsRequest) -> dict:
        """Create an account; a verification email is sent."""
        try:
            user = await app.auth.sign_up(request.email, request.password)
            return _user_payload(user)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/google", response_model=UserResponse)
    async def sign_in_with_google(request: GoogleSignInRequest) -> dict:
        """Sign in with a Google ID token."""
        try:
            user = await app.auth.sign_in_with_google(request.id_token)
            return _user_payload(user)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/reset-password", response_model=StatusResponse)
    async def reset_password(request: PasswordResetRequest) -> dict:
        try:
            await app.auth.reset_password(request.email)
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/verify-email", response_model=StatusResponse)
    async def send_verification() -> dict:
        """Send the verification email again."""
        try:
            await app.auth.send_email_verification()
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    @router.get("/me", response_model=UserResponse)
    async def me() -> dict:
        """Current user, with verification status refreshed."""
        try:
            user = await app.auth.reload_user()
            return _user_payload(user)
        except Exception as e:
            raise to_http_exception(e)

    @router.post("/sign-out", response_model=StatusResponse)
    async def sign_out() -> dict:
        """Sign out; the chat session is torn down."""
        try:
            await app.auth.sign_out()
            return {"status": "ok"}
        except Exception as e:
            raise to_http_exception(e)

    return router
