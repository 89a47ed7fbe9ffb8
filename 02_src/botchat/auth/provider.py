"""Auth provider backed by the Firebase Identity Toolkit REST API."""

import os
from typing import Awaitable, Callable, Protocol

import httpx

from ..errors import AuthError, NetworkError, Unauthenticated
from ..logging_config import get_logger
from ..models import AuthUser

logger = get_logger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
GOOGLE_PROVIDER_ID = "google.com"

SignOutListener = Callable[[], Awaitable[None]]


class IAuthProvider(Protocol):
    """Sign-in state of the app user."""

    @property
    def current_user(self) -> AuthUser | None:
        """The signed-in user, or None."""
        ...

    @property
    def is_authenticated(self) -> bool:
        ...

    @property
    def is_email_verified(self) -> bool:
        ...

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """Email/password sign-in."""
        ...

    async def sign_up(self, email: str, password: str) -> AuthUser:
        """Create an account and send the verification email."""
        ...

    async def sign_in_with_google(self, google_id_token: str) -> AuthUser:
        """Exchange a Google ID token for a session."""
        ...

    async def reset_password(self, email: str) -> None:
        """Send a password reset email."""
        ...

    async def send_email_verification(self) -> None:
        """Send the verification email to the current user."""
        ...

    async def reload_user(self) -> AuthUser:
        """Refresh the current user's profile (verification status)."""
        ...

    async def sign_out(self) -> None:
        """Forget the current user and notify listeners."""
        ...

    def on_sign_out(self, listener: SignOutListener) -> None:
        """Register a callback run after sign-out."""
        ...

    async def close(self) -> None:
        """Release the HTTP connection pool."""
        ...


class FirebaseAuthProvider:
    """Firebase Authentication over REST."""

    def __init__(
        self,
        api_key: str | None = None,
        client: httpx.AsyncClient | None = None,
        base_url: str = IDENTITY_TOOLKIT_URL,
    ):
        self._api_key = api_key or os.getenv("FIREBASE_API_KEY")
        if not self._api_key:
            raise ValueError("FIREBASE_API_KEY environment variable not set")

        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=30.0)
        self._user: AuthUser | None = None
        self._sign_out_listeners: list[SignOutListener] = []

    @property
    def current_user(self) -> AuthUser | None:
        return self._user

    @property
    def is_authenticated(self) -> bool:
        return self._user is not None

    @property
    def is_email_verified(self) -> bool:
        return bool(self._user and self._user.email_verified)

    def on_sign_out(self, listener: SignOutListener) -> None:
        """Register a callback run after sign-out."""
        self._sign_out_listeners.append(listener)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """Email/password sign-in."""
        data = await self._call(
            "accounts:signInWithPassword",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        user = self._user_from(data)
        # Verification status is only reported by accounts:lookup
        await self._lookup(user)
        await self._adopt(user)
        logger.info("Signed in %s", user.uid)
        return user

    async def sign_up(self, email: str, password: str) -> AuthUser:
        """Create an account and send the verification email."""
        data = await self._call(
            "accounts:signUp",
            {"email": email, "password": password, "returnSecureToken": True},
        )
        await self._adopt(self._user_from(data))
        logger.info("Signed up %s", self._user.uid)

        try:
            await self.send_email_verification()
        except (AuthError, NetworkError) as e:
            logger.warning("Failed to send verification email: %s", e)

        return self._user

    async def sign_in_with_google(self, google_id_token: str) -> AuthUser:
        """Exchange a Google ID token for a session."""
        data = await self._call(
            "accounts:signInWithIdp",
            {
                "postBody": f"id_token={google_id_token}&providerId={GOOGLE_PROVIDER_ID}",
                "requestUri": "http://localhost",
                "returnIdpCredential": True,
                "returnSecureToken": True,
            },
        )
        await self._adopt(self._user_from(data))
        logger.info("Signed in %s with Google", self._user.uid)
        return self._user

    async def reset_password(self, email: str) -> None:
        """Send a password reset email."""
        await self._call(
            "accounts:sendOobCode",
            {"requestType": "PASSWORD_RESET", "email": email},
        )

    async def send_email_verification(self) -> None:
        """Send the verification email to the current user."""
        user = self._require_user()
        await self._call(
            "accounts:sendOobCode",
            {"requestType": "VERIFY_EMAIL", "idToken": user.id_token},
        )

    async def reload_user(self) -> AuthUser:
        """Refresh the current user's profile (verification status)."""
        return await self._lookup(self._require_user())

    async def _lookup(self, user: AuthUser) -> AuthUser:
        """Fill profile fields of user from accounts:lookup."""
        data = await self._call("accounts:lookup", {"idToken": user.id_token})

        users = data.get("users") or []
        if not users:
            raise AuthError("USER_NOT_FOUND")
        profile = users[0]

        user.email = profile.get("email", user.email)
        user.email_verified = bool(profile.get("emailVerified", False))
        user.display_name = profile.get("displayName", user.display_name)
        return user

    async def sign_out(self) -> None:
        """Forget the current user and notify listeners."""
        if self._user is None:
            return
        logger.info("Signing out %s", self._user.uid)
        self._user = None
        await self._notify_sign_out()

    async def _adopt(self, user: AuthUser) -> None:
        """Make user the current user; a replaced different user counts as signed out."""
        previous = self._user
        self._user = user
        if previous is not None and previous.uid != user.uid:
            logger.info("User %s replaced by %s", previous.uid, user.uid)
            await self._notify_sign_out()

    async def _notify_sign_out(self) -> None:
        for listener in self._sign_out_listeners:
            try:
                await listener()
            except Exception as e:
                logger.error("Sign-out listener failed: %s", e, exc_info=True)

    def _require_user(self) -> AuthUser:
        if self._user is None:
            raise Unauthenticated("No user logged in")
        return self._user

    @staticmethod
    def _user_from(data: dict) -> AuthUser:
        uid = data.get("localId")
        if not uid:
            raise AuthError("INVALID_RESPONSE", "Authentication failed")
        return AuthUser(
            uid=uid,
            email=data.get("email"),
            email_verified=bool(data.get("emailVerified", False)),
            display_name=data.get("displayName"),
            id_token=data.get("idToken"),
            refresh_token=data.get("refreshToken"),
        )

    async def _call(self, method: str, body: dict) -> dict:
        """POST to an Identity Toolkit method and return the JSON body."""
        try:
            response = await self._client.post(
                f"{self._base_url}/{method}",
                params={"key": self._api_key},
                json=body,
            )
        except httpx.RequestError as e:
            raise NetworkError(f"Network error: {e}") from e

        try:
            data = response.json()
        except ValueError:
            data = {}

        if not response.is_success:
            error = data.get("error", {}) if isinstance(data, dict) else {}
            code = error.get("message") or f"HTTP_{response.status_code}"
            raise AuthError(code)

        return data if isinstance(data, dict) else {}
