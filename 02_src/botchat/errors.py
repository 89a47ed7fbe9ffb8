"""Error taxonomy shared by the bot client, auth provider and history store."""


class BotchatError(Exception):
    """Base class for all botchat errors."""


class BotApiError(BotchatError):
    """A call to the bot backend failed."""


class NetworkError(BotApiError):
    """No connectivity or the request timed out."""


class HttpError(BotApiError):
    """The backend answered with a non-2xx status."""

    def __init__(self, status: int, body: str):
        super().__init__(f"HTTP Error {status}: {body}")
        self.status = status
        self.body = body


class DecodeError(BotApiError):
    """The response did not match the expected shape."""


class Unauthenticated(BotchatError):
    """No signed-in identity."""

    def __init__(self, message: str = "User not logged in"):
        super().__init__(message)


class AuthError(BotchatError):
    """The identity provider rejected the request."""

    def __init__(self, code: str, message: str | None = None):
        super().__init__(message or code)
        self.code = code
