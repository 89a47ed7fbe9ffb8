"""Mapping of botchat errors to HTTP responses."""

from fastapi import HTTPException

from ..errors import AuthError, BotApiError, Unauthenticated


def to_http_exception(error: Exception) -> HTTPException:
    """Translate a domain error raised by a route handler."""
    if isinstance(error, HTTPException):
        return error
    if isinstance(error, Unauthenticated):
        return HTTPException(status_code=401, detail=str(error))
    if isinstance(error, AuthError):
        return HTTPException(status_code=400, detail=error.code)
    if isinstance(error, BotApiError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=500, detail=str(error))
