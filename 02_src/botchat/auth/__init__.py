"""Auth module."""

from .provider import FirebaseAuthProvider, IAuthProvider

__all__ = ["FirebaseAuthProvider", "IAuthProvider"]
