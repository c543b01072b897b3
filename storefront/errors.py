"""
Authentication error taxonomy.

Every failure the Session Manager can report is one of these. The `kind`
string is stable and safe to branch on; `message` is what the user sees.
"""

from typing import Optional


class AuthError(Exception):
    """Base class for session/auth failures."""

    kind = "auth_error"
    default_message = "Authentication failed"

    def __init__(self, message: Optional[str] = None, status: Optional[int] = None):
        self.message = message or self.default_message
        self.status = status
        super().__init__(self.message)


class InvalidCredentials(AuthError):
    """The backend rejected a login or registration."""

    kind = "invalid_credentials"
    default_message = "Invalid credentials"


class Unauthorized(AuthError):
    """A stored token was rejected (missing, invalid or expired)."""

    kind = "unauthorized"
    default_message = "Not authorized"


class NetworkFailure(AuthError):
    """Transport-level failure: connection refused, timeout, 5xx."""

    kind = "network"
    default_message = "Network error"


class MalformedResponse(NetworkFailure):
    """The backend answered 2xx with a body that does not match the envelope."""

    kind = "malformed_response"
    default_message = "Unexpected response from server"


class ValidationFailure(AuthError):
    """Input rejected on the client before any request was sent."""

    kind = "validation"
    default_message = "Invalid input"


class StorageFailure(AuthError):
    """The persisted session record could not be written or removed."""

    kind = "storage"
    default_message = "Could not save session"
