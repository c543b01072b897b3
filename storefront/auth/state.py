"""
Session state and the reducer that evolves it.

SessionState is an immutable snapshot. The Session Manager never edits it in
place; every transition goes through reduce(), which returns a new snapshot.
The token and the user are set and cleared together, so no consumer can see
one without the other.
"""

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Optional, Union

DEFAULT_ADMIN_ROLE = "admin"


class SessionStatus(str, Enum):
    ANONYMOUS = "anonymous"
    AUTHENTICATING = "authenticating"
    AUTHENTICATED = "authenticated"
    AUTH_ERROR = "auth_error"


@dataclass(frozen=True)
class SessionState:
    """Snapshot of the client session."""
    user: Optional[Dict[str, Any]] = None
    token: Optional[str] = None
    loading: bool = False
    error: Optional[str] = None
    admin_role: str = field(default=DEFAULT_ADMIN_ROLE, compare=False)

    def __post_init__(self):
        if (self.token is None) != (self.user is None):
            raise ValueError("token and user must be set together")

    @property
    def is_authenticated(self) -> bool:
        return self.token is not None

    @property
    def is_admin(self) -> bool:
        # Client-side only; the backend authorizes admin endpoints itself.
        return self.user is not None and self.user.get("role") == self.admin_role

    @property
    def status(self) -> SessionStatus:
        if self.loading:
            return SessionStatus.AUTHENTICATING
        if self.error is not None:
            return SessionStatus.AUTH_ERROR
        if self.is_authenticated:
            return SessionStatus.AUTHENTICATED
        return SessionStatus.ANONYMOUS

    def as_dict(self) -> Dict[str, Any]:
        """Plain view for route guards and pages."""
        return {
            "user": self.user,
            "token": self.token,
            "is_authenticated": self.is_authenticated,
            "is_admin": self.is_admin,
            "loading": self.loading,
            "error": self.error,
            "status": self.status.value,
        }


# --- Actions ---

@dataclass(frozen=True)
class RequestStarted:
    pass


@dataclass(frozen=True)
class SessionCommitted:
    token: str
    user: Dict[str, Any]


@dataclass(frozen=True)
class UserRefreshed:
    user: Dict[str, Any]


@dataclass(frozen=True)
class RequestFailed:
    message: str


@dataclass(frozen=True)
class SessionCleared:
    error: Optional[str] = None


@dataclass(frozen=True)
class ErrorCleared:
    pass


Action = Union[RequestStarted, SessionCommitted, UserRefreshed, RequestFailed, SessionCleared, ErrorCleared]


def reduce(state: SessionState, action: Action) -> SessionState:
    """Return the state that results from applying action to state."""
    if isinstance(action, RequestStarted):
        return replace(state, loading=True, error=None)

    if isinstance(action, SessionCommitted):
        return replace(state, token=action.token, user=dict(action.user), loading=False, error=None)

    if isinstance(action, UserRefreshed):
        if state.token is None:
            raise ValueError("cannot refresh the user of an anonymous session")
        return replace(state, user=dict(action.user), loading=False, error=None)

    if isinstance(action, RequestFailed):
        # user/token stay exactly as they were before the attempt
        return replace(state, loading=False, error=action.message)

    if isinstance(action, SessionCleared):
        return replace(state, token=None, user=None, loading=False, error=action.error)

    if isinstance(action, ErrorCleared):
        if state.error is None:
            return state
        return replace(state, error=None)

    raise TypeError(f"Unknown action: {action!r}")
