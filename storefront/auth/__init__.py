"""
Authentication module for the storefront client.

Provides the session state machine, route guards and the NiceGUI
login/register/logout pages built on top of it.
"""

from storefront.errors import (
    AuthError,
    InvalidCredentials,
    Unauthorized,
    NetworkFailure,
    MalformedResponse,
    ValidationFailure,
    StorageFailure,
)
from storefront.auth.result import Ok, Err
from storefront.auth.state import SessionState, SessionStatus
from storefront.auth.session import (
    SessionManager,
    BrowserSessions,
    get_session_manager,
    configure_session_manager,
    configure_browser_sessions,
    reset_session_manager,
)

__all__ = [
    'AuthError',
    'InvalidCredentials',
    'Unauthorized',
    'NetworkFailure',
    'MalformedResponse',
    'ValidationFailure',
    'StorageFailure',
    'Ok',
    'Err',
    'SessionState',
    'SessionStatus',
    'SessionManager',
    'BrowserSessions',
    'get_session_manager',
    'configure_session_manager',
    'configure_browser_sessions',
    'reset_session_manager',
]
