"""
Route guards for the storefront client.

Provides decorators and utilities for protecting pages and reading the
current session from UI code. Guards only look at the session snapshot;
admin endpoints are still authorized by the backend.
"""

import functools
import logging
from typing import Optional, Dict, Any, Callable
from urllib.parse import quote, urlsplit

from nicegui import ui, app

from storefront.auth.session import get_session_manager

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
ADMIN_LOGIN_PATH = "/admin/login"


def safe_redirect(target: Optional[str], default: str = "/") -> str:
    """
    Return target if it is a path on this site, otherwise default.

    Rejects absolute URLs and scheme-relative ones ("//host", "/\\host")
    so a crafted ?redirect= cannot send the visitor elsewhere.
    """
    if not target or not target.startswith("/") or target.startswith(("//", "/\\")):
        return default
    parts = urlsplit(target)
    if parts.scheme or parts.netloc:
        return default
    return target


def resolve_redirect(
    snapshot: Dict[str, Any],
    path: str,
    admin: bool = False,
    redirect_to: Optional[str] = None
) -> Optional[str]:
    """
    Decide where a guarded page should send the visitor.

    Args:
        snapshot: SessionManager.snapshot()
        path: The page being requested
        admin: Whether the page requires the admin role
        redirect_to: Override the login page

    Returns:
        None if access is allowed, otherwise the URL to navigate to
    """
    if admin:
        if snapshot["is_admin"]:
            return None
        target = redirect_to or ADMIN_LOGIN_PATH
        return f"{target}?redirect={quote(path, safe='/')}"

    if snapshot["is_authenticated"]:
        return None
    return redirect_to or LOGIN_PATH


def _guard(admin: bool, redirect_to: Optional[str]):
    def decorator(func: Callable):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            manager = get_session_manager()
            # first visit after a restart restores this browser's session
            await manager.ensure_hydrated()
            snapshot = manager.snapshot()
            try:
                path = ui.context.client.request.url.path
            except (AttributeError, RuntimeError):
                path = "/"

            target = resolve_redirect(snapshot, path, admin=admin, redirect_to=redirect_to)
            if target is not None:
                # Store the intended destination for post-login redirect
                try:
                    app.storage.user["redirect_after_login"] = path
                except RuntimeError as e:
                    logger.debug(f"Could not remember redirect: {e}")

                ui.navigate.to(target)
                return

            result = func(*args, **kwargs)
            if hasattr(result, '__await__'):
                return await result
            return result

        return wrapper
    return decorator


def require_auth(redirect_to: str = LOGIN_PATH):
    """
    Decorator to require a logged-in user for a page.

    Usage:
        @ui.page('/my-orders')
        @require_auth()
        def my_orders():
            ...

    Args:
        redirect_to: URL to redirect to if not authenticated
    """
    return _guard(admin=False, redirect_to=redirect_to)


def require_admin(redirect_to: str = ADMIN_LOGIN_PATH):
    """
    Decorator to require the admin role for a page.

    The requested path is appended as ?redirect=... so the admin login
    page can return to it.
    """
    return _guard(admin=True, redirect_to=redirect_to)


class AuthContext:
    """
    Context class for auth-related information in the current request.

    Use in UI code to adapt based on auth state.
    """

    def __init__(self, manager=None):
        self._manager = manager
        self._snapshot = None

    @property
    def snapshot(self) -> Dict[str, Any]:
        """Session snapshot, read once per context."""
        if self._snapshot is None:
            manager = self._manager or get_session_manager()
            self._snapshot = manager.snapshot()
        return self._snapshot

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self.snapshot["user"]

    @property
    def is_authenticated(self) -> bool:
        return self.snapshot["is_authenticated"]

    @property
    def is_admin(self) -> bool:
        return self.snapshot["is_admin"]

    @property
    def user_id(self) -> Optional[str]:
        """Get current user's ID."""
        if not self.user:
            return None
        return self.user.get("id") or self.user.get("_id")

    @property
    def display_name(self) -> str:
        """Get display name for current user."""
        if self.user:
            return self.user.get("name") or self.user.get("email") or "User"
        return "Guest"


def get_auth_context() -> AuthContext:
    """Get an AuthContext for the current request."""
    return AuthContext()
