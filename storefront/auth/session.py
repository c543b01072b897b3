"""
Session Management for the storefront client.

Owns the authentication state (user, token, loading, error), keeps the
persisted copy and the outbound Authorization header in lockstep with it,
and exposes login/register/logout/refresh to pages and route guards.

Every transition goes through a single dispatch() call into the reducer in
storefront.auth.state. Operations that touch the network are serialized by
one asyncio.Lock: overlapping calls queue and run in order, so the call that
completes last determines the final state.
"""

import asyncio
import logging
from typing import Any, Callable, Dict, List, Optional, Set

from storefront.api.client import ApiClient
from storefront.errors import (
    AuthError,
    InvalidCredentials,
    MalformedResponse,
    StorageFailure,
    Unauthorized,
    ValidationFailure,
)
from storefront.auth.result import Err, Ok, Result
from storefront.auth.state import (
    DEFAULT_ADMIN_ROLE,
    ErrorCleared,
    RequestFailed,
    RequestStarted,
    SessionCleared,
    SessionCommitted,
    SessionState,
    UserRefreshed,
    reduce,
)
from storefront.auth.validation import validate_credentials, validate_registration
from storefront.config import LOGOUT_TIMEOUT, Settings, load_settings
from storefront.storage.factory import create_store
from storefront.storage.protocol import SessionStore, TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)

# Backend answers with these statuses when the submitted credentials are wrong
CREDENTIAL_REJECTIONS = (400, 401, 403)

Listener = Callable[[SessionState], Any]


class SessionManager:
    """
    Manages the client session against the storefront backend.

    Holds exactly one session. A script or single-user client creates one
    per process; the web app keeps one per browser through BrowserSessions.
    Call hydrate() (or ensure_hydrated()) before use and close() at shutdown.
    """

    def __init__(
        self,
        api: ApiClient,
        store: SessionStore,
        admin_role: str = DEFAULT_ADMIN_ROLE
    ):
        """
        Initialize SessionManager.

        Args:
            api: Client whose default Authorization header this manager owns
            store: Durable home of the {token, user} pair
            admin_role: Value of user["role"] that grants admin pages
        """
        self._api = api
        self._store = store
        self._admin_role = admin_role
        self._state = SessionState(admin_role=admin_role)
        self._lock = asyncio.Lock()
        self._listeners: List[Listener] = []
        self._listener_tasks: Set[asyncio.Task] = set()
        self._hydrated = False
        self._hydration: Optional[asyncio.Future] = None

    @classmethod
    def from_settings(cls, settings: Settings, storage=None) -> "SessionManager":
        """Build a manager, its API client and its store from Settings."""
        api = ApiClient(settings.api_url, timeout=settings.request_timeout)
        store = create_store(settings.session_store, settings.session_path, storage=storage)
        return cls(api, store, admin_role=settings.admin_role)

    # --- State ---

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user(self) -> Optional[Dict[str, Any]]:
        return self._state.user

    @property
    def token(self) -> Optional[str]:
        return self._state.token

    @property
    def is_authenticated(self) -> bool:
        return self._state.is_authenticated

    @property
    def is_admin(self) -> bool:
        return self._state.is_admin

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def error(self) -> Optional[str]:
        return self._state.error

    @property
    def api(self) -> ApiClient:
        return self._api

    def snapshot(self) -> Dict[str, Any]:
        """The session as seen by route guards and pages."""
        return self._state.as_dict()

    def subscribe(self, callback: Listener) -> None:
        """Call callback(state) after every transition."""
        if callback not in self._listeners:
            self._listeners.append(callback)

    def unsubscribe(self, callback: Listener) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _dispatch(self, action) -> SessionState:
        self._state = reduce(self._state, action)
        for callback in list(self._listeners):
            try:
                result = callback(self._state)
                if asyncio.iscoroutine(result):
                    self._schedule_listener(result)
            except Exception as e:
                logger.error(f"Error in session listener: {e}")
        return self._state

    def _schedule_listener(self, coro) -> None:
        """Run an async listener as a task that is kept until it finishes."""
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning("Async session listener skipped: no running event loop")
            return
        self._listener_tasks.add(task)
        task.add_done_callback(self._listener_finished)

    def _listener_finished(self, task: asyncio.Task) -> None:
        self._listener_tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Error in session listener: {task.exception()}")

    # --- Authentication ---

    async def login(self, email: str, password: str) -> Result:
        """
        Authenticate with email and password.

        Returns:
            Ok(state) when authenticated, Err(error) otherwise
        """
        return await self._authenticate(
            "/auth/login",
            {"email": email, "password": password},
            validate=lambda: validate_credentials(email, password),
            failure_message="Login failed",
        )

    async def register(self, name: str, email: str, password: str) -> Result:
        """Create an account and log into it."""
        return await self._authenticate(
            "/auth/register",
            {"name": name, "email": email, "password": password},
            validate=lambda: validate_registration(name, email, password),
            failure_message="Registration failed",
        )

    async def admin_login(self, email: str, password: str) -> Result:
        """Authenticate against the admin endpoint; the user must carry the admin role."""
        return await self._authenticate(
            "/auth/admin/login",
            {"email": email, "password": password},
            validate=lambda: validate_credentials(email, password),
            failure_message="Admin login failed",
            require_admin=True,
        )

    async def _authenticate(
        self,
        path: str,
        payload: Dict[str, Any],
        validate: Callable[[], None],
        failure_message: str,
        require_admin: bool = False
    ) -> Result:
        async with self._lock:
            try:
                validate()
            except ValidationFailure as e:
                self._dispatch(RequestFailed(e.message))
                return Err(e)

            self._dispatch(RequestStarted())
            try:
                body = await asyncio.to_thread(self._api.post, path, payload)
                token, user = self._parse_session(body)
                if require_admin and user.get("role") != self._admin_role:
                    raise InvalidCredentials("Invalid admin credentials")
                self._persist(token, user)
            except AuthError as e:
                error = self._credentials_error(e)
                logger.error(f"{failure_message}: {error.message}")
                self._dispatch(RequestFailed(error.message))
                return Err(error)
            except Exception as e:
                logger.exception(f"{failure_message}: {e}")
                error = AuthError(str(e) or failure_message)
                self._dispatch(RequestFailed(error.message))
                return Err(error)

            self._dispatch(SessionCommitted(token, user))
            logger.info(f"Authenticated as {user.get('email')}")
            return Ok(self._state)

    async def logout(self) -> Result:
        """
        Log out the current user.

        The backend is notified best-effort; local state, the stored record
        and the Authorization header are cleared whatever happens.
        """
        async with self._lock:
            if self._state.token is not None:
                try:
                    await asyncio.to_thread(self._api.get, "/auth/logout", timeout=LOGOUT_TIMEOUT)
                except Exception as e:
                    logger.warning(f"Logout error: {e}")

            self._clear_session()
            logger.info("Logged out")
            return Ok(self._state)

    async def refresh_session(self) -> Result:
        """
        Re-fetch the current user with the stored token.

        A rejected token logs the session out and returns Err(Unauthorized).
        Other failures leave user and token untouched.
        """
        async with self._lock:
            return await self._refresh()

    async def _refresh(self) -> Result:
        # caller holds self._lock
        token = self._state.token
        if token is None:
            error = Unauthorized("No authentication token found")
            self._dispatch(RequestFailed(error.message))
            return Err(error)

        self._dispatch(RequestStarted())
        try:
            body = await asyncio.to_thread(self._api.get, "/auth/me")
            user = self._parse_user(body)
            self._store.commit(token, user)
        except Unauthorized as e:
            logger.warning(f"Session token rejected: {e.message}")
            self._clear_session(error=e.message)
            return Err(e)
        except AuthError as e:
            logger.error(f"Session refresh failed: {e.message}")
            self._dispatch(RequestFailed(e.message))
            return Err(e)
        except Exception as e:
            logger.exception(f"Session refresh failed: {e}")
            error = AuthError(str(e) or "Failed to get user details")
            self._dispatch(RequestFailed(error.message))
            return Err(error)

        self._dispatch(UserRefreshed(user))
        return Ok(self._state)

    async def hydrate(self, verify: bool = True) -> Result:
        """
        Restore the session persisted by a previous run.

        Restoring and verifying happen under one lock acquisition, so no
        other operation can observe an unverified restored session.

        Args:
            verify: Also validate the token against /auth/me
        """
        async with self._lock:
            self._hydrated = True
            try:
                record = self._store.load()
            except StorageFailure as e:
                logger.warning(f"Discarding unreadable session: {e.message}")
                self._clear_session()
                return Ok(self._state)

            token = record.get(TOKEN_KEY)
            user = record.get(USER_KEY)
            if not isinstance(token, str) or not token or not isinstance(user, dict):
                if record:
                    logger.warning("Discarding incomplete stored session")
                    self._clear_session()
                return Ok(self._state)

            self._api.set_auth_token(token)
            self._dispatch(SessionCommitted(token, user))
            logger.info(f"Restored session for {user.get('email')}")

            if verify:
                return await self._refresh()
            return Ok(self._state)

    async def ensure_hydrated(self) -> Result:
        """
        Hydrate once per manager.

        Pages and guards call this on every visit; concurrent callers share
        the first attempt. A manager hydrated explicitly is left alone.
        """
        if self._hydration is None:
            if self._hydrated:
                return Ok(self._state)
            self._hydration = asyncio.ensure_future(self.hydrate())
        result = await asyncio.shield(self._hydration)
        if not result.ok:
            logger.warning(f"Stored session not restored: {result.message}")
        return result

    def clear_error(self) -> SessionState:
        """Forget the last error. Idempotent, no side effects."""
        return self._dispatch(ErrorCleared())

    async def request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """
        Authenticated request for the rest of the application.

        A 401 from any endpoint ends the session that issued the request.
        Errors are raised, not wrapped.
        """
        token = self._state.token
        try:
            return await asyncio.to_thread(self._api.request, method, path, **kwargs)
        except Unauthorized as e:
            if token is not None:
                async with self._lock:
                    # a newer login must not be undone by a stale request
                    if self._state.token == token:
                        logger.warning(f"{method} {path} rejected the session token, logging out")
                        self._clear_session(error=e.message)
            raise

    def close(self) -> None:
        """Release the HTTP session and drop listeners."""
        self._listeners.clear()
        self._api.close()

    # --- Helpers ---

    def _persist(self, token: str, user: Dict[str, Any]) -> None:
        """Write the store first, then the header; state is committed by the caller."""
        self._store.commit(token, user)
        self._api.set_auth_token(token)

    def _clear_session(self, error: Optional[str] = None) -> None:
        try:
            self._store.clear()
        except Exception as e:
            logger.error(f"Failed to clear stored session: {e}")
        self._api.clear_auth_token()
        self._dispatch(SessionCleared(error))

    @staticmethod
    def _parse_user(body: Dict[str, Any]) -> Dict[str, Any]:
        user = body.get("data")
        if not isinstance(user, dict):
            raise MalformedResponse("Response is missing user data")
        return user

    @classmethod
    def _parse_session(cls, body: Dict[str, Any]):
        user = cls._parse_user(body)
        token = body.get("token")
        if not isinstance(token, str) or not token:
            raise MalformedResponse("Response is missing token")
        return token, user

    @staticmethod
    def _credentials_error(error: AuthError) -> AuthError:
        if isinstance(error, InvalidCredentials):
            return error
        if isinstance(error, Unauthorized) or error.status in CREDENTIAL_REJECTIONS:
            return InvalidCredentials(error.message, status=error.status)
        return error


class BrowserSessions:
    """
    One SessionManager per browser.

    Every browser gets its own session, API client and Authorization header.
    With the NiceGUI store each manager is bound to its browser's
    app.storage.user, so the persisted copy always belongs to the session
    held in memory.
    """

    # a single session file cannot be split between browsers
    STORE_TYPES = ("nicegui", "memory")

    def __init__(self, settings: Settings):
        if settings.session_store not in self.STORE_TYPES:
            raise ValueError(
                f"Session store '{settings.session_store}' holds a single session; "
                f"serving browsers needs one of {self.STORE_TYPES}"
            )
        self._settings = settings
        self._managers: Dict[str, SessionManager] = {}

    def __len__(self) -> int:
        return len(self._managers)

    def get(self, browser_id: str, storage=None) -> SessionManager:
        """
        Get the manager for a browser, creating it on first visit.

        Args:
            browser_id: Stable browser identifier (app.storage.browser['id'])
            storage: That browser's user storage, bound to the new manager's store
        """
        manager = self._managers.get(browser_id)
        if manager is None:
            manager = SessionManager.from_settings(self._settings, storage=storage)
            self._managers[browser_id] = manager
            logger.debug(f"Created session for browser {browser_id}")
        return manager

    def current(self) -> SessionManager:
        """Manager of the browser behind the current NiceGUI page context."""
        from nicegui import app
        return self.get(app.storage.browser["id"], storage=app.storage.user)

    def close(self) -> None:
        for manager in self._managers.values():
            manager.close()
        self._managers.clear()


# Application-wide session manager instance
_session_manager: Optional[SessionManager] = None
_browser_sessions: Optional[BrowserSessions] = None


def get_session_manager() -> SessionManager:
    """
    Get the session manager for the current caller.

    When browser sessions are configured this is the current browser's
    manager. Otherwise a single manager is created from settings on first
    use; the NiceGUI store always gets per-browser sessions.
    """
    global _session_manager

    if _browser_sessions is not None:
        return _browser_sessions.current()

    if _session_manager is None:
        settings = load_settings()
        if settings.session_store == "nicegui":
            return configure_browser_sessions(BrowserSessions(settings)).current()
        _session_manager = SessionManager.from_settings(settings)

    return _session_manager


def configure_session_manager(manager: SessionManager) -> SessionManager:
    """Install manager as the single application session manager."""
    global _session_manager

    reset_browser_sessions()
    if _session_manager is not None and _session_manager is not manager:
        _session_manager.close()
    _session_manager = manager

    return _session_manager


def configure_browser_sessions(sessions: BrowserSessions) -> BrowserSessions:
    """Serve one session per browser from now on."""
    global _browser_sessions

    reset_session_manager()
    _browser_sessions = sessions

    return _browser_sessions


def reset_browser_sessions() -> None:
    global _browser_sessions

    if _browser_sessions is not None:
        _browser_sessions.close()
    _browser_sessions = None


def reset_session_manager() -> None:
    """Tear down the application session manager and any browser sessions."""
    global _session_manager

    reset_browser_sessions()
    if _session_manager is not None:
        _session_manager.close()
    _session_manager = None
