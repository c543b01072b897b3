"""
Tests for route guards and auth pages.

Tests redirect decisions, AuthContext, guard hydration, the error banner
and the login/register/admin/logout handlers with NiceGUI patched out.
"""

import asyncio
import pytest
from unittest.mock import MagicMock, patch
from pathlib import Path
import sys

sys.path.insert(0, str(Path(__file__).parent.parent))

from storefront.api.client import ApiClient
from storefront.auth.session import SessionManager
from storefront.auth.middleware import (
    AuthContext,
    require_admin,
    require_auth,
    resolve_redirect,
    safe_redirect,
)
from storefront.auth.pages import (
    logout_and_leave,
    render_error_banner,
    submit_admin_login,
    submit_login,
    submit_register,
)
from storefront.storage.memory_store import MemoryStore

ADMIN = {"id": 1, "name": "Ada", "email": "a@b.com", "role": "admin"}
CUSTOMER = {"_id": "c2", "email": "c@d.com", "role": "user"}


def make_response(status=200, body=None, reason="OK"):
    response = MagicMock()
    response.status_code = status
    response.reason = reason
    response.json.return_value = body
    return response


def new_manager(store=None, response=None):
    http = MagicMock()
    http.headers = {}
    if response is not None:
        http.request.return_value = response
    return SessionManager(ApiClient("http://api.test/api", http=http), store or MemoryStore())


def snapshot(user=None, loading=False):
    return {
        "user": user,
        "token": "t" if user else None,
        "is_authenticated": user is not None,
        "is_admin": bool(user) and user.get("role") == "admin",
        "loading": loading,
        "error": None,
    }


def logged_in_manager(user):
    http = MagicMock()
    http.headers = {}
    store = MemoryStore()
    store.commit("t1", user)
    manager = SessionManager(ApiClient("http://api.test/api", http=http), store)
    asyncio.run(manager.hydrate(verify=False))
    return manager


class TestResolveRedirect:

    def test_anonymous_user_page(self):
        assert resolve_redirect(snapshot(), "/my-orders") == "/login"

    def test_customer_user_page(self):
        assert resolve_redirect(snapshot(CUSTOMER), "/my-orders") is None

    def test_anonymous_admin_page(self):
        target = resolve_redirect(snapshot(), "/admin/orders", admin=True)

        assert target == "/admin/login?redirect=/admin/orders"

    def test_customer_admin_page(self):
        target = resolve_redirect(snapshot(CUSTOMER), "/admin/orders", admin=True)

        assert target.startswith("/admin/login")

    def test_admin_admin_page(self):
        assert resolve_redirect(snapshot(ADMIN), "/admin/orders", admin=True) is None

    def test_custom_login_path(self):
        assert resolve_redirect(snapshot(), "/checkout", redirect_to="/signin") == "/signin"

    def test_path_is_quoted(self):
        target = resolve_redirect(snapshot(), "/admin/a b", admin=True)

        assert target == "/admin/login?redirect=/admin/a%20b"


class TestAuthContext:

    def test_admin_context(self):
        context = AuthContext(logged_in_manager(ADMIN))

        assert context.is_authenticated is True
        assert context.is_admin is True
        assert context.user_id == 1
        assert context.display_name == "Ada"

    def test_customer_falls_back_to_email(self):
        context = AuthContext(logged_in_manager(CUSTOMER))

        assert context.is_admin is False
        assert context.user_id == "c2"
        assert context.display_name == "c@d.com"

    def test_anonymous_context(self):
        http = MagicMock()
        http.headers = {}
        manager = SessionManager(ApiClient("http://api.test/api", http=http), MemoryStore())
        context = AuthContext(manager)

        assert context.is_authenticated is False
        assert context.user_id is None
        assert context.display_name == "Guest"


class TestGuards:

    def test_guarded_page_runs_for_admin(self):
        manager = logged_in_manager(ADMIN)

        @require_admin()
        def dashboard():
            return "secret data"

        with patch('storefront.auth.middleware.get_session_manager', return_value=manager), \
                patch('storefront.auth.middleware.ui') as mock_ui:
            result = asyncio.run(dashboard())

        assert result == "secret data"
        mock_ui.navigate.to.assert_not_called()

    def test_guarded_page_redirects_anonymous(self):
        http = MagicMock()
        http.headers = {}
        manager = SessionManager(ApiClient("http://api.test/api", http=http), MemoryStore())
        user_storage = {}

        @require_auth()
        def my_orders():
            return "orders"

        with patch('storefront.auth.middleware.get_session_manager', return_value=manager), \
                patch('storefront.auth.middleware.ui') as mock_ui, \
                patch('storefront.auth.middleware.app') as mock_app:
            mock_ui.context.client.request.url.path = "/my-orders"
            mock_app.storage.user = user_storage
            result = asyncio.run(my_orders())

        assert result is None
        mock_ui.navigate.to.assert_called_once_with("/login")
        assert user_storage["redirect_after_login"] == "/my-orders"



    def test_guard_restores_persisted_session(self):
        store = MemoryStore()
        store.commit("t1", ADMIN)
        manager = new_manager(store, make_response(200, {"data": ADMIN}))

        @require_admin()
        def dashboard():
            return "secret data"

        with patch('storefront.auth.middleware.get_session_manager', return_value=manager), \
                patch('storefront.auth.middleware.ui') as mock_ui:
            result = asyncio.run(dashboard())

        assert result == "secret data"
        mock_ui.navigate.to.assert_not_called()
        assert manager.is_admin is True


class TestSafeRedirect:

    @pytest.mark.parametrize("target", [
        "https://evil.example",
        "//evil.example/admin",
        "/\\evil.example",
        "javascript:alert(1)",
        "admin/orders",
        "",
        None,
    ])
    def test_offsite_targets_fall_back(self, target):
        assert safe_redirect(target, "/admin/dashboard") == "/admin/dashboard"

    def test_local_path_is_kept(self):
        assert safe_redirect("/admin/orders?page=2") == "/admin/orders?page=2"


@pytest.fixture
def page_ui():
    with patch('storefront.auth.pages.ui') as mock_ui, \
            patch('storefront.auth.pages.app') as mock_app:
        mock_app.storage.user = {}
        yield mock_ui, mock_app


class TestErrorBanner:

    def test_dismiss_clears_error(self, page_ui):
        mock_ui, _ = page_ui
        mock_ui.refreshable.side_effect = lambda func: MagicMock(side_effect=func)
        manager = new_manager()
        asyncio.run(manager.login("not-an-email", "secret"))

        render_error_banner(manager)
        dismiss = mock_ui.button.call_args.kwargs["on_click"]
        dismiss()

        assert manager.error is None

    def test_banner_refreshes_on_change(self, page_ui):
        mock_ui, _ = page_ui
        manager = new_manager()

        banner = render_error_banner(manager)
        manager.clear_error()

        banner.refresh.assert_called_once()

    def test_listeners_released_when_client_deleted(self, page_ui):
        mock_ui, _ = page_ui
        manager = new_manager()

        for _ in range(3):
            render_error_banner(manager)
        assert manager.listener_count == 3

        for call in mock_ui.context.client.on_delete.call_args_list:
            call.args[0]()

        assert manager.listener_count == 0


class TestPageHandlers:

    def test_login_returns_to_remembered_page(self, page_ui):
        mock_ui, mock_app = page_ui
        mock_app.storage.user = {"redirect_after_login": "/my-orders"}
        manager = new_manager(response=make_response(200, {"token": "t1", "data": CUSTOMER}))

        assert asyncio.run(submit_login(manager, "c@d.com", "secret")) is True

        mock_ui.navigate.to.assert_called_once_with("/my-orders")
        assert "redirect_after_login" not in mock_app.storage.user

    def test_login_ignores_offsite_remembered_page(self, page_ui):
        mock_ui, mock_app = page_ui
        mock_app.storage.user = {"redirect_after_login": "https://evil.example"}
        manager = new_manager(response=make_response(200, {"token": "t1", "data": CUSTOMER}))

        asyncio.run(submit_login(manager, "c@d.com", "secret"))

        mock_ui.navigate.to.assert_called_once_with("/")

    def test_failed_login_stays_on_page(self, page_ui):
        mock_ui, _ = page_ui
        manager = new_manager(response=make_response(401, {"message": "Invalid credentials"}))

        assert asyncio.run(submit_login(manager, "c@d.com", "wrong")) is False

        mock_ui.navigate.to.assert_not_called()
        assert manager.error == "Invalid credentials"

    def test_register_goes_home(self, page_ui):
        mock_ui, _ = page_ui
        manager = new_manager(response=make_response(201, {"token": "t1", "data": CUSTOMER}))

        assert asyncio.run(submit_register(manager, "Cy", "c@d.com", "secret")) is True

        mock_ui.navigate.to.assert_called_once_with("/")

    def test_admin_login_follows_local_redirect(self, page_ui):
        mock_ui, _ = page_ui
        manager = new_manager(response=make_response(200, {"token": "t1", "data": ADMIN}))

        asyncio.run(submit_admin_login(manager, "a@b.com", "secret", "/admin/orders"))

        mock_ui.navigate.to.assert_called_once_with("/admin/orders")

    def test_admin_login_ignores_offsite_redirect(self, page_ui):
        mock_ui, _ = page_ui
        manager = new_manager(response=make_response(200, {"token": "t1", "data": ADMIN}))

        asyncio.run(submit_admin_login(manager, "a@b.com", "secret", "https://evil.example"))

        mock_ui.navigate.to.assert_called_once_with("/admin/dashboard")

    def test_logout_leaves_for_home(self, page_ui):
        mock_ui, _ = page_ui
        manager = logged_in_manager(CUSTOMER)

        asyncio.run(logout_and_leave(manager))

        assert manager.is_authenticated is False
        mock_ui.navigate.to.assert_called_once_with("/")


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
