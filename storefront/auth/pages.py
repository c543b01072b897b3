"""
Authentication Pages for the storefront client.

NiceGUI pages for login, registration, admin login and logout. The pages
only render session state; every decision is made by the SessionManager.
"""

import logging
from typing import Optional

from nicegui import ui, app

from storefront.auth.middleware import get_auth_context, safe_redirect
from storefront.auth.session import get_session_manager

logger = logging.getLogger(__name__)

ADMIN_HOME = '/admin/dashboard'


def _pop_redirect(default: str = "/") -> str:
    """Return and forget the page a guard bounced the visitor from."""
    try:
        target = app.storage.user.pop("redirect_after_login", None)
    except RuntimeError:
        return default
    return safe_redirect(target, default)


def render_error_banner(manager=None):
    """
    Render the session error as a dismissible banner.

    The banner re-renders whenever the session changes; dismissing it calls
    clear_error(). The listener is released when the page's client is deleted.
    """
    manager = manager or get_session_manager()

    @ui.refreshable
    def banner():
        if not manager.error:
            return
        with ui.row().classes('w-full items-center bg-red-100 text-red-800 rounded p-2'):
            ui.label(manager.error).classes('grow text-sm')
            ui.button(icon='close', on_click=manager.clear_error).props('flat dense round')

    banner()

    def on_change(state):
        banner.refresh()

    manager.subscribe(on_change)
    ui.context.client.on_delete(lambda: manager.unsubscribe(on_change))
    return banner


# --- Form handlers ---

async def submit_login(manager, email: str, password: str) -> bool:
    result = await manager.login(email, password)
    if result.ok:
        ui.notify('Login successful!', color='positive')
        ui.navigate.to(_pop_redirect())
    return result.ok


async def submit_register(manager, name: str, email: str, password: str) -> bool:
    result = await manager.register(name, email, password)
    if result.ok:
        ui.notify('Account created!', color='positive')
        ui.navigate.to(_pop_redirect())
    return result.ok


async def submit_admin_login(manager, email: str, password: str, redirect: Optional[str] = None) -> bool:
    """Admin login; on success go to redirect if it is a local path."""
    result = await manager.admin_login(email, password)
    if result.ok:
        ui.notify('Welcome, admin', color='positive')
        ui.navigate.to(safe_redirect(redirect, ADMIN_HOME))
    return result.ok


async def logout_and_leave(manager) -> None:
    await manager.logout()
    ui.notify('Logged out successfully', color='info')
    ui.navigate.to('/')


def _credentials_form(title: str, subtitle: str, submit_label: str, on_submit, with_name: bool = False):
    """Shared card with email/password inputs; returns the submit button."""
    with ui.column().classes('w-full min-h-screen items-center justify-center'):
        with ui.card().classes('w-full max-w-sm p-8'):
            ui.label(title).classes('text-2xl font-bold text-center w-full mb-2')
            ui.label(subtitle).classes('text-gray-500 text-center w-full mb-6')

            render_error_banner()

            name_input = ui.input('Name').props('outlined').classes('w-full') if with_name else None
            email_input = ui.input('Email').props('outlined').classes('w-full')
            password_input = ui.input('Password', password=True, password_toggle_button=True)\
                .props('outlined').classes('w-full')

            async def submit():
                button.props('loading')
                try:
                    await on_submit(
                        name_input.value.strip() if name_input else None,
                        email_input.value.strip(),
                        password_input.value,
                    )
                finally:
                    button.props(remove='loading')

            button = ui.button(submit_label, on_click=submit)\
                .classes('w-full mt-4').props('color=primary')

            # Enter key to submit
            password_input.on('keydown.enter', submit)
    return button


def create_login_page():
    """
    Create the login page route.

    Call this function during app setup to register the /login route.
    """

    @ui.page('/login')
    async def login_page():
        """Login page with email/password form."""
        session_manager = get_session_manager()
        await session_manager.ensure_hydrated()

        # Check if already logged in
        if session_manager.is_authenticated:
            ui.navigate.to(ADMIN_HOME if session_manager.is_admin else _pop_redirect())
            return

        async def do_login(_name, email, password):
            await submit_login(session_manager, email, password)

        _credentials_form('Welcome back', 'Sign in to continue', 'Sign In', do_login)

        with ui.row().classes('w-full justify-center'):
            ui.label("Don't have an account?").classes('text-gray-500')
            ui.link('Register', '/register')


def create_register_page():
    """
    Create the registration page route.

    Call this function during app setup to register the /register route.
    """

    @ui.page('/register')
    async def register_page():
        """Registration page with name/email/password form."""
        session_manager = get_session_manager()
        await session_manager.ensure_hydrated()

        if session_manager.is_authenticated:
            ui.navigate.to('/')
            return

        async def do_register(name, email, password):
            await submit_register(session_manager, name, email, password)

        _credentials_form('Create Account', 'Sign up to start shopping', 'Create Account',
                          do_register, with_name=True)

        with ui.row().classes('w-full justify-center'):
            ui.label('Already have an account?').classes('text-gray-500')
            ui.link('Sign In', '/login')


def create_admin_login_page():
    """Create the /admin/login route; honours ?redirect=<path> on this site."""

    @ui.page('/admin/login')
    async def admin_login_page(redirect: Optional[str] = None):
        session_manager = get_session_manager()
        await session_manager.ensure_hydrated()

        if session_manager.is_admin:
            ui.navigate.to(safe_redirect(redirect, ADMIN_HOME))
            return

        async def do_admin_login(_name, email, password):
            await submit_admin_login(session_manager, email, password, redirect)

        _credentials_form('Admin Login', 'Back-office access', 'Sign In', do_admin_login)


def create_logout_handler():
    """
    Create the logout route.

    Call this function during app setup to register the /logout route.
    """

    @ui.page('/logout')
    async def logout_page():
        """Logout and redirect to home."""
        session_manager = get_session_manager()
        await session_manager.ensure_hydrated()
        await logout_and_leave(session_manager)


def render_user_menu(container=None):
    """
    Render a user menu in the header.

    Shows login button if not authenticated, or user dropdown if authenticated.

    Args:
        container: Optional UI container to render into
    """
    context = get_auth_context()
    parent = container or ui.row()

    with parent:
        if context.is_authenticated:
            with ui.button(icon='account_circle').props('flat round'):
                with ui.menu():
                    with ui.column().classes('p-2 min-w-48'):
                        ui.label(context.display_name).classes('font-bold')
                        ui.label(context.user.get('email', '')).classes('text-sm text-gray-500')

                    ui.separator()

                    ui.menu_item('My Orders', lambda: ui.navigate.to('/my-orders'))
                    if context.is_admin:
                        ui.menu_item('Admin Dashboard', lambda: ui.navigate.to(ADMIN_HOME))
                    ui.menu_item('Logout', lambda: ui.navigate.to('/logout'))
        else:
            ui.button('Sign In', on_click=lambda: ui.navigate.to('/login')).props('flat')
