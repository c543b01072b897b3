"""
Main NiceGUI application for the furniture storefront client.

Wires settings, the per-browser session managers, the auth pages and a few
guarded pages that render from the session state. Each browser gets its
own session, restored from its user storage on the first page it opens.
"""

import logging

from dotenv import load_dotenv
load_dotenv()

from nicegui import ui, app

from storefront.config import load_settings
from storefront.auth.session import (
    BrowserSessions,
    configure_browser_sessions,
    get_session_manager,
    reset_session_manager,
)
from storefront.auth.middleware import require_auth, require_admin, get_auth_context
from storefront.auth.pages import (
    create_login_page,
    create_register_page,
    create_admin_login_page,
    create_logout_handler,
    render_error_banner,
    render_user_menu,
)

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

settings = load_settings(use_dotenv=False)
configure_browser_sessions(BrowserSessions(settings))
app.on_shutdown(reset_session_manager)

create_login_page()
create_register_page()
create_admin_login_page()
create_logout_handler()


def render_header():
    with ui.header().classes('items-center justify-between'):
        ui.link('Furniture Store', '/').classes('text-lg font-bold text-white no-underline')
        render_user_menu(ui.row().classes('items-center'))


@ui.page('/')
async def index():
    manager = get_session_manager()
    await manager.ensure_hydrated()
    render_header()
    render_error_banner(manager)
    context = get_auth_context()
    ui.label(f'Hello, {context.display_name}').classes('text-xl')


@ui.page('/my-orders')
@require_auth()
def my_orders():
    render_header()
    context = get_auth_context()
    ui.label(f'Orders for {context.user.get("email")}').classes('text-xl')


@ui.page('/admin/dashboard')
@require_admin()
def admin_dashboard():
    render_header()
    ui.label('Admin dashboard').classes('text-xl')


if __name__ in {"__main__", "__mp_main__"}:
    ui.run(
        title='Furniture Store',
        port=8080,
        storage_secret=settings.storage_secret or 'storefront-dev-secret',
    )
