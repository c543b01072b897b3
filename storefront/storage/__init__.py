"""
Session persistence for the storefront client.

Supports multiple stores:
- MemoryStore: in-process only (tests, kiosk mode)
- FileStore: JSON file next to the app (default)
- NiceGUIStore: per-browser NiceGUI user storage
"""

from storefront.storage.protocol import SessionStore, TOKEN_KEY, USER_KEY
from storefront.storage.memory_store import MemoryStore
from storefront.storage.file_store import FileStore
from storefront.storage.factory import create_store

__all__ = [
    'SessionStore',
    'TOKEN_KEY',
    'USER_KEY',
    'MemoryStore',
    'FileStore',
    'create_store',
]
