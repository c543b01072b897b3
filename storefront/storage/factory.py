"""
Store Factory for the storefront client.

Creates the session store named in Settings.session_store.
"""

import logging
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

from storefront.config import DEFAULT_STORE
from storefront.paths import get_session_path
from storefront.storage.memory_store import MemoryStore
from storefront.storage.file_store import FileStore

if TYPE_CHECKING:
    from storefront.storage.protocol import SessionStore

logger = logging.getLogger(__name__)

STORE_TYPES = ("memory", "file", "nicegui")


def create_store(
    store_type: Optional[str] = None,
    session_path: Optional[Union[str, Path]] = None,
    storage=None
) -> "SessionStore":
    """
    Create a session store instance.
    
    Args:
        store_type: 'memory', 'file' or 'nicegui' (defaults to DEFAULT_STORE)
        session_path: File location for the 'file' store
        storage: Mapping to use instead of app.storage.user for 'nicegui'
        
    Returns:
        SessionStore instance
        
    Raises:
        ValueError: if store_type is not recognised
    """
    store_type = (store_type or DEFAULT_STORE).lower()
    
    if store_type == "memory":
        return MemoryStore()
    
    if store_type == "file":
        path = Path(session_path) if session_path else get_session_path()
        logger.info(f"Using file session store at {path}")
        return FileStore(path)
    
    if store_type == "nicegui":
        from storefront.storage.nicegui_store import NiceGUIStore
        return NiceGUIStore(storage)
    
    raise ValueError(f"Unknown session store '{store_type}', expected one of {STORE_TYPES}")
