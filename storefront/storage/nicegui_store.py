"""
Session store on top of NiceGUI's per-browser user storage.

app.storage.user is only available inside a page context with a
storage_secret configured; tests pass a plain dict instead.
"""

import copy
import logging
from typing import Any, Dict, MutableMapping, Optional

from storefront.errors import StorageFailure
from storefront.storage.protocol import TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)


class NiceGUIStore:
    """Session store backed by app.storage.user."""
    
    def __init__(self, storage: Optional[MutableMapping[str, Any]] = None):
        self._storage = storage
    
    @property
    def store_type(self) -> str:
        return "nicegui"
    
    def _get_storage(self) -> MutableMapping[str, Any]:
        """Get the injected mapping or NiceGUI storage for the current user."""
        if self._storage is not None:
            return self._storage
        try:
            from nicegui import app
            return app.storage.user
        except (ImportError, RuntimeError) as e:
            raise StorageFailure(f"NiceGUI user storage unavailable: {e}") from e
    
    def load(self) -> Dict[str, Any]:
        storage = self._get_storage()
        record = {}
        if storage.get(TOKEN_KEY) is not None:
            record[TOKEN_KEY] = storage[TOKEN_KEY]
        if storage.get(USER_KEY) is not None:
            record[USER_KEY] = copy.deepcopy(storage[USER_KEY])
        return record
    
    def commit(self, token: str, user: Dict[str, Any]) -> None:
        storage = self._get_storage()
        # one update() is one backup of the persistent dict
        storage.update({TOKEN_KEY: token, USER_KEY: copy.deepcopy(user)})
    
    def clear(self) -> None:
        storage = self._get_storage()
        storage.pop(TOKEN_KEY, None)
        storage.pop(USER_KEY, None)
