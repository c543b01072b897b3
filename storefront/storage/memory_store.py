"""
In-process session store.

Nothing survives a restart unless the same instance is handed to the next
Session Manager, which is what the tests do to simulate one.
"""

import copy
from typing import Any, Dict

from storefront.storage.protocol import TOKEN_KEY, USER_KEY


class MemoryStore:
    """Session store backed by a plain dict."""
    
    def __init__(self):
        self._data: Dict[str, Any] = {}
    
    @property
    def store_type(self) -> str:
        return "memory"
    
    def load(self) -> Dict[str, Any]:
        return copy.deepcopy(self._data)
    
    def commit(self, token: str, user: Dict[str, Any]) -> None:
        self._data = {TOKEN_KEY: token, USER_KEY: copy.deepcopy(user)}
    
    def clear(self) -> None:
        self._data = {}
