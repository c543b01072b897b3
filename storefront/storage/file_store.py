"""
JSON file session store.

The record is a single JSON object {"token": ..., "user": {...}}. Writes go to
a temporary file in the same directory which then replaces the real one, so a
crash mid-write never leaves a token without its user.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Union

from storefront.errors import StorageFailure
from storefront.storage.protocol import TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)


class FileStore:
    """Session store persisted to a JSON file."""
    
    def __init__(self, path: Union[str, Path]):
        """
        Initialize FileStore.
        
        Args:
            path: Location of the session file (created on first commit)
        """
        self.path = Path(path)
    
    @property
    def store_type(self) -> str:
        return "file"
    
    def load(self) -> Dict[str, Any]:
        if not self.path.exists():
            return {}
        
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            raise StorageFailure(f"Could not read session file: {e}") from e
        
        if not isinstance(data, dict):
            raise StorageFailure("Session file does not contain an object")
        
        return {k: data[k] for k in (TOKEN_KEY, USER_KEY) if data.get(k) is not None}
    
    def commit(self, token: str, user: Dict[str, Any]) -> None:
        record = {TOKEN_KEY: token, USER_KEY: user}
        tmp_path = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", dir=self.path.parent,
                prefix=f".{self.path.name}.", suffix=".tmp", delete=False
            ) as f:
                tmp_path = f.name
                json.dump(record, f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise StorageFailure(f"Could not save session: {e}") from e
        
        logger.debug(f"Session written to {self.path}")
    
    def clear(self) -> None:
        try:
            self.path.unlink(missing_ok=True)
        except OSError as e:
            raise StorageFailure(f"Could not remove session file: {e}") from e
