"""
SessionStore Protocol Definition.

This module defines the interface every session store must implement.
A store keeps exactly two entries, the bearer token and the user profile,
and writes or removes them together.
"""

from typing import Protocol, Dict, Any, runtime_checkable

TOKEN_KEY = "token"
USER_KEY = "user"


@runtime_checkable
class SessionStore(Protocol):
    """
    Durable home of the {token, user} pair.
    
    Implementations must make commit() and clear() all-or-nothing: after
    either call returns, both keys are present or both are absent.
    """
    
    @property
    def store_type(self) -> str:
        """Return the store type identifier ('memory', 'file' or 'nicegui')."""
        ...
    
    def load(self) -> Dict[str, Any]:
        """
        Read the persisted record.
        
        Returns:
            Dict that may contain:
            - token: str
            - user: Dict[str, Any]
            Empty dict when nothing is persisted.
            
        Raises:
            StorageFailure: if the record exists but cannot be read
        """
        ...
    
    def commit(self, token: str, user: Dict[str, Any]) -> None:
        """
        Persist token and user in a single write.
        
        Raises:
            StorageFailure: if the write failed (previous record left intact)
        """
        ...
    
    def clear(self) -> None:
        """
        Remove both entries.
        
        Raises:
            StorageFailure: if the record could not be removed
        """
        ...
