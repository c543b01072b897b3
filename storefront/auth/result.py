"""
Result types returned by Session Manager operations.

An operation never raises to its caller; it returns Ok(state) or Err(error).
Callers that prefer exceptions can call unwrap(), which re-raises the
original AuthError carrying the same message as state.error.
"""

from dataclasses import dataclass
from typing import Generic, TypeVar, Union

from storefront.errors import AuthError

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    error: AuthError

    @property
    def ok(self) -> bool:
        return False

    @property
    def message(self) -> str:
        return self.error.message

    @property
    def kind(self) -> str:
        return self.error.kind

    def unwrap(self):
        raise self.error


Result = Union[Ok[T], Err]
