"""Explicit success/failure values for dispatch calls.

The router's ``try_*`` methods return these instead of raising, so callers
branch on :class:`~compass_bridge.core.mcp.exceptions.ErrorKind` rather than
on exception types.
"""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

from .exceptions import ErrorKind, McpError

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
    error: McpError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self) -> ErrorKind:
        return self.error.kind

    @property
    def message(self) -> str:
        return self.error.message

    def unwrap(self) -> Any:
        raise self.error


Result = Union[Ok[T], Err]
