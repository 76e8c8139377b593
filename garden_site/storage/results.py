"""Outcome types for storage operations.

Repositories report one of three things: the value was found, nothing
matched (including a malformed id), or the database call failed. The
sentinel API (`get`, `update`, `delete`, ...) collapses the last two; routes
use the outcome directly so a failure can become a 500 instead of a 404.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, TypeVar, Union

T = TypeVar("T")


class StorageError(Exception):
    """Raised by `create` when a document could not be written."""


class InvalidReference(StorageError):
    """A reference field (e.g. serviceId) is not a valid id."""


@dataclass(frozen=True)
class Found(Generic[T]):
    value: T

    ok = True


@dataclass(frozen=True)
class NotFound:
    reason: str = "not_found"

    ok = False

    @property
    def value(self) -> Any:
        return None


@dataclass(frozen=True)
class Failed:
    error: BaseException

    ok = False

    @property
    def value(self) -> Any:
        return None

    @property
    def message(self) -> str:
        return f"{type(self.error).__name__}: {self.error}"


Outcome = Union[Found[T], NotFound, Failed]
