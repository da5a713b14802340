"""Tagged result values returned across the persistence boundary."""

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class PersistenceResult(Generic[T]):
    """Outcome of a persistence call: a value on success, an error otherwise."""

    ok: bool
    value: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T | None = None) -> "PersistenceResult[T]":
        """Build a successful result."""
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: str) -> "PersistenceResult[T]":
        """Build a failed result."""
        return cls(ok=False, error=error)
