"""Result type returned across the network client boundary."""

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .enums import NetworkError

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a decoded value or a NetworkError, never both."""

    value: Optional[T] = None
    error: Optional[NetworkError] = None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value, error=None)

    @classmethod
    def failure(cls, error: NetworkError) -> "Result[T]":
        return cls(value=None, error=error)

    @property
    def is_success(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value or raise ValueError for a failed result."""
        if self.error is not None:
            raise ValueError(f"Result is a failure: {self.error.value}")
        return self.value  # type: ignore[return-value]
