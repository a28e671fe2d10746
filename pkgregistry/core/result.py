# pkgregistry/core/result.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

from .errors import RegistryError

T = TypeVar("T")


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Tagged success/error value returned by the public registry operations."""

    value: Optional[T] = None
    error: Optional[RegistryError] = None

    @classmethod
    def success(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, error: RegistryError) -> "Outcome[T]":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]
