"""Outcome of a best-effort operation that may complete in a degraded state."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class Result(Generic[T]):
    """Either a clean outcome or a degraded one carrying the swallowed error.

    Degraded results never raise; callers decide whether the partial failure
    matters (usually: log it and continue).
    """

    value: T | None = None
    degraded: bool = False
    error: str | None = None

    @classmethod
    def ok(cls, value: T | None = None) -> Result[T]:
        return cls(value=value)

    @classmethod
    def degrade(cls, error: str, value: T | None = None) -> Result[T]:
        return cls(value=value, degraded=True, error=error)
