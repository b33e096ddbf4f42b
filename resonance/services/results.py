from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Generic, TypeVar

from resonance.backend.errors import BackendError

T = TypeVar("T")

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class Result(Generic[T]):
    """Uniform outcome of a data-access call.

    ``warning`` marks a partial success: ``data`` is usable and ``error`` is
    unset, but a secondary step failed.
    """

    data: T | None = None
    error: BackendError | None = None
    warning: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_message(self) -> str | None:
        return None if self.error is None else self.error.message

    @classmethod
    def success(cls, data: T | None = None, *, warning: str | None = None) -> "Result[T]":
        return cls(data=data, error=None, warning=warning)

    @classmethod
    def failure(cls, error: BackendError) -> "Result[T]":
        return cls(data=None, error=error)
