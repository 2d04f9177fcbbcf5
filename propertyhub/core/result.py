import enum
from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")


class FailureReason(str, enum.Enum):
    not_found = "not_found"
    backend_unavailable = "backend_unavailable"
    validation_failed = "validation_failed"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a service call: a value, or the reason there is none."""

    value: Optional[T] = None
    error: Optional[FailureReason] = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, reason: FailureReason, detail: str = "") -> "Result[T]":
        return cls(error=reason, detail=detail)

    def unwrap_or(self, default: T) -> T:
        return self.value if self.ok else default
