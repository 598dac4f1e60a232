"""Uniform success/failure result shared by every telemetry query."""

from __future__ import annotations

from dataclasses import asdict, dataclass, is_dataclass
from enum import Enum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


class ErrorKind(str, Enum):
    LAUNCH = "launch"
    STDERR = "stderr"
    PARSE = "parse"
    TIMEOUT = "timeout"
    CANCELLED = "cancelled"
    INTERNAL = "internal"


class TelemetryError(RuntimeError):
    def __init__(self, reason: str, kind: ErrorKind | None = None) -> None:
        super().__init__(reason)
        self.reason = reason
        self.kind = kind


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Either a value or an error reason, never both.

    Callers only need to look at ``error`` (or ``failed``) to tell the two
    apart. ``kind`` classifies failures and is ``None`` on success.
    """

    value: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    def __post_init__(self) -> None:
        if (self.value is None) == (self.error is None):
            raise ValueError("an Outcome needs exactly one of value or error")
        if self.error is None and self.kind is not None:
            raise ValueError("a successful Outcome has no error kind")

    @classmethod
    def ok(cls, value: T) -> "Outcome[T]":
        return cls(value=value)

    @classmethod
    def fail(cls, reason: str, kind: ErrorKind) -> "Outcome[T]":
        return cls(error=reason, kind=kind)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def succeeded(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, raising ``TelemetryError`` for a failed outcome."""
        if self.error is not None:
            raise TelemetryError(self.error, self.kind)
        return self.value  # type: ignore[return-value]

    def to_dict(self) -> dict[str, Any]:
        return {
            "value": _jsonable(self.value),
            "error": self.error,
            "kind": self.kind.value if self.kind is not None else None,
        }
