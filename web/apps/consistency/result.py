"""Outcome types shared by the aggregate managers and the orchestrator.

Managers raise ``AggregateError`` with one of the ``ErrorKind`` values; the
orchestrator turns both successful returns and raised errors into a
``Result`` that the HTTP shell maps onto a status code.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, Optional, Tuple, TypeVar

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Closed set of failure kinds reported by the consistency layer."""

    NOT_FOUND = "NOT_FOUND"
    VALIDATION_FAILED = "VALIDATION_FAILED"
    CONFLICT = "CONFLICT"
    INTERNAL_FAILURE = "INTERNAL_FAILURE"


class AggregateError(Exception):
    """Raised by an aggregate manager when an operation cannot complete.

    Attributes:
        kind: The ``ErrorKind`` describing the failure.
        messages: Human readable details, in the order they were detected.
    """

    def __init__(self, kind: ErrorKind, *messages: str):
        super().__init__(kind.value, *messages)
        self.kind = kind
        self.messages: Tuple[str, ...] = tuple(messages)

    def __str__(self) -> str:
        if not self.messages:
            return self.kind.value
        return f"{self.kind.value}: {'; '.join(self.messages)}"


@dataclass(frozen=True)
class Result(Generic[T]):
    """Success value or tagged error returned by the orchestrator.

    Attributes:
        value: The payload of a successful operation (may be None for
            operations such as deletes).
        error: ``None`` on success, otherwise the failure kind.
        messages: Details accompanying a failure.
    """

    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    messages: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Optional[T] = None) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, *messages: str) -> "Result[T]":
        return cls(error=kind, messages=tuple(messages))

    @classmethod
    def from_error(cls, exc: AggregateError) -> "Result[T]":
        return cls(error=exc.kind, messages=exc.messages)
