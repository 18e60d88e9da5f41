"""Error taxonomy and the uniform result type for external-facing operations.

Every operation that talks to an outside system (LLM, GitHub, Jira, the
transcript store) returns an ``OperationResult``. Callers check ``ok``;
failure details travel in ``error_kind`` and ``message``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any, Generic, TypeVar

T = TypeVar("T")


class ErrorKind(StrEnum):
    """Categories of failure surfaced to callers."""

    CONFIGURATION = "configuration"
    EXTERNAL_SERVICE = "external_service"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    PARSE = "parse"
    UNSUPPORTED = "unsupported"
    INTERNAL = "internal"


class DevHubError(Exception):
    """Base exception for all application errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(
        self,
        message: str,
        kind: ErrorKind | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message
        if kind is not None:
            self.kind = kind
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": self.kind.value,
            "message": self.message,
            "details": self.details,
        }


class ConfigurationError(DevHubError):
    """Raised when required configuration is missing or invalid."""

    kind = ErrorKind.CONFIGURATION


class ExternalServiceError(DevHubError):
    """Raised when an upstream API (GitHub, Jira, LLM) fails."""

    kind = ErrorKind.EXTERNAL_SERVICE

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.service = service
        self.status_code = status_code
        merged = {"service": service, **(details or {})}
        if status_code is not None:
            merged["status_code"] = status_code
        super().__init__(message, details=merged)


class ValidationError(DevHubError):
    """Raised when input fails validation."""

    kind = ErrorKind.VALIDATION


class NotFoundError(DevHubError):
    """Raised when a requested resource does not exist."""

    kind = ErrorKind.NOT_FOUND


@dataclass
class OperationResult(Generic[T]):
    """Outcome of an external-facing operation.

    ``value`` is set on success; ``error_kind`` and ``message`` on failure.
    """

    ok: bool
    value: T | None = None
    error_kind: ErrorKind | None = None
    message: str = ""
    details: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def success(cls, value: T, message: str = "") -> OperationResult[T]:
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> OperationResult[T]:
        return cls(ok=False, error_kind=kind, message=message, details=details or {})

    @classmethod
    def from_error(cls, exc: DevHubError) -> OperationResult[T]:
        return cls(ok=False, error_kind=exc.kind, message=exc.message, details=dict(exc.details))

    def unwrap(self) -> T:
        """Return the value, raising ``DevHubError`` if the operation failed."""
        if not self.ok or self.value is None:
            raise DevHubError(self.message or "Operation failed", kind=self.error_kind)
        return self.value

    def __str__(self) -> str:
        if self.ok:
            return f"✅ {self.message}" if self.message else "✅ Success"
        return f"❌ [{self.error_kind}] {self.message}"
