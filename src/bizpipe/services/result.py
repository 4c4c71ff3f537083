"""ServiceResult and ServiceError — the universal service contract.

INVARIANT: All service-layer methods return ServiceResult.
Expected domain failures (validation, not-found, concurrency) are tagged
on ``error.code``; callers branch on the kind instead of catching.
Anything raised by a data proxy propagates unchanged.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from bizpipe.domain.rules import ValidationResult
from bizpipe.domain.errors import (
    ConcurrencyConflictError,
    DomainObjectNotFoundError,
    ServiceFailure,
    ValidationFailedError,
)


class ErrorKind(StrEnum):
    """The three expected failure kinds."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    NOT_FOUND = "NOT_FOUND"
    CONCURRENCY_CONFLICT = "CONCURRENCY_CONFLICT"


class ServiceError(BaseModel):
    """Structured error payload within a ServiceResult."""

    model_config = {"frozen": True}

    code: ErrorKind
    message: str
    validation_errors: list[ValidationResult] = Field(default_factory=list)
    detail: dict[str, Any] = Field(default_factory=dict)


class ServiceResult(BaseModel):
    """Universal return type for all service operations.

    Attributes:
        ok: Whether the operation succeeded.
        op: Name of the operation (e.g. ``"update"``).
        data: The entity (or list of entities) returned by the data proxy.
        warnings: Non-fatal issues encountered during the operation.
        error: Structured error if ``ok`` is False.
        meta: Optional metadata (timing, telemetry).
    """

    model_config = {"frozen": True}

    ok: bool
    op: str
    data: Any = None
    warnings: list[str] = Field(default_factory=list)
    error: ServiceError | None = None
    meta: dict[str, Any] | None = None

    @classmethod
    def failure(
        cls,
        op: str,
        code: ErrorKind,
        message: str,
        *,
        validation_errors: list[ValidationResult] | None = None,
        **detail: Any,
    ) -> ServiceResult:
        return cls(
            ok=False,
            op=op,
            error=ServiceError(
                code=code,
                message=message,
                validation_errors=validation_errors or [],
                detail=detail,
            ),
        )

    def raise_for_error(self) -> Any:
        """Return ``data`` on success, raise the matching ServiceFailure otherwise."""
        if self.ok:
            return self.data
        assert self.error is not None
        exc_cls = _EXCEPTIONS.get(self.error.code, ServiceFailure)
        raise exc_cls(self.error.message, self.error.validation_errors)


_EXCEPTIONS: dict[ErrorKind, type[ServiceFailure]] = {
    ErrorKind.VALIDATION_FAILED: ValidationFailedError,
    ErrorKind.NOT_FOUND: DomainObjectNotFoundError,
    ErrorKind.CONCURRENCY_CONFLICT: ConcurrencyConflictError,
}
