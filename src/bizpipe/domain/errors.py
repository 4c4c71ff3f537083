"""Exceptions for callers that prefer raising over inspecting results.

Services never raise these themselves;
:meth:`~bizpipe.services.result.ServiceResult.raise_for_error` converts a
failed result into the matching type. Data proxies may raise
:class:`ConcurrencyConflictError` when storage itself detects a stale write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from bizpipe.domain.rules import ValidationResult


class ServiceFailure(Exception):
    """Base class for expected service failures."""

    def __init__(self, message: str, errors: list[ValidationResult] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])


class ValidationFailedError(ServiceFailure):
    """Input failed validation or business rules."""


class DomainObjectNotFoundError(ServiceFailure):
    """The targeted record does not exist."""


class ConcurrencyConflictError(ServiceFailure):
    """The record was changed by someone else since it was read."""
