"""Validation rules — composable pass/fail checks with error messages.

A :class:`Rule` never raises for an expected failure. Calling
:meth:`Rule.validate` populates ``is_valid`` and ``error_message`` and
returns the rule itself, so checks read as one expression::

    rule = ValueRequiredRule(order_id, "id").validate()
    if not rule.is_valid:
        ...

Rules are value-like: build a fresh instance per validation call and
never share one across calls.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Self

from pydantic import BaseModel, Field

from bizpipe.domain.objects import is_default_key

if TYPE_CHECKING:
    from bizpipe.domain.objects import VersionContainer


class ValidationResult(BaseModel):
    """A failed check: message plus the members it applies to."""

    model_config = {"frozen": True}

    message: str
    member_names: tuple[str, ...] = Field(default_factory=tuple)


# ---------------------------------------------------------------------------
# Rule model
# ---------------------------------------------------------------------------


class Rule:
    """Base class for a single validation check.

    Subclasses implement :meth:`_on_validate` and report failure through
    :meth:`_invalidate`.
    """

    member_names: tuple[str, ...] = ()

    def __init__(self) -> None:
        self.is_valid: bool = True
        self.error_message: str = ""
        self._successors: list[Rule] = []
        self._failed: Rule = self

    def validate(self) -> Self:
        """Run the check (and any successors) and record the verdict."""
        self.is_valid = True
        self.error_message = ""
        self._failed = self
        self._on_validate()
        if not self.is_valid:
            return self
        for successor in self._successors:
            successor.validate()
            if not successor.is_valid:
                self.is_valid = False
                self.error_message = successor.error_message
                self._failed = successor
                break
        return self

    def if_valid_then_validate(self, *rules: Rule) -> Self:
        """Chain *rules* to run in order only when this rule passes."""
        self._successors.extend(rules)
        return self

    def to_validation_result(self) -> ValidationResult | None:
        if self.is_valid:
            return None
        return ValidationResult(
            message=self.error_message, member_names=self._failed.member_names
        )

    def _invalidate(self, message: str) -> None:
        self.is_valid = False
        self.error_message = message

    def _on_validate(self) -> None:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(is_valid={self.is_valid!r})"


class RuleSequence(Rule):
    """Ordered composite rule — valid iff every contained rule is valid.

    Every rule runs even after a failure so the caller sees all problems.
    """

    def __init__(self, rules: Iterable[Rule]) -> None:
        super().__init__()
        self.rules: list[Rule] = list(rules)
        self.failures: list[Rule] = []

    def _on_validate(self) -> None:
        self.failures = [rule for rule in self.rules if not rule.validate().is_valid]
        if self.failures:
            self._invalidate("; ".join(rule.error_message for rule in self.failures))


def validate_rules(rules: Iterable[Rule]) -> list[ValidationResult]:
    """Run *rules* in order and return a result per failure."""
    sequence = RuleSequence(rules).validate()
    results: list[ValidationResult] = []
    for rule in sequence.failures:
        result = rule.to_validation_result()
        if result is not None:
            results.append(result)
    return results


# ---------------------------------------------------------------------------
# Built-in rules
# ---------------------------------------------------------------------------


class ValueRequiredRule(Rule):
    """Fails when a key value is its type's default sentinel (0, "", None)."""

    def __init__(self, value: Any, field_name: str) -> None:
        super().__init__()
        self.value = value
        self.field_name = field_name
        self.member_names = (field_name,)

    def _on_validate(self) -> None:
        if is_default_key(self.value):
            self._invalidate(f"{self.field_name} must be supplied")


class ConcurrencyCheckRule(Rule):
    """Fails when the stored and incoming version tokens differ."""

    member_names = ("version",)

    def __init__(
        self,
        current: VersionContainer,
        incoming: VersionContainer,
        *,
        type_name: str = "",
        key: Any = None,
    ) -> None:
        super().__init__()
        self.current = current
        self.incoming = incoming
        self.type_name = type_name
        self.key = key

    def _on_validate(self) -> None:
        stored = self.current.version
        supplied = self.incoming.version
        if stored == supplied:
            return
        subject = "This item"
        if self.type_name and self.key is not None:
            subject = f"{self.type_name} ID {self.key}"
        elif self.type_name:
            subject = self.type_name
        self._invalidate(
            f"{subject} has been changed by another user "
            f"(stored version {stored}, incoming version {supplied}). "
            "Refresh and try again."
        )
