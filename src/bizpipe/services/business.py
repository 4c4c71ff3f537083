"""BusinessService — validated CRUD commands with optimistic concurrency.

Pipeline per command: VALIDATE → BUSINESS RULES → EXECUTE → RESPOND.
Update adds, for proxies that are cheap to re-query:
FETCH CURRENT → CONCURRENCY CHECK → REVERT FIELDS → PERSIST.

Each command is one step generator (see :mod:`bizpipe.services.pipeline`)
exposed twice: ``update(entity)`` blocks, ``await update_async(entity)``
suspends only on the proxy calls.

INVARIANT: Validation and business-rule failures never reach the proxy.
INVARIANT: A missing record or stale version never reaches persist.
INVARIANT: A stale write the proxy itself rejects is CONCURRENCY_CONFLICT too.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from typing import TYPE_CHECKING, Any

from bizpipe.domain.errors import ConcurrencyConflictError
from bizpipe.domain.rules import (
    ConcurrencyCheckRule,
    Rule,
    ValidationResult,
    ValueRequiredRule,
    validate_rules,
)
from bizpipe.services.base import BaseService
from bizpipe.services.pipeline import Steps, drive_async, drive_blocking
from bizpipe.services.result import ErrorKind, ServiceResult
from bizpipe.services.telemetry import trace_span, traced

if TYPE_CHECKING:
    from bizpipe.domain.objects import DomainObject
    from bizpipe.infrastructure.proxy import ServiceDataProxy
    from bizpipe.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


class ConcurrencyChecker:
    """Stale-write strategy for versioned entity types."""

    def __init__(self, type_name: str) -> None:
        self._type_name = type_name

    def check(self, current: Any, incoming: Any) -> ConcurrencyCheckRule:
        return ConcurrencyCheckRule(
            current, incoming, type_name=self._type_name, key=incoming.id
        ).validate()


class BusinessService[T: DomainObject](BaseService[T]):
    """Generic command service for one domain object type.

    Subclasses customise validation by overriding the
    ``validation_results_for_*`` and ``business_rules_for_*`` hooks.
    """

    def __init__(
        self,
        data_proxy: ServiceDataProxy[T],
        entity_type: type[T],
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        super().__init__(data_proxy, event_bus=event_bus)
        self._entity_type = entity_type
        self._concurrency: ConcurrencyChecker | None = (
            ConcurrencyChecker(entity_type.class_name())
            if entity_type.supports_versioning()
            else None
        )

    # ------------------------------------------------------------------
    # Capabilities
    # ------------------------------------------------------------------

    @property
    def entity_type(self) -> type[T]:
        return self._entity_type

    @property
    def supports_transactions(self) -> bool:
        return self._proxy.supports_transactions

    @property
    def is_latency_prone(self) -> bool:
        return self._proxy.is_latency_prone

    def build_not_found_error(self, id: Any) -> str:
        return f"{self._entity_type.class_name()} ID {id} could not be found."

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @traced
    def get_all(self) -> ServiceResult:
        return drive_blocking(self._get_all_steps())

    @traced
    async def get_all_async(self) -> ServiceResult:
        return await drive_async(self._get_all_steps())

    @traced
    def get_by_id(self, id: Any) -> ServiceResult:
        return drive_blocking(self._get_by_id_steps(id))

    @traced
    async def get_by_id_async(self, id: Any) -> ServiceResult:
        return await drive_async(self._get_by_id_steps(id))

    @traced
    def insert(self, entity: T) -> ServiceResult:
        return drive_blocking(self._insert_steps(entity))

    @traced
    async def insert_async(self, entity: T) -> ServiceResult:
        return await drive_async(self._insert_steps(entity))

    @traced
    def update(self, entity: T) -> ServiceResult:
        return drive_blocking(self._update_steps(entity))

    @traced
    async def update_async(self, entity: T) -> ServiceResult:
        return await drive_async(self._update_steps(entity))

    @traced
    def delete(self, id: Any) -> ServiceResult:
        return drive_blocking(self._delete_steps(id))

    @traced
    async def delete_async(self, id: Any) -> ServiceResult:
        return await drive_async(self._delete_steps(id))

    # ------------------------------------------------------------------
    # Validation hooks
    # ------------------------------------------------------------------

    def validation_results_for_get_all(self) -> Iterable[ValidationResult]:
        return []

    def validation_results_for_get_by_id(self, id: Any) -> Iterable[ValidationResult]:
        return validate_rules([ValueRequiredRule(id, "id")])

    def validation_results_for_insert(self, entity: T) -> Iterable[ValidationResult]:
        return []

    def validation_results_for_update(self, entity: T) -> Iterable[ValidationResult]:
        return validate_rules([ValueRequiredRule(entity.id, "id")])

    def validation_results_for_delete(self, id: Any) -> Iterable[ValidationResult]:
        return validate_rules([ValueRequiredRule(id, "id")])

    # ------------------------------------------------------------------
    # Business rule hooks (run only when validation passed)
    # ------------------------------------------------------------------

    def business_rules_for_get_all(self) -> Sequence[Rule]:
        return []

    def business_rules_for_get_by_id(self, id: Any) -> Sequence[Rule]:
        return []

    def business_rules_for_insert(self, entity: T) -> Sequence[Rule]:
        return []

    def business_rules_for_update(self, entity: T) -> Sequence[Rule]:
        return []

    def business_rules_for_delete(self, id: Any) -> Sequence[Rule]:
        return []

    # ------------------------------------------------------------------
    # Command steps
    # ------------------------------------------------------------------

    def _get_all_steps(self) -> Steps[ServiceResult]:
        op = "get_all"
        rejected = self._reject(
            op, self.validation_results_for_get_all, self.business_rules_for_get_all
        )
        if rejected is not None:
            return rejected

        with trace_span("fetch_all"):
            entities = yield self._proxy.get_all_async()
        return ServiceResult(ok=True, op=op, data=list(entities))

    def _get_by_id_steps(self, id: Any) -> Steps[ServiceResult]:
        op = "get_by_id"
        rejected = self._reject(
            op,
            lambda: self.validation_results_for_get_by_id(id),
            lambda: self.business_rules_for_get_by_id(id),
        )
        if rejected is not None:
            return rejected

        with trace_span("fetch"):
            entity = yield self._proxy.get_by_id_async(id)
        return ServiceResult(ok=True, op=op, data=entity)

    def _insert_steps(self, entity: T) -> Steps[ServiceResult]:
        op = "insert"
        rejected = self._reject(
            op,
            lambda: self.validation_results_for_insert(entity),
            lambda: self.business_rules_for_insert(entity),
        )
        if rejected is not None:
            return rejected

        entity.revert_foreign_keys_from_zero_to_null()
        with trace_span("persist"):
            inserted = yield self._proxy.insert_async(entity)

        warnings: list[str] = []
        self._dispatch_event("post_insert", self._event_payload(inserted.id), warnings)
        return ServiceResult(ok=True, op=op, data=inserted, warnings=warnings)

    def _update_steps(self, entity: T) -> Steps[ServiceResult]:
        op = "update"
        rejected = self._reject(
            op,
            lambda: self.validation_results_for_update(entity),
            lambda: self.business_rules_for_update(entity),
        )
        if rejected is not None:
            return rejected

        # Latency-prone proxies: the remote side owns concurrency and field protection.
        if not self.is_latency_prone:
            with trace_span("prefetch"):
                current = yield self._proxy.get_by_id_async(entity.id)
            if current is None:
                logger.debug("Update target missing: %s %s", self._type_name, entity.id)
                return ServiceResult.failure(
                    op,
                    ErrorKind.NOT_FOUND,
                    self.build_not_found_error(entity.id),
                    id=entity.id,
                )

            if self._concurrency is not None:
                rule = self._concurrency.check(current, entity)
                if not rule.is_valid:
                    logger.debug("Stale write rejected: %s %s", self._type_name, entity.id)
                    return ServiceResult.failure(
                        op,
                        ErrorKind.CONCURRENCY_CONFLICT,
                        rule.error_message,
                        id=entity.id,
                        stored_version=rule.current.version,
                        incoming_version=rule.incoming.version,
                    )

            entity.revert_non_editable_values(current)
            entity.revert_foreign_keys_from_zero_to_null()
        else:
            logger.debug("Latency-prone proxy, prefetch skipped for %s", self._type_name)

        with trace_span("persist"):
            try:
                updated = yield self._proxy.update_async(entity)
            except ConcurrencyConflictError as exc:
                logger.debug("Stale write rejected by proxy: %s %s", self._type_name, entity.id)
                return ServiceResult.failure(
                    op,
                    ErrorKind.CONCURRENCY_CONFLICT,
                    exc.message,
                    validation_errors=exc.errors,
                    id=entity.id,
                )

        warnings: list[str] = []
        self._dispatch_event("post_update", self._event_payload(entity.id), warnings)
        return ServiceResult(ok=True, op=op, data=updated, warnings=warnings)

    def _delete_steps(self, id: Any) -> Steps[ServiceResult]:
        op = "delete"
        rejected = self._reject(
            op,
            lambda: self.validation_results_for_delete(id),
            lambda: self.business_rules_for_delete(id),
        )
        if rejected is not None:
            return rejected

        # No existence check: a missing id is the proxy's concern.
        with trace_span("persist"):
            yield self._proxy.delete_async(id)

        warnings: list[str] = []
        self._dispatch_event("post_delete", self._event_payload(id), warnings)
        return ServiceResult(ok=True, op=op, data=None, warnings=warnings)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @property
    def _type_name(self) -> str:
        return self._entity_type.class_name()

    def _event_payload(self, entity_id: Any) -> dict[str, Any]:
        return {"type_name": self._type_name, "entity_id": entity_id}

    def _reject(
        self,
        op: str,
        validation: Callable[[], Iterable[ValidationResult]],
        business_rules: Callable[[], Sequence[Rule]],
    ) -> ServiceResult | None:
        """Return a VALIDATION_FAILED result, or None when the command may run.

        Business rules are only evaluated once validation passed.
        """
        errors = list(validation())
        stage = "validation"
        if not errors:
            errors = validate_rules(business_rules())
            stage = "business_rules"
        if not errors:
            return None

        logger.debug("%s %s rejected at %s: %d error(s)", op, self._type_name, stage, len(errors))
        return ServiceResult.failure(
            op,
            ErrorKind.VALIDATION_FAILED,
            "; ".join(error.message for error in errors),
            validation_errors=errors,
            stage=stage,
        )
