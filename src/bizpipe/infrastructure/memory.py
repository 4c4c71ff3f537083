"""In-memory data proxy — dict-backed storage for tests and local use.

Entities are deep-copied on the way in and out so callers never hold a
reference to the stored instance. Integer keys are assigned on insert
when the incoming key is a default sentinel. Versioned entities get an
integer ``version`` bumped on every insert and update.
"""

from __future__ import annotations

import itertools
import logging
from typing import Any

from bizpipe.domain.objects import DomainObject, is_default_key

logger = logging.getLogger(__name__)


class InMemoryDataProxy[T: DomainObject]:
    """Dict-backed :class:`~bizpipe.infrastructure.proxy.ServiceDataProxy`.

    Parameters:
        entity_type: Domain object class stored by this proxy.
        latency_prone: Value reported by ``is_latency_prone``.
        seed: Entities to preload (stored as given, no version bump).
    """

    supports_transactions = False

    def __init__(
        self,
        entity_type: type[T],
        *,
        latency_prone: bool = False,
        seed: list[T] | None = None,
    ) -> None:
        self._entity_type = entity_type
        self._latency_prone = latency_prone
        self._rows: dict[Any, T] = {}
        for entity in seed or []:
            self._rows[entity.id] = entity.model_copy(deep=True)
        start = max((k for k in self._rows if isinstance(k, int)), default=0) + 1
        self._ids = itertools.count(start)

    @property
    def is_latency_prone(self) -> bool:
        return self._latency_prone

    async def get_all_async(self) -> list[T]:
        return [row.model_copy(deep=True) for row in self._rows.values()]

    async def get_by_id_async(self, id: Any) -> T | None:
        row = self._rows.get(id)
        return row.model_copy(deep=True) if row is not None else None

    async def insert_async(self, entity: T) -> T:
        stored = entity.model_copy(deep=True)
        if is_default_key(stored.id):
            stored.id = next(self._ids)
        if stored.id in self._rows:
            msg = f"{self._entity_type.class_name()} ID {stored.id} already exists"
            raise KeyError(msg)
        self._bump_version(stored)
        self._rows[stored.id] = stored
        logger.debug("Inserted %s %s", self._entity_type.class_name(), stored.id)
        return stored.model_copy(deep=True)

    async def update_async(self, entity: T) -> T:
        if entity.id not in self._rows:
            msg = f"{self._entity_type.class_name()} ID {entity.id} does not exist"
            raise KeyError(msg)
        stored = entity.model_copy(deep=True)
        self._bump_version(stored)
        self._rows[stored.id] = stored
        logger.debug("Updated %s %s", self._entity_type.class_name(), stored.id)
        return stored.model_copy(deep=True)

    async def delete_async(self, id: Any) -> None:
        self._rows.pop(id, None)

    def _bump_version(self, entity: T) -> None:
        if not self._entity_type.supports_versioning():
            return
        current = getattr(entity, "version", None)
        bumped = (current if isinstance(current, int) else 0) + 1
        entity.version = bumped  # type: ignore[attr-defined]
