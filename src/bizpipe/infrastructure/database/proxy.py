"""Table-backed data proxy using SQLAlchemy Core.

Each proxy maps one :class:`~sqlalchemy.Table` to one domain object type.
Columns are matched to model fields by name; fields without a column are
ignored on write and take their model default on read.

Statements are blocking, so every operation runs in a worker thread via
:func:`asyncio.to_thread` and each call owns its connection.

Updates of versioned tables are compare-and-set on the incoming version:
a write that lost a race raises
:class:`~bizpipe.domain.errors.ConcurrencyConflictError`, a missing row
raises :class:`KeyError`.
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import and_, delete, insert, select, update

from bizpipe.domain.objects import DomainObject, is_default_key
from bizpipe.domain.rules import ConcurrencyCheckRule
from bizpipe.domain.errors import ConcurrencyConflictError

if TYPE_CHECKING:
    from sqlalchemy import Row, Table
    from sqlalchemy.engine import Connection, Engine

logger = logging.getLogger(__name__)


class SqlDataProxy[T: DomainObject]:
    """:class:`~bizpipe.infrastructure.proxy.ServiceDataProxy` over a SQL table.

    Parameters:
        engine: SQLAlchemy engine.
        table: Table holding the entities; must have a column named ``id``.
        entity_type: Domain object class mapped to the table.
    """

    supports_transactions = True
    is_latency_prone = False

    def __init__(self, engine: Engine, table: Table, entity_type: type[T]) -> None:
        self._engine = engine
        self._table = table
        self._entity_type = entity_type
        self._key = table.c.id
        self._versioned = entity_type.supports_versioning() and "version" in table.c

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def get_all_async(self) -> list[T]:
        return await asyncio.to_thread(self._get_all)

    async def get_by_id_async(self, id: Any) -> T | None:
        return await asyncio.to_thread(self._get_by_id, id)

    async def insert_async(self, entity: T) -> T:
        return await asyncio.to_thread(self._insert, entity)

    async def update_async(self, entity: T) -> T:
        return await asyncio.to_thread(self._update, entity)

    async def delete_async(self, id: Any) -> None:
        await asyncio.to_thread(self._delete, id)

    # ------------------------------------------------------------------
    # Blocking implementations
    # ------------------------------------------------------------------

    def _get_all(self) -> list[T]:
        with self._engine.connect() as conn:
            rows = conn.execute(select(self._table).order_by(self._key)).fetchall()
        return [self._to_entity(row) for row in rows]

    def _get_by_id(self, id: Any) -> T | None:
        with self._engine.connect() as conn:
            row = conn.execute(select(self._table).where(self._key == id)).first()
        return self._to_entity(row) if row is not None else None

    def _insert(self, entity: T) -> T:
        values = self._to_values(entity)
        if is_default_key(values.get("id")):
            values.pop("id", None)
        if self._versioned:
            values["version"] = _next_version(values.get("version"))
        with self._engine.begin() as conn:
            result = conn.execute(insert(self._table).values(**values))
            new_id = result.inserted_primary_key[0]
            row = conn.execute(select(self._table).where(self._key == new_id)).one()
        logger.debug("Inserted %s %s", self._entity_type.class_name(), new_id)
        return self._to_entity(row)

    def _update(self, entity: T) -> T:
        values = self._to_values(entity)
        values.pop("id", None)
        condition = self._key == entity.id
        if self._versioned:
            # Compare-and-set: only the version the caller read may be overwritten.
            incoming = values.get("version")
            condition = and_(condition, self._table.c.version == incoming)
            values["version"] = _next_version(incoming)
        with self._engine.begin() as conn:
            result = conn.execute(update(self._table).where(condition).values(**values))
            if result.rowcount == 0:
                raise self._rejected_update(conn, entity)
            row = conn.execute(select(self._table).where(self._key == entity.id)).one()
        logger.debug("Updated %s %s", self._entity_type.class_name(), entity.id)
        return self._to_entity(row)

    def _rejected_update(self, conn: Connection, entity: T) -> Exception:
        row = conn.execute(select(self._table).where(self._key == entity.id)).first()
        type_name = self._entity_type.class_name()
        if row is None:
            return KeyError(f"{type_name} ID {entity.id} does not exist")
        rule = ConcurrencyCheckRule(
            self._to_entity(row), entity, type_name=type_name, key=entity.id
        ).validate()
        logger.debug("Stale write rejected by %s: %s %s", self._table.name, type_name, entity.id)
        failure = rule.to_validation_result()
        if failure is None:
            return ConcurrencyConflictError(f"{type_name} ID {entity.id} was changed concurrently.")
        return ConcurrencyConflictError(failure.message, [failure])

    def _delete(self, id: Any) -> None:
        with self._engine.begin() as conn:
            conn.execute(delete(self._table).where(self._key == id))

    # ------------------------------------------------------------------
    # Mapping
    # ------------------------------------------------------------------

    def _to_entity(self, row: Row[Any]) -> T:
        return self._entity_type.model_validate(dict(row._mapping))

    def _to_values(self, entity: T) -> dict[str, Any]:
        data = entity.model_dump(mode="python")
        return {name: data[name] for name in self._table.c.keys() if name in data}


def _next_version(current: Any) -> int:
    return (current if isinstance(current, int) else 0) + 1
