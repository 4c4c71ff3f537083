"""Data proxy contract — the only way services reach storage.

Five composable capability protocols, one per CRUD operation, each an
awaitable. :class:`ServiceDataProxy` adds the two capability flags the
service layer reads:

- ``supports_transactions``: the backing store can enlist in a transaction.
- ``is_latency_prone``: round-trips are expensive (remote/HTTP); services
  skip the pre-update fetch when this is set.

Proxies report failures by raising; services propagate them unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SupportsGetAll[T](Protocol):
    async def get_all_async(self) -> Sequence[T]:
        """Retrieve every entity from the source."""
        ...


@runtime_checkable
class SupportsGetById[T](Protocol):
    async def get_by_id_async(self, id: Any) -> T | None:
        """Retrieve one entity by key, or ``None`` when absent."""
        ...


@runtime_checkable
class SupportsInsert[T](Protocol):
    async def insert_async(self, entity: T) -> T:
        """Create *entity* and return the stored representation."""
        ...


@runtime_checkable
class SupportsUpdate[T](Protocol):
    async def update_async(self, entity: T) -> T:
        """Replace the stored entity and return the stored representation."""
        ...


@runtime_checkable
class SupportsDelete(Protocol):
    async def delete_async(self, id: Any) -> None:
        """Remove the entity with key *id*."""
        ...


@runtime_checkable
class DataProxy[T](
    SupportsGetAll[T],
    SupportsGetById[T],
    SupportsInsert[T],
    SupportsUpdate[T],
    SupportsDelete,
    Protocol,
):
    """All five CRUD capabilities."""


@runtime_checkable
class ServiceDataProxy[T](DataProxy[T], Protocol):
    """A data proxy that also reports its capability flags."""

    @property
    def supports_transactions(self) -> bool: ...

    @property
    def is_latency_prone(self) -> bool: ...
