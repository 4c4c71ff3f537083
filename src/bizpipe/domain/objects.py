"""Domain object contract — identity, versioning, and field reversion.

Every entity flowing through a :class:`~bizpipe.services.business.BusinessService`
is a :class:`DomainObject`. Field metadata lives on the class:

- ``non_editable_fields``: server-owned fields restored from the stored copy
  before an update is persisted.
- ``foreign_key_fields``: reference fields normalized from their zero
  sentinel to ``None``.
- ``display_name``: human-readable type name used in error messages.

Entities that carry an optimistic-concurrency token extend
:class:`VersionedDomainObject`. The capability is queried at the class
level via :meth:`DomainObject.supports_versioning`.

INVARIANT: Reversion never touches ``id``.
"""

from __future__ import annotations

import copy
from typing import Any, ClassVar, Protocol, Self
from uuid import UUID

from pydantic import BaseModel, ConfigDict

# ---------------------------------------------------------------------------
# Key sentinels
# ---------------------------------------------------------------------------


def is_default_key(value: Any) -> bool:
    """Whether *value* is its type's default/empty sentinel.

    Examples:
        >>> is_default_key(0), is_default_key(""), is_default_key(None)
        (True, True, True)
        >>> is_default_key(42), is_default_key("ORD-1")
        (False, False)
    """
    if value is None:
        return True
    if isinstance(value, bool):
        return False
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, int | float):
        return value == 0
    if isinstance(value, UUID):
        return value.int == 0
    return False


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------


class VersionContainer(Protocol):
    """Anything exposing an opaque optimistic-concurrency token."""

    @property
    def version(self) -> Any: ...


# ---------------------------------------------------------------------------
# Base models
# ---------------------------------------------------------------------------


class DomainObject(BaseModel):
    """Base class for business entities.

    Subclasses narrow ``id`` to their key type and declare field metadata::

        class Order(DomainObject):
            non_editable_fields = frozenset({"created_by", "created_on"})
            foreign_key_fields = frozenset({"customer_id"})

            id: int = 0
            customer_id: int | None = None
            created_by: str = ""
    """

    model_config = ConfigDict(validate_assignment=False)

    non_editable_fields: ClassVar[frozenset[str]] = frozenset()
    foreign_key_fields: ClassVar[frozenset[str]] = frozenset()
    display_name: ClassVar[str | None] = None

    id: Any = None

    @classmethod
    def class_name(cls) -> str:
        """Human-readable type name for messages."""
        return cls.display_name or cls.__name__

    @classmethod
    def supports_versioning(cls) -> bool:
        """Whether instances carry a version token."""
        return False

    def revert_non_editable_values(self, current: Self) -> None:
        """Restore server-owned fields from the authoritative *current* copy."""
        for name in sorted(self.non_editable_fields):
            if name == "id":
                continue
            setattr(self, name, copy.deepcopy(getattr(current, name)))

    def revert_foreign_keys_from_zero_to_null(self) -> None:
        """Replace zero/empty foreign keys with ``None``."""
        for name in sorted(self.foreign_key_fields):
            value = getattr(self, name)
            if value is not None and is_default_key(value):
                setattr(self, name, None)


class VersionedDomainObject(DomainObject):
    """Domain object carrying a ``version`` token for stale-write detection.

    The token is opaque: a counter, a timestamp, or a row-version blob.
    Only equality is ever checked.
    """

    version: Any = None

    @classmethod
    def supports_versioning(cls) -> bool:
        return True
