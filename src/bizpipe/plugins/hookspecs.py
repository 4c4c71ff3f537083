"""Pluggy hook specifications for bizpipe lifecycle events.

Three events fire after a data proxy has accepted a mutation. They never
fire for a failed operation.
"""

from __future__ import annotations

from typing import Any

import pluggy

hookspec = pluggy.HookspecMarker("bizpipe")
hookimpl = pluggy.HookimplMarker("bizpipe")


class BizpipeHookSpec:
    """Hook specifications for the bizpipe plugin system."""

    @hookspec
    def post_insert(self, type_name: str, entity_id: Any) -> None:
        """Called after an entity is inserted."""

    @hookspec
    def post_update(self, type_name: str, entity_id: Any) -> None:
        """Called after an entity is updated."""

    @hookspec
    def post_delete(self, type_name: str, entity_id: Any) -> None:
        """Called after an entity is deleted."""
