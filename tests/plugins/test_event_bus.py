"""Tests for EventBus — inline and background hook dispatch."""

from __future__ import annotations

import time
from typing import Any

import pytest

from bizpipe.plugins.event_bus import EventBus
from bizpipe.plugins.hookspecs import hookimpl
from bizpipe.plugins.manager import PluginManager

# ---------------------------------------------------------------------------
# Fake plugins for testing
# ---------------------------------------------------------------------------


class RecordingPlugin:
    """Plugin that records all hook calls."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @hookimpl
    def post_update(self, type_name: str, entity_id: Any) -> None:
        self.calls.append(("post_update", {"type_name": type_name, "entity_id": entity_id}))

    @hookimpl
    def post_delete(self, type_name: str, entity_id: Any) -> None:
        self.calls.append(("post_delete", {"type_name": type_name, "entity_id": entity_id}))


class FailingPlugin:
    """Plugin that always raises on post_update."""

    @hookimpl
    def post_update(self, type_name: str, entity_id: Any) -> None:
        msg = "Plugin exploded!"
        raise RuntimeError(msg)


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def pm_with_recorder() -> tuple[PluginManager, RecordingPlugin]:
    pm = PluginManager()
    recorder = RecordingPlugin()
    pm.register_plugin(recorder, name="recorder")
    return pm, recorder


@pytest.fixture
def pm_with_failer() -> PluginManager:
    pm = PluginManager()
    pm.register_plugin(FailingPlugin(), name="failer")
    return pm


PAYLOAD = {"type_name": "Order", "entity_id": 7}


class TestEventBusSync:
    def test_dispatch_calls_hook(self, pm_with_recorder) -> None:
        pm, recorder = pm_with_recorder
        EventBus(pm, sync=True).dispatch("post_update", PAYLOAD)
        assert recorder.calls == [("post_update", PAYLOAD)]

    def test_failure_reaches_caller(self, pm_with_failer) -> None:
        with pytest.raises(RuntimeError, match="Plugin exploded"):
            EventBus(pm_with_failer, sync=True).dispatch("post_update", PAYLOAD)

    def test_unknown_hook_is_noop(self, pm_with_recorder) -> None:
        pm, recorder = pm_with_recorder
        EventBus(pm, sync=True).dispatch("post_teleport", PAYLOAD)
        assert recorder.calls == []

    def test_empty_manager_is_noop(self) -> None:
        EventBus(PluginManager(), sync=True).dispatch("post_delete", PAYLOAD)

    def test_plugin_manager_exposed(self, pm_with_recorder) -> None:
        pm, _ = pm_with_recorder
        assert EventBus(pm).plugin_manager is pm


class TestEventBusAsync:
    def test_async_dispatch_completes_after_drain(self, pm_with_recorder) -> None:
        pm, recorder = pm_with_recorder
        bus = EventBus(pm, sync=False, max_workers=1)
        try:
            bus.dispatch("post_delete", PAYLOAD)
            bus.drain()
            assert recorder.calls == [("post_delete", PAYLOAD)]
        finally:
            bus.shutdown()

    def test_failure_is_logged_not_raised(
        self, pm_with_failer, caplog: pytest.LogCaptureFixture
    ) -> None:
        bus = EventBus(pm_with_failer, sync=False)
        with caplog.at_level("WARNING"):
            bus.dispatch("post_update", PAYLOAD)
            bus.shutdown()
        assert "Hook post_update failed" in caplog.text

    def test_shutdown_waits(self, pm_with_recorder) -> None:
        pm, recorder = pm_with_recorder
        bus = EventBus(pm, sync=False)
        for entity_id in range(5):
            bus.dispatch("post_delete", {"type_name": "Order", "entity_id": entity_id})
        bus.shutdown()
        assert len(recorder.calls) == 5

    def test_shutdown_twice_is_safe(self, pm_with_recorder) -> None:
        pm, _ = pm_with_recorder
        bus = EventBus(pm, sync=False)
        bus.shutdown()
        bus.shutdown()

    def test_completed_dispatches_are_released(self, pm_with_recorder) -> None:
        pm, recorder = pm_with_recorder
        bus = EventBus(pm, sync=False)
        try:
            for entity_id in range(50):
                bus.dispatch("post_delete", {"type_name": "Order", "entity_id": entity_id})
            deadline = time.monotonic() + 5
            while bus._futures and time.monotonic() < deadline:
                time.sleep(0.01)
            assert bus._futures == set()
            assert len(recorder.calls) == 50
        finally:
            bus.shutdown()
