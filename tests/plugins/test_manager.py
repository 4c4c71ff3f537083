"""Tests for PluginManager — discovery, registration, and hook relay."""

from __future__ import annotations

from typing import Any

import pytest

from bizpipe.plugins.hookspecs import hookimpl
from bizpipe.plugins.manager import PluginManager


class _DummyPlugin:
    """Minimal plugin for registration tests."""

    @hookimpl
    def post_delete(self, type_name: str, entity_id: Any) -> None:
        pass


class _BrokenConstructorPlugin:
    def __init__(self) -> None:
        msg = "cannot build"
        raise RuntimeError(msg)

    @hookimpl
    def post_delete(self, type_name: str, entity_id: Any) -> None:
        pass


class TestPluginManager:
    """Tests for the PluginManager class."""

    @pytest.mark.parametrize("hook_name", ["post_insert", "post_update", "post_delete"])
    def test_hookspecs_registered(self, hook_name: str) -> None:
        assert hasattr(PluginManager().hook, hook_name)

    def test_register_plugin(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        assert "dummy" in pm.list_plugin_names()

    def test_register_plugin_default_name(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin())
        assert "_DummyPlugin" in pm.list_plugin_names()

    def test_unregister_plugin(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="dummy")
        pm.unregister(plugin)
        assert "dummy" not in pm.list_plugin_names()

    def test_get_plugins_returns_registered(self) -> None:
        pm = PluginManager()
        plugin = _DummyPlugin()
        pm.register_plugin(plugin, name="test")
        assert plugin in pm.get_plugins()

    def test_is_loaded_false_before_discover(self) -> None:
        assert PluginManager().is_loaded is False

    def test_discover_without_entry_points(self) -> None:
        pm = PluginManager()
        pm.register_plugin(_DummyPlugin(), name="dummy")
        names = pm.discover_and_load()
        assert pm.is_loaded is True
        assert "dummy" in names


class TestEntryPointNormalization:
    def test_plugin_class_replaced_by_instance(self) -> None:
        pm = PluginManager()
        pm._pm.register(_DummyPlugin, name="from-entry-point")
        pm.discover_and_load()
        plugins = pm.get_plugins()
        assert _DummyPlugin not in plugins
        assert any(isinstance(p, _DummyPlugin) for p in plugins)
        assert "from-entry-point" in pm.list_plugin_names()

    def test_failed_instantiation_is_dropped(self, caplog: pytest.LogCaptureFixture) -> None:
        pm = PluginManager()
        pm._pm.register(_BrokenConstructorPlugin, name="broken")
        with caplog.at_level("WARNING"):
            pm.discover_and_load()
        assert "broken" not in pm.list_plugin_names()
        assert "Failed to instantiate entry-point plugin broken" in caplog.text

    def test_has_hook_impls(self) -> None:
        assert PluginManager._has_hook_impls(_DummyPlugin) is True
        assert PluginManager._has_hook_impls(object) is False
