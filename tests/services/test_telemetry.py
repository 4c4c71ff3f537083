"""Tests for telemetry primitives: Span, trace_span, @traced."""

from __future__ import annotations

import time

import pytest

from bizpipe.services.business import BusinessService
from bizpipe.services.result import ErrorKind, ServiceResult
from bizpipe.services.telemetry import (
    Span,
    _current_span,
    disable_telemetry,
    enable_telemetry,
    get_current_span,
    trace_span,
    traced,
)
from tests.models import Order, RecordingProxy

# ── Span unit tests ──────────────────────────────────────────────────


class TestSpan:
    def test_duration_before_end_is_zero(self) -> None:
        span = Span(name="test")
        assert span.duration_ms == 0.0

    def test_duration_after_end(self) -> None:
        span = Span(name="test")
        time.sleep(0.005)
        span.end()
        assert span.duration_ms > 0

    def test_to_dict_minimal(self) -> None:
        span = Span(name="root")
        span.end()
        d = span.to_dict()
        assert d["name"] == "root"
        assert "duration_ms" in d
        assert "children" not in d

    def test_to_dict_with_children(self) -> None:
        root = Span(name="root")
        child = Span(name="child", parent=root)
        root.children.append(child)
        child.end()
        root.end()
        d = root.to_dict()
        assert d["children"][0]["name"] == "child"

    def test_annotate(self) -> None:
        span = Span(name="test")
        span.annotate("rows", 42)
        span.end()
        assert span.to_dict()["annotations"] == {"rows": 42}


# ── trace_span tests ─────────────────────────────────────────────────


class TestTraceSpan:
    def test_disabled_yields_none(self) -> None:
        with trace_span("test") as span:
            assert span is None

    def test_no_root_yields_none(self) -> None:
        enable_telemetry()
        with trace_span("test") as span:
            assert span is None

    def test_nested_spans(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            with trace_span("a"):
                with trace_span("b"):
                    pass
            assert root.children[0].name == "a"
            assert root.children[0].children[0].name == "b"
            assert root.children[0].end_time is not None
        finally:
            _current_span.reset(token)


# ── @traced decorator tests ──────────────────────────────────────────


class TestTracedDecorator:
    def test_noop_when_disabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult(ok=True, op="test")

        assert my_func().meta is None

    def test_injects_meta_when_enabled(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            with trace_span("stage"):
                pass
            return ServiceResult(ok=True, op="test", meta={"existing": "data"})

        enable_telemetry()
        result = my_func()
        assert result.meta is not None
        assert result.meta["existing"] == "data"
        assert result.meta["telemetry"]["name"].endswith("my_func")
        assert result.meta["telemetry"]["children"][0]["name"] == "stage"

    def test_non_service_result_passthrough(self) -> None:
        @traced
        def my_func() -> str:
            return "hello"

        enable_telemetry()
        assert my_func() == "hello"

    def test_exception_propagates(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            msg = "boom"
            raise ValueError(msg)

        enable_telemetry()
        with pytest.raises(ValueError, match="boom"):
            my_func()
        assert _current_span.get() is None

    def test_error_result_gets_telemetry(self) -> None:
        @traced
        def my_func() -> ServiceResult:
            return ServiceResult.failure("test", ErrorKind.NOT_FOUND, "gone")

        enable_telemetry()
        result = my_func()
        assert result.ok is False
        assert result.meta is not None
        assert "telemetry" in result.meta

    @pytest.mark.asyncio
    async def test_coroutine_function(self) -> None:
        @traced
        async def my_func() -> ServiceResult:
            with trace_span("awaited"):
                pass
            return ServiceResult(ok=True, op="test")

        enable_telemetry()
        result = await my_func()
        assert result.meta is not None
        assert result.meta["telemetry"]["children"][0]["name"] == "awaited"


class TestGetCurrentSpan:
    def test_returns_none_when_disabled(self) -> None:
        assert get_current_span() is None

    def test_returns_span_when_enabled(self) -> None:
        enable_telemetry()
        root = Span(name="root")
        token = _current_span.set(root)
        try:
            assert get_current_span() is root
        finally:
            _current_span.reset(token)

    def test_disable_resets_lookup(self) -> None:
        enable_telemetry()
        disable_telemetry()
        assert get_current_span() is None


# ── Spans on real services ───────────────────────────────────────────


class TestServiceSpans:
    def test_update_has_prefetch_and_persist(
        self, order_service: BusinessService[Order]
    ) -> None:
        enable_telemetry()
        result = order_service.update(Order(id=7, version=2))
        assert result.ok
        assert result.meta is not None
        tel = result.meta["telemetry"]
        assert "BusinessService.update" in tel["name"]
        assert [c["name"] for c in tel["children"]] == ["prefetch", "persist"]

    def test_latency_prone_update_has_only_persist(self, stored_order: Order) -> None:
        proxy = RecordingProxy(Order, latency_prone=True, seed=[stored_order])
        enable_telemetry()
        result = BusinessService(proxy, Order).update(Order(id=7, version=2))
        assert result.meta is not None
        assert [c["name"] for c in result.meta["telemetry"]["children"]] == ["persist"]

    def test_rejected_update_has_no_children(
        self, order_service: BusinessService[Order]
    ) -> None:
        enable_telemetry()
        result = order_service.update(Order(id=0))
        assert result.meta is not None
        assert "children" not in result.meta["telemetry"]

    @pytest.mark.asyncio
    async def test_async_delete_has_persist(
        self, order_service: BusinessService[Order]
    ) -> None:
        enable_telemetry()
        result = await order_service.delete_async(7)
        assert result.meta is not None
        tel = result.meta["telemetry"]
        assert "BusinessService.delete_async" in tel["name"]
        assert [c["name"] for c in tel["children"]] == ["persist"]
