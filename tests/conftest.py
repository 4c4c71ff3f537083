"""Shared pytest fixtures for bizpipe tests."""

from __future__ import annotations

from collections.abc import Generator

import pytest

from bizpipe.services.business import BusinessService
from bizpipe.services.telemetry import _current_span, disable_telemetry
from tests.models import Customer, Order, RecordingProxy


@pytest.fixture(autouse=True)
def _reset_telemetry_state() -> Generator[None]:
    """Ensure clean telemetry state for every test."""
    yield
    disable_telemetry()
    _current_span.set(None)


@pytest.fixture
def stored_order() -> Order:
    return Order(id=7, version=2, customer_id=3, total=10.0, protected_field="Y", created_by="ops")


@pytest.fixture
def order_proxy(stored_order: Order) -> RecordingProxy[Order]:
    return RecordingProxy(Order, seed=[stored_order])


@pytest.fixture
def order_service(order_proxy: RecordingProxy[Order]) -> BusinessService[Order]:
    return BusinessService(order_proxy, Order)


@pytest.fixture
def customer_proxy() -> RecordingProxy[Customer]:
    return RecordingProxy(Customer, seed=[Customer(id=1, name="Acme", created_by="ops")])


@pytest.fixture
def customer_service(customer_proxy: RecordingProxy[Customer]) -> BusinessService[Customer]:
    return BusinessService(customer_proxy, Customer)
