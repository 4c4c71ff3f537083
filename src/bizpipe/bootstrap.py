"""ServiceContext — process-level wiring for services.

Created once by the embedding application. Configures logging and
telemetry from settings, owns the plugin manager and event bus, and
builds services wired to them::

    ctx = configure(BizpipeSettings.load())
    orders = ctx.service(SqlDataProxy(engine, orders_table, Order), Order)
    result = orders.update(order)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from bizpipe.config.logging import configure_logging
from bizpipe.plugins.event_bus import EventBus
from bizpipe.plugins.manager import PluginManager
from bizpipe.services.business import BusinessService
from bizpipe.services.telemetry import enable_telemetry

if TYPE_CHECKING:
    from bizpipe.config.settings import BizpipeSettings
    from bizpipe.domain.objects import DomainObject
    from bizpipe.infrastructure.proxy import ServiceDataProxy


class ServiceContext:
    """Shared settings and event bus for every service built from it."""

    def __init__(self, settings: BizpipeSettings, event_bus: EventBus | None = None) -> None:
        self.settings = settings
        self.event_bus = event_bus

    @property
    def plugin_manager(self) -> PluginManager | None:
        return self.event_bus.plugin_manager if self.event_bus is not None else None

    def service[T: DomainObject](
        self,
        data_proxy: ServiceDataProxy[T],
        entity_type: type[T],
        *,
        service_cls: type[BusinessService[T]] = BusinessService,
    ) -> BusinessService[T]:
        """Build a service of *service_cls* bound to this context's event bus."""
        return service_cls(data_proxy, entity_type, event_bus=self.event_bus)

    def close(self) -> None:
        """Wait for background hook dispatch and release its workers."""
        if self.event_bus is not None:
            self.event_bus.shutdown()


def configure(settings: BizpipeSettings) -> ServiceContext:
    """Apply *settings* to logging and telemetry and build the event bus."""
    configure_logging(
        verbose=settings.verbose,
        log_json=settings.log_json,
        telemetry=settings.telemetry.enabled,
    )

    if settings.telemetry.enabled:
        enable_telemetry()

    event_bus: EventBus | None = None
    if settings.events.enabled:
        pm = PluginManager()
        if settings.events.load_entrypoints:
            pm.discover_and_load()
        event_bus = EventBus(
            pm,
            sync=settings.events.sync,
            max_workers=settings.events.max_workers,
        )

    return ServiceContext(settings, event_bus)
