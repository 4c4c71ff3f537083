"""BaseService — abstract foundation for all bizpipe services.

Every service receives a data proxy at construction time and, optionally,
an :class:`~bizpipe.plugins.event_bus.EventBus` for lifecycle hooks.
Services never see the storage technology behind the proxy.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bizpipe.infrastructure.proxy import ServiceDataProxy
    from bizpipe.plugins.event_bus import EventBus

logger = logging.getLogger(__name__)


class BaseService[T]:
    """Abstract base for all service-layer classes.

    Usage::

        class OrderService(BusinessService[Order]):
            def business_rules_for_update(self, entity: Order) -> list[Rule]:
                return [CanShipRule(entity)]
    """

    def __init__(
        self,
        data_proxy: ServiceDataProxy[T],
        *,
        event_bus: EventBus | None = None,
    ) -> None:
        self._proxy = data_proxy
        self._event_bus = event_bus

    @property
    def data_proxy(self) -> ServiceDataProxy[T]:
        return self._proxy

    def _dispatch_event(
        self,
        hook_name: str,
        payload: dict[str, Any],
        warnings: list[str],
    ) -> None:
        """Dispatch a lifecycle event. No-op if no event bus is configured.

        INVARIANT: Plugin failures are warnings, never errors.
        """
        bus = self._event_bus
        if bus is None:
            return
        try:
            bus.dispatch(hook_name, payload)
        except Exception:
            logger.debug("Event dispatch failed for %s", hook_name, exc_info=True)
            warnings.append(f"Event dispatch failed for {hook_name}")
