"""Lifecycle event dispatch via pluggy, inline or on a ThreadPoolExecutor.

Inline (``sync=True``) dispatch lets hook failures reach the caller, which
records them as ServiceResult warnings. Background dispatch logs them.

INVARIANT: Plugin failures are warnings, never errors.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from bizpipe.plugins.manager import PluginManager

logger = logging.getLogger(__name__)


class EventBus:
    """Dispatch lifecycle hooks to registered plugins.

    Parameters:
        plugin_manager: Loaded PluginManager for hook dispatch.
        sync: Dispatch inline on the calling thread.
        max_workers: ThreadPoolExecutor worker count for background dispatch.
    """

    def __init__(
        self,
        plugin_manager: PluginManager,
        *,
        sync: bool = True,
        max_workers: int = 2,
    ) -> None:
        self._pm = plugin_manager
        self._sync = sync
        self._executor: ThreadPoolExecutor | None = (
            None if sync else ThreadPoolExecutor(max_workers=max_workers)
        )
        self._futures: set[Future[None]] = set()
        self._futures_lock = threading.Lock()

    @property
    def plugin_manager(self) -> PluginManager:
        return self._pm

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def dispatch(self, hook_name: str, payload: dict[str, Any]) -> None:
        """Call *hook_name* with *payload* on every registered plugin.

        Raises whatever a hook raises when dispatching inline.
        """
        hook_fn = getattr(self._pm.hook, hook_name, None)
        if hook_fn is None:
            logger.debug("No hook named %s", hook_name)
            return

        if self._sync:
            hook_fn(**payload)
            return

        assert self._executor is not None
        future = self._executor.submit(self._execute_hook, hook_name, payload)
        with self._futures_lock:
            self._futures.add(future)
        future.add_done_callback(self._forget)

    def drain(self) -> None:
        """Wait for all in-flight background dispatches to finish."""
        with self._futures_lock:
            pending = list(self._futures)
        for future in pending:
            future.result(timeout=30)

    def shutdown(self) -> None:
        """Shutdown ThreadPoolExecutor, waiting for pending tasks."""
        self.drain()
        if self._executor is not None:
            self._executor.shutdown(wait=True)
            self._executor = None

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _forget(self, future: Future[None]) -> None:
        with self._futures_lock:
            self._futures.discard(future)

    def _execute_hook(self, hook_name: str, payload: dict[str, Any]) -> None:
        try:
            getattr(self._pm.hook, hook_name)(**payload)
        except Exception:
            logger.warning("Hook %s failed", hook_name, exc_info=True)
