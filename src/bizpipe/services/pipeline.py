"""Step drivers — one orchestration routine, two ways of awaiting it.

Each service operation is written once, as a generator that yields the
data-proxy awaitables it needs and receives their results::

    def _steps(self, id):
        entity = yield self._proxy.get_by_id_async(id)
        return ServiceResult(ok=True, op="get_by_id", data=entity)

:func:`drive_async` awaits each yielded call on the caller's loop;
:func:`drive_blocking` runs them all on one private loop that lives for
the whole operation, so loop-bound proxy resources (pools, sessions,
locks) see a single loop on both paths.

A proxy call that raises is thrown back into the generator at its yield,
so a step may translate an expected storage failure into a result.

INVARIANT: Exceptions a step does not handle propagate unchanged.
INVARIANT: A blocking call inside a running loop is refused before any step runs.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Generator
from contextlib import closing
from typing import Any

type Steps[R] = Generator[Awaitable[Any], Any, R]


def drive_blocking[R](steps: Steps[R]) -> R:
    """Run *steps* to completion on a private event loop.

    Raises:
        RuntimeError: When called from inside a running event loop.
    """
    with closing(steps):
        _refuse_running_loop()
        with asyncio.Runner() as runner:
            sent: Any = None
            error: Exception | None = None
            while True:
                try:
                    call = steps.send(sent) if error is None else steps.throw(error)
                except StopIteration as stop:
                    return stop.value
                try:
                    sent, error = runner.run(_await(call)), None
                except Exception as exc:
                    sent, error = None, exc


async def drive_async[R](steps: Steps[R]) -> R:
    """Run *steps* to completion, awaiting each proxy call."""
    with closing(steps):
        sent: Any = None
        error: Exception | None = None
        while True:
            try:
                call = steps.send(sent) if error is None else steps.throw(error)
            except StopIteration as stop:
                return stop.value
            try:
                sent, error = await call, None
            except Exception as exc:
                sent, error = None, exc


def _refuse_running_loop() -> None:
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return
    msg = "Blocking service call made inside a running event loop; use the *_async form"
    raise RuntimeError(msg)


async def _await(call: Awaitable[Any]) -> Any:
    return await call
