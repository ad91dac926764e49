"""Trailing-edge debouncer on the running asyncio loop."""

from __future__ import annotations

import asyncio
from typing import Callable


class Debouncer:
    """Collapse bursts of :meth:`trigger` calls into one call of ``func``.

    ``func`` runs ``delay`` seconds after the last trigger. :meth:`flush` runs it
    right away and drops whatever was pending. Outside a running event loop
    there is nothing to schedule on, so :meth:`trigger` runs ``func`` directly.
    """

    def __init__(self, func: Callable[[], None], delay: float) -> None:
        self._func = func
        self._delay = delay
        self._handle: asyncio.TimerHandle | None = None

    @property
    def pending(self) -> bool:
        return self._handle is not None

    def trigger(self) -> None:
        self.cancel()
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            self._func()
            return
        self._handle = loop.call_later(self._delay, self._fire)

    def flush(self) -> None:
        self.cancel()
        self._func()

    def cancel(self) -> None:
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _fire(self) -> None:
        self._handle = None
        self._func()
