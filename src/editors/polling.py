"""Cooperative selection polling.

Some surfaces have no reliable selection-change event, so adapters poll
their selection at a fixed interval. Polling runs on the caller's asyncio
event loop (``loop.call_later``); no threads are created. When no loop is
running the poller stays idle and the host is expected to call the
adapter's ``check_selection_change`` from its own event loop.
"""

import asyncio
import logging
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class SelectionPoller:
    """Repeatedly invokes a check callback on the running event loop.

    Attributes:
        interval: Seconds between checks
    """

    def __init__(self, check: Callable[[], None], interval: float):
        if interval <= 0:
            raise ValueError(f"Poll interval must be positive, got {interval}")
        self.interval = interval
        self._check = check
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._handle: Optional[asyncio.TimerHandle] = None
        self._running = False

    @property
    def is_running(self) -> bool:
        """True while the poller is started (scheduled or idle)."""
        return self._running

    @property
    def is_scheduled(self) -> bool:
        """True when a check is pending on an event loop."""
        return self._handle is not None

    def start(self) -> None:
        """Start polling; a no-op when already running."""
        if self._running:
            return
        self._running = True
        try:
            self._loop = asyncio.get_running_loop()
        except RuntimeError:
            self._loop = None
            logger.debug("No running event loop; selection polling is host-driven")
            return
        self._schedule()

    def stop(self) -> None:
        """Stop polling and cancel any pending check."""
        self._running = False
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
        self._loop = None

    def _schedule(self) -> None:
        if self._loop is None or not self._running:
            return
        self._handle = self._loop.call_later(self.interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        if not self._running:
            return
        try:
            self._check()
        except Exception:
            # A failing check must not kill the poll cycle
            logger.exception("Selection poll check failed")
        self._schedule()
