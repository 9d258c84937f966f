"""
Dashboard sync loop.

Polls the aggregation endpoint on a fixed period and reconciles each snapshot
into the view:

    Idle -> Fetching -> Rendering -> Idle
                     -> ErrorDisplayed -> Idle

The scheduler awaits its own fetch before sleeping, so it never overlaps
itself. Manual refreshes may run alongside a scheduled fetch; responses are
rendered in completion order unless `discard_stale_responses` is set, in
which case only a response newer than the last rendered one is applied.
"""

import asyncio
import logging
from collections import deque
from enum import Enum
from typing import Any, Callable, Deque, List, Optional

from .config import DashboardConfig
from .errors import ApplicationError, TransportError
from .http_client import unwrap_envelope
from .renderers import SectionRenderer
from .snapshot import DashboardSnapshot
from .view import DashboardView, Notice

logger = logging.getLogger("rdm.sync")

DASHBOARD_ACTION = "rdm_get_dashboard_stats"


class SyncState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    RENDERING = "rendering"
    ERROR_DISPLAYED = "error_displayed"


class DashboardSyncLoop:
    """Keeps one DashboardView consistent with the backend."""

    def __init__(
        self,
        client: Any,
        view: DashboardView,
        renderer: SectionRenderer,
        config: DashboardConfig,
        on_render: Optional[Callable[[DashboardView], None]] = None,
    ):
        self.client = client
        self.view = view
        self.renderer = renderer
        self.refresh_interval = config.refresh_interval
        self.error_ttl = config.error_ttl
        self.discard_stale = config.discard_stale_responses
        self.strings = config.strings
        self.on_render = on_render

        self.state = SyncState.IDLE
        self.state_history: Deque[SyncState] = deque(maxlen=64)
        self.last_snapshot: Optional[DashboardSnapshot] = None

        self._timer: Optional[asyncio.Task] = None
        self._starting = False
        self._generation = 0
        self._issued = 0
        self._applied = 0
        self._in_flight = 0
        self._expiry_handles: List[asyncio.TimerHandle] = []

    # ---------- Scheduling ----------

    @property
    def running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    @property
    def in_flight(self) -> int:
        return self._in_flight

    async def start(self) -> None:
        """Fetch immediately, then schedule one fetch every refresh_interval."""
        if self.running or self._starting:
            logger.debug("sync loop already running; start ignored")
            return
        # Only one timer per instance, even while the immediate fetch is suspended
        self._starting = True
        generation = self._generation
        logger.info("dashboard sync loop starting; polling every %ss", self.refresh_interval)
        try:
            await self.fetch_snapshot()
        finally:
            if generation == self._generation:
                self._starting = False
        if generation != self._generation:
            logger.debug("sync loop stopped during its first fetch; timer not scheduled")
            return
        self._timer = asyncio.get_running_loop().create_task(self._tick_forever())

    async def run_forever(self) -> None:
        await self.start()
        if self._timer is not None:
            await self._timer

    async def stop(self) -> None:
        self._generation += 1
        self._starting = False
        for handle in self._expiry_handles:
            handle.cancel()
        self._expiry_handles.clear()
        if self._timer is None:
            return
        self._timer.cancel()
        try:
            await self._timer
        except asyncio.CancelledError:
            pass
        self._timer = None
        logger.info("dashboard sync loop stopped")

    async def _tick_forever(self) -> None:
        while True:
            await asyncio.sleep(max(0.0, self.refresh_interval))
            try:
                await self.fetch_snapshot()
            except Exception as e:
                logger.exception("unexpected error during scheduled refresh: %s", e)

    async def refresh(self) -> bool:
        """Manual refresh; may run while a scheduled fetch is outstanding."""
        return await self.fetch_snapshot()

    # ---------- Fetch / render ----------

    def _set_state(self, state: SyncState) -> None:
        if state is not self.state:
            logger.debug("sync state %s -> %s", self.state.value, state.value)
        self.state = state
        self.state_history.append(state)

    async def fetch_snapshot(self) -> bool:
        """
        Issue one aggregation request and render the result.

        Returns:
            True when a snapshot was received, False on any failure.
        """
        self._issued += 1
        sequence = self._issued
        self._in_flight += 1
        self._set_state(SyncState.FETCHING)
        self.view.show_loading()
        try:
            envelope = await self.client.request(DASHBOARD_ACTION)
            snapshot = DashboardSnapshot.from_payload(unwrap_envelope(envelope))
        except (TransportError, ApplicationError) as e:
            logger.error("dashboard refresh #%d failed: %s", sequence, e)
            self._set_state(SyncState.ERROR_DISPLAYED)
            self.report_error(self.strings["error"])
            return False
        else:
            self._apply(snapshot, sequence)
            return True
        finally:
            self._in_flight -= 1
            self.view.hide_loading()
            self._set_state(SyncState.FETCHING if self._in_flight else SyncState.IDLE)

    def _apply(self, snapshot: DashboardSnapshot, sequence: int) -> None:
        if self.discard_stale and sequence < self._applied:
            logger.debug("discarding stale response #%d; #%d already rendered", sequence, self._applied)
            return
        self._set_state(SyncState.RENDERING)
        self.view.clear_notices()
        self.renderer.render(snapshot, self.view)
        self.last_snapshot = snapshot
        self._applied = max(self._applied, sequence)
        if self.on_render is not None:
            self.on_render(self.view)

    # ---------- Errors ----------

    def report_error(self, message: str) -> Notice:
        """Show a dismissible notice that expires after error_ttl."""
        notice = self.view.show_error(message)
        if self.error_ttl and self.error_ttl > 0:
            handle = asyncio.get_running_loop().call_later(self.error_ttl, self._expire, notice)
            self._expiry_handles.append(handle)
        if self.on_render is not None:
            self.on_render(self.view)
        return notice

    def _expire(self, notice: Notice) -> None:
        now = asyncio.get_running_loop().time()
        self._expiry_handles = [h for h in self._expiry_handles if h.when() > now]
        self.view.dismiss(notice)
        if self.on_render is not None:
            self.on_render(self.view)
