"""
wallboard/scheduler.py
Keeps the engine live. Owns every timer handle; callbacks never schedule
on their own.

  poll      every 4s    — liveness guarantee, always running
  debounce  0.3s quiet  — coalesces bursts of source change notifications
  retry     every 2s    — until the table is found, then one extra pass
  clock     every 1s    — clock / "updated Ns ago" refresh
  idle      every 5s    — auto-scroll check
  badge     every 5s    — badge re-push

Handles come from loop.call_later(), so any object exposing call_later()
and time() can drive it (asyncio loop in production, a fake in tests).
"""

import logging
from typing import Any, Callable, Dict, Optional

from wallboard.config import EngineSettings
from wallboard.engine import Engine

logger = logging.getLogger(__name__)

POLL     = 'poll'
DEBOUNCE = 'debounce'
RETRY    = 'retry'
CLOCK    = 'clock'
IDLE     = 'idle'
BADGE    = 'badge'


class UpdateScheduler:

    def __init__(
        self,
        engine:   Engine,
        loop:     Any,
        settings: Optional[EngineSettings] = None,
    ):
        self.engine   = engine
        self.loop     = loop
        self.settings = settings or engine.settings
        self._handles:     Dict[str, Any]                   = {}
        self._unsubscribe: Optional[Callable[[], None]]     = None
        self._attached:    bool                             = False
        self.running:      bool                             = False

    # ── STATE ────────────────────────────────────────────────
    def pending(self, name: str) -> bool:
        return name in self._handles

    @property
    def retrying(self) -> bool:
        return self.pending(RETRY)

    @property
    def attached(self) -> bool:
        return self._attached

    # ── LIFECYCLE ────────────────────────────────────────────
    def start(self) -> None:
        if self.running:
            return
        self.running = True
        logger.info(
            f"Scheduler started (poll {self.settings.poll_interval}s, "
            f"debounce {self.settings.debounce_interval}s)"
        )
        self.engine.run_pass()

        if not self._attach():
            self._schedule(RETRY, self.settings.retry_interval, self._retry_tick)

        self._schedule(POLL,  self.settings.poll_interval,       self._poll_tick)
        self._schedule(CLOCK, self.settings.clock_interval,      self._clock_tick)
        self._schedule(IDLE,  self.settings.idle_check_interval, self._idle_tick)
        self._schedule(BADGE, self.settings.badge_interval,      self._badge_tick)

    def stop(self) -> None:
        for handle in self._handles.values():
            handle.cancel()
        self._handles.clear()
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._attached = False
        self.engine.shutdown()
        if self.running:
            logger.info("Scheduler stopped")
        self.running = False

    # ── TIMERS ───────────────────────────────────────────────
    def _schedule(self, name: str, delay: float, callback: Callable[[], None]) -> None:
        self._cancel(name)
        self._handles[name] = self.loop.call_later(delay, callback)

    def _cancel(self, name: str) -> None:
        handle = self._handles.pop(name, None)
        if handle is not None:
            handle.cancel()

    def _attach(self) -> bool:
        """Subscribe to source changes once the table exists."""
        if not self.engine.locate():
            return False
        if self._unsubscribe is None:
            self._unsubscribe = self.engine.source.subscribe(self.notify_change)
            if self._unsubscribe is None:
                logger.debug("Source cannot push changes — relying on poll")
        self._attached = True
        return True

    def notify_change(self) -> None:
        """Source mutated; re-run once things go quiet."""
        if not self.running:
            return
        self._schedule(DEBOUNCE, self.settings.debounce_interval, self._debounce_tick)

    def _debounce_tick(self) -> None:
        self._handles.pop(DEBOUNCE, None)
        self.engine.run_pass()

    def _retry_tick(self) -> None:
        self._handles.pop(RETRY, None)
        if self._attach():
            logger.info("Booking table located — retry stopped")
            self.engine.run_pass()
        else:
            self._schedule(RETRY, self.settings.retry_interval, self._retry_tick)

    def _poll_tick(self) -> None:
        self._schedule(POLL, self.settings.poll_interval, self._poll_tick)
        self.engine.run_pass()

    def _clock_tick(self) -> None:
        self._schedule(CLOCK, self.settings.clock_interval, self._clock_tick)
        self.engine.tick_clock()

    def _idle_tick(self) -> None:
        self._schedule(IDLE, self.settings.idle_check_interval, self._idle_tick)
        self.engine.check_auto_scroll()

    def _badge_tick(self) -> None:
        self._schedule(BADGE, self.settings.badge_interval, self._badge_tick)
        self.engine.push_badge()
