# services/scheduler.py
from __future__ import annotations

import logging
from typing import List, Optional

from kivy.clock import Clock

from services.economy import Economy
from services.state import GameState

logger = logging.getLogger("bakery.scheduler")


class ProductionScheduler:
    """
    Fixed-tick driver for manual builds and the automation sweep.

    Every tick advances the in-flight manual builds in start order, drops
    the finished ones, then runs GameState.automation_sweep(). Tests call
    tick() directly; the app binds it to Kivy's Clock with start().
    """

    def __init__(self, state: GameState, tick_ms: int = Economy.TICK_MS) -> None:
        if tick_ms <= 0:
            raise ValueError("tick_ms must be positive.")
        self.state = state
        self.tick_ms = tick_ms
        self._active: List[int] = []
        self._event = None
        self._interval_ms: float = float(tick_ms)
        state.add_reset_listener(self.cancel_all)

    # --- Queries ---
    @property
    def active_builds(self) -> List[int]:
        return list(self._active)

    def is_building(self, pastry_id: int) -> bool:
        return pastry_id in self._active

    @property
    def running(self) -> bool:
        return self._event is not None

    # --- Manual builds ---
    def start_build(self, pastry_id: int) -> bool:
        """
        Begin a manual build from 0% progress.

        A build already in flight, a pastry that cannot build, or an
        automated pastry makes this a no-op.
        """
        if pastry_id in self._active:
            return False
        pastry = self.state.get_pastry(pastry_id)
        if pastry is None or pastry.automation:
            return False
        if not self.state.begin_build(pastry_id):
            return False
        self._active.append(pastry_id)
        return True

    def cancel_build(self, pastry_id: int) -> None:
        """Stop a manual build and zero its progress; safe to call repeatedly."""
        if pastry_id in self._active:
            self._active.remove(pastry_id)
            self.state.reset_progress(pastry_id)

    def cancel_all(self) -> None:
        self._active.clear()

    # --- Ticking ---
    def tick(self, elapsed_ms: Optional[float] = None) -> List[int]:
        """
        Advance one step and return the pastry ids whose builds completed.

        Args:
            elapsed_ms: Step size; defaults to the fixed tick_ms.
        """
        step = self.tick_ms if elapsed_ms is None else elapsed_ms
        completed: List[int] = []
        for pastry_id in list(self._active):
            pastry = self.state.get_pastry(pastry_id)
            if pastry is None or pastry.automation or not self.state.can_build(pastry_id):
                # Automation owns this pastry's progress from here on.
                self._active.remove(pastry_id)
                continue
            if self.state.advance_build(pastry_id, step):
                self._active.remove(pastry_id)
                completed.append(pastry_id)
        completed.extend(self.state.automation_sweep(step))
        return completed

    def _on_clock(self, dt: float) -> None:
        self.tick(self._interval_ms)

    # --- Clock binding ---
    def start(self, interval_s: Optional[float] = None) -> None:
        """
        Schedule tick() on Kivy's Clock; no-op if already running.

        interval_s defaults to tick_ms. Each Clock callback advances builds
        by exactly one interval.
        """
        if self._event is not None:
            return
        if interval_s is None:
            interval_s = self.tick_ms / 1000.0
        if interval_s <= 0:
            raise ValueError("interval_s must be positive.")
        self._interval_ms = interval_s * 1000.0
        self._event = Clock.schedule_interval(self._on_clock, interval_s)
        logger.debug("Production loop started (%.0f ms)", self._interval_ms)

    def stop(self) -> None:
        """Unschedule the tick; safe to call repeatedly."""
        if self._event is None:
            return
        self._event.cancel()
        self._event = None
        logger.debug("Production loop stopped")
