from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Optional

from ..common.datetime_utils import Clock, now_local
from ..core.constants import DEFAULT_TICK_SECONDS
from ..core.exceptions import InvalidBinding
from ..events.channel import EventChannel, Subscription
from ..events.feed import FeedPoller
from ..events.model import TapEvent, WeightEvent
from .machine import AttendanceStateMachine

logger = logging.getLogger(__name__)


class ReconciliationLoop:
    """Feeds one session's events and clock ticks into its state machine.

    The loop owns the session's subscription handles. ``stop`` closes them
    without waiting for queued events, so nothing from a retired session
    reaches a newer one.
    """

    def __init__(
        self,
        machine: AttendanceStateMachine,
        channel: EventChannel,
        *,
        clock: Optional[Clock] = None,
        tick_seconds: float = DEFAULT_TICK_SECONDS,
        poller: Optional[FeedPoller] = None,
    ):
        self._machine = machine
        self._channel = channel
        self._clock = clock or now_local
        self._tick_seconds = float(tick_seconds)
        self._poller = poller

        session_id = machine.session.session_id
        self._taps: Subscription[TapEvent] = channel.subscribe_taps(session_id)
        self._weights: Subscription[WeightEvent] = channel.subscribe_weights(session_id)

        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None
        self._pump_lock = threading.RLock()

    @property
    def machine(self) -> AttendanceStateMachine:
        return self._machine

    @property
    def session_id(self) -> str:
        return self._machine.session.session_id

    @property
    def stopped(self) -> bool:
        return self._stop.is_set()

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self._thread is not None or self.stopped:
            return
        self._thread = threading.Thread(
            target=self._run, name=f"reconcile-{self.session_id}", daemon=True
        )
        self._thread.start()
        logger.info("reconciliation loop started for %s", self.session_id)

    def _run(self) -> None:
        while not self._stop.wait(self._tick_seconds):
            try:
                self.pump()
            except Exception:
                # Keep the session alive; the next tick retries.
                logger.exception("reconciliation pump failed for %s", self.session_id)

    @contextmanager
    def paused(self):
        """Hold off background pumps; the holder may still call ``pump``."""

        with self._pump_lock:
            yield self

    def pump(self, now: Optional[datetime] = None) -> int:
        """Apply everything delivered so far, then the clock tick.

        Returns the number of events applied.
        """

        with self._pump_lock:
            if self.stopped:
                return 0

            if self._poller is not None:
                self._poller.poll()

            applied = 0
            for tap in self._taps.drain():
                if self._machine.apply_tap(tap):
                    applied += 1

            for reading in self._weights.drain():
                try:
                    if self._machine.apply_weight(reading):
                        applied += 1
                except InvalidBinding as e:
                    logger.warning("ignored weight reading: %s", e)

            self._machine.tick(now or self._clock())
            return applied

    def stop(self, *, timeout: float = 2.0) -> None:
        if self._stop.is_set():
            return
        self._stop.set()
        self._taps.close()
        self._weights.close()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout)
        logger.info("reconciliation loop stopped for %s", self.session_id)
