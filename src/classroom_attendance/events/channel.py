from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Generic, TypeVar

from .model import EventKind, TapEvent, WeightEvent

logger = logging.getLogger(__name__)

E = TypeVar("E")


class Subscription(Generic[E]):
    """Handle for one session-scoped stream of events.

    Owned by whoever runs the session; once closed it never yields again,
    even for events that were queued before closing.
    """

    def __init__(self, channel: "EventChannel", session_id: str, kind: EventKind):
        self._channel = channel
        self.session_id = session_id
        self.kind = kind
        self._lock = threading.Lock()
        self._queue: deque = deque()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def _offer(self, event: E) -> bool:
        with self._lock:
            if self._closed:
                return False
            self._queue.append(event)
            return True

    def drain(self) -> list[E]:
        with self._lock:
            if self._closed:
                return []
            items = list(self._queue)
            self._queue.clear()
            return items

    def pending(self) -> int:
        with self._lock:
            return len(self._queue)

    def close(self) -> None:
        with self._lock:
            if self._closed:
                return
            self._closed = True
            dropped = len(self._queue)
            self._queue.clear()
        self._channel._forget(self)
        if dropped:
            logger.info("dropped %d queued %s events for retired session %s", dropped, self.kind.value, self.session_id)


class EventChannel:
    """In-process fan-out of device events to session-scoped subscriptions.

    Delivery is at-least-once; consumers ignore duplicates themselves.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._subs: list[Subscription] = []

    def subscribe_taps(self, session_id: str) -> Subscription[TapEvent]:
        return self._subscribe(session_id, EventKind.TAP)

    def subscribe_weights(self, session_id: str) -> Subscription[WeightEvent]:
        return self._subscribe(session_id, EventKind.WEIGHT)

    def _subscribe(self, session_id: str, kind: EventKind) -> Subscription:
        sub: Subscription = Subscription(self, session_id, kind)
        with self._lock:
            self._subs.append(sub)
        logger.debug("subscribed to %s events for %s", kind.value, session_id)
        return sub

    def publish_tap(self, session_id: str, event: TapEvent) -> int:
        return self._publish(session_id, EventKind.TAP, event)

    def publish_weight(self, session_id: str, event: WeightEvent) -> int:
        return self._publish(session_id, EventKind.WEIGHT, event)

    def _publish(self, session_id: str, kind: EventKind, event) -> int:
        with self._lock:
            targets = [s for s in self._subs if s.session_id == session_id and s.kind == kind]
        delivered = sum(1 for s in targets if s._offer(event))
        if not delivered:
            logger.debug("no subscriber for %s event in %s", kind.value, session_id)
        return delivered

    def retire(self, session_id: str) -> int:
        """Close every subscription of a session. Returns how many were closed."""

        with self._lock:
            targets = [s for s in self._subs if s.session_id == session_id]
        for sub in targets:
            sub.close()
        return len(targets)

    def close_all(self) -> None:
        with self._lock:
            targets = list(self._subs)
        for sub in targets:
            sub.close()

    def active_subscriptions(self, session_id: str | None = None) -> int:
        with self._lock:
            return sum(1 for s in self._subs if session_id is None or s.session_id == session_id)

    def _forget(self, sub: Subscription) -> None:
        with self._lock:
            if sub in self._subs:
                self._subs.remove(sub)
