from __future__ import annotations

import logging
import time
from datetime import datetime
from typing import Callable, Optional, Protocol, Sequence

from ..core.constants import DEFAULT_FEED_MAX_RETRIES, DEFAULT_FEED_RETRY_BACKOFF_SECONDS
from ..core.exceptions import EventChannelDisconnected
from .channel import EventChannel
from .model import DeviceEvent, TapEvent, WeightEvent

logger = logging.getLogger(__name__)


class DeviceFeed(Protocol):
    """Pull interface over the devices' push log."""

    def fetch(
        self, room: str, after_cursor: int, *, not_before: Optional[datetime] = None
    ) -> tuple[Sequence[DeviceEvent], int]:
        """Return events for ``room`` newer than the cursor, plus the new cursor.

        Events stamped before ``not_before`` are skipped.

        Raises EventChannelDisconnected when the transport is lost.
        """

        raise NotImplementedError

    def reconnect(self) -> None:
        raise NotImplementedError


class FeedPoller:
    """Moves events from a device feed into the channel for one session.

    Transport loss is retried here with backoff. If retries run out the
    poll is skipped and the loop just sees a gap in events.
    """

    def __init__(
        self,
        feed: DeviceFeed,
        channel: EventChannel,
        *,
        session_id: str,
        room: str,
        not_before: Optional[datetime] = None,
        max_retries: int = DEFAULT_FEED_MAX_RETRIES,
        backoff_seconds: float = DEFAULT_FEED_RETRY_BACKOFF_SECONDS,
        sleep: Optional[Callable[[float], None]] = None,
    ):
        self._feed = feed
        self._channel = channel
        self._session_id = session_id
        self._room = room
        self._not_before = not_before
        self._max_retries = max(0, int(max_retries))
        self._backoff = float(backoff_seconds)
        self._sleep = sleep or time.sleep
        self._cursor = 0
        self.consecutive_failures = 0

    @property
    def cursor(self) -> int:
        return self._cursor

    def poll(self) -> int:
        """Fetch once and publish. Returns the number of events published."""

        attempt = 0
        while True:
            try:
                events, cursor = self._feed.fetch(self._room, self._cursor, not_before=self._not_before)
                break
            except EventChannelDisconnected as e:
                attempt += 1
                self.consecutive_failures += 1
                if attempt > self._max_retries:
                    logger.error(
                        "device feed for room %s unavailable after %d retries: %s", self._room, self._max_retries, e
                    )
                    return 0
                logger.warning("device feed disconnected (%s); reconnecting, attempt %d", e, attempt)
                self._sleep(self._backoff * attempt)
                try:
                    self._feed.reconnect()
                except EventChannelDisconnected as reconnect_error:
                    logger.warning("reconnect failed: %s", reconnect_error)

        self.consecutive_failures = 0
        self._cursor = max(self._cursor, int(cursor))

        published = 0
        for event in events:
            if isinstance(event, TapEvent):
                self._channel.publish_tap(self._session_id, event)
            elif isinstance(event, WeightEvent):
                self._channel.publish_weight(self._session_id, event)
            else:
                logger.warning("unknown device event type %r", type(event).__name__)
                continue
            published += 1
        return published
