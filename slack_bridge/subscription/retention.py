"""Retention of matched events until they are replied to or closed.

By default nothing expires: a retained event stays until ``remove`` is called
for its ``ts``, so a caller that never closes events grows this set without
bound. Two opt-in limits exist for deployments that cannot guarantee closes:

- ``max_events`` evicts the oldest insertion once the set is full
- ``ttl_seconds`` drops entries older than the given age on access

An explicit ``remove`` behaves the same whether or not a limit is set.
"""

from __future__ import annotations

import logging
import time
from collections import OrderedDict
from typing import Callable, Final, Optional, Tuple

from .models import MessageEvent

__all__: list[str] = ["EventRetentionSet"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)


class EventRetentionSet:
    """Matched events keyed by their Slack timestamp.

    Parameters
    ----------
    max_events : Optional[int]
        Upper bound on retained events; unbounded when None
    ttl_seconds : Optional[float]
        Maximum age of a retained event; no expiry when None
    clock : Callable[[], float]
        Monotonic time source, replaceable in tests
    """

    def __init__(
        self,
        max_events: Optional[int] = None,
        ttl_seconds: Optional[float] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if max_events is not None and max_events <= 0:
            raise ValueError("max_events must be positive")
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._max_events = max_events
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._events: "OrderedDict[str, Tuple[float, MessageEvent]]" = OrderedDict()

    def insert(self, event: MessageEvent) -> None:
        """Retain ``event`` under its ``ts``.

        Re-inserting a known ``ts`` replaces the stored payload and refreshes its age.
        """
        self._expire()
        key = event.ts
        if key in self._events:
            _LOG.debug(f"Replacing retained event {key}")
            del self._events[key]
        self._events[key] = (self._clock(), event)

        if self._max_events is not None:
            while len(self._events) > self._max_events:
                evicted, _ = self._events.popitem(last=False)
                _LOG.warning(f"Retention limit of {self._max_events} reached, evicted event {evicted}")

    def find(self, event_id: str) -> Optional[MessageEvent]:
        """Look up a retained event by its ``ts``."""
        self._expire()
        entry = self._events.get(event_id)
        return entry[1] if entry is not None else None

    def remove(self, event_id: str) -> bool:
        """Drop a retained event.

        Returns
        -------
        bool
            True when the event was present
        """
        self._expire()
        return self._events.pop(event_id, None) is not None

    def clear(self) -> None:
        self._events.clear()

    def _expire(self) -> None:
        if self._ttl_seconds is None:
            return
        deadline = self._clock() - self._ttl_seconds
        # insertion order is also age order
        while self._events:
            key, (inserted_at, _) = next(iter(self._events.items()))
            if inserted_at > deadline:
                break
            del self._events[key]
            _LOG.info(f"Retained event {key} expired")

    def __contains__(self, event_id: object) -> bool:
        return isinstance(event_id, str) and self.find(event_id) is not None

    def __len__(self) -> int:
        self._expire()
        return len(self._events)
