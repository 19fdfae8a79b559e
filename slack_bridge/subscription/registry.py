"""In-memory registry of active listeners.

Listeners are kept in registration order. Lookups scan that order and the
first listener whose predicate accepts an event wins, so callers registering
overlapping patterns control precedence through registration order.
"""

from __future__ import annotations

import logging
from typing import Final, Iterator, List, Optional

from .matcher import listener_matches
from .models import MessageEvent, MessageListener

__all__: list[str] = ["ListenerRegistry"]

_LOG: Final[logging.Logger] = logging.getLogger(__name__)


class ListenerRegistry:
    """Ordered collection of :class:`MessageListener` objects.

    Duplicate ``subscription_id`` values are allowed; :meth:`remove` takes out
    the earliest registration only.

    Not safe for concurrent access from several threads; the service runs it
    on a single event loop.
    """

    def __init__(self) -> None:
        self._listeners: List[MessageListener] = []

    def add(self, listener: MessageListener) -> None:
        """Append a listener."""
        self._listeners.append(listener)
        _LOG.debug(f"Registered listener {listener.subscription_id} ({len(self._listeners)} active)")

    def remove(self, subscription_id: str) -> bool:
        """Remove the first listener registered under ``subscription_id``.

        Returns
        -------
        bool
            True when a listener was removed
        """
        for index, listener in enumerate(self._listeners):
            if listener.subscription_id == subscription_id:
                del self._listeners[index]
                return True
        return False

    def find_match(self, event: MessageEvent) -> Optional[MessageListener]:
        """Return the first listener, in registration order, that accepts ``event``."""
        for listener in self._listeners:
            if listener_matches(listener, event):
                return listener
        return None

    def clear(self) -> None:
        self._listeners.clear()

    def __len__(self) -> int:
        return len(self._listeners)

    def __iter__(self) -> Iterator[MessageListener]:
        return iter(list(self._listeners))
