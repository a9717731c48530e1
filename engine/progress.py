"""One-way channel carrying placement progress events to whoever listens."""

import logging
from collections import deque
from typing import Callable, Deque, Iterator, List, Optional

from models.placement import PlacementProgress
from config.defaults import PROGRESS_HISTORY_LIMIT

log = logging.getLogger(__name__)

ProgressCallback = Callable[[PlacementProgress], None]


class ProgressChannel:
    """Publish/subscribe channel with a bounded history.

    The algorithm only ever publishes; it never depends on whether anyone is
    subscribed. Closing the channel silently drops later events.
    """

    def __init__(self, history_limit: int = PROGRESS_HISTORY_LIMIT):
        self._subscribers: List[ProgressCallback] = []
        self._history: Deque[PlacementProgress] = deque(maxlen=history_limit)
        self._closed = False

    @classmethod
    def wrap(cls, progress) -> "ProgressChannel":
        """Accept a channel, a plain callback, or None."""
        if isinstance(progress, cls):
            return progress
        channel = cls()
        if progress is not None:
            channel.subscribe(progress)
        return channel

    @property
    def closed(self) -> bool:
        return self._closed

    def subscribe(self, callback: ProgressCallback):
        self._subscribers.append(callback)

    def publish(self, event: PlacementProgress):
        if self._closed:
            return
        self._history.append(event)
        for callback in list(self._subscribers):
            callback(event)

    def close(self):
        if not self._closed:
            log.debug("Progress channel closed after %d events", len(self._history))
        self._closed = True
        self._subscribers.clear()

    @property
    def last(self) -> Optional[PlacementProgress]:
        return self._history[-1] if self._history else None

    def events(self) -> Iterator[PlacementProgress]:
        """Iterate over the retained history, oldest first."""
        return iter(list(self._history))
