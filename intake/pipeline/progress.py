import queue
import threading
from collections.abc import Iterator

from intake.pipeline.models import ProgressEvent


class ProgressChannel:
    """Per-task observable sequence of progress events.

    A new subscriber first receives the latest event, then every event
    published after it. Its iterator ends after a terminal event or when
    the channel is closed.
    """

    def __init__(self, initial: ProgressEvent) -> None:
        self._lock = threading.Lock()
        self._latest = initial
        self._subscribers: list[queue.SimpleQueue[ProgressEvent | None]] = []
        self._closed = False

    @property
    def latest(self) -> ProgressEvent:
        with self._lock:
            return self._latest

    @property
    def closed(self) -> bool:
        with self._lock:
            return self._closed

    def publish(self, event: ProgressEvent) -> None:
        """Deliver an event to all current subscribers. No-op once closed."""
        with self._lock:
            if self._closed:
                return
            self._latest = event
            for subscriber in self._subscribers:
                subscriber.put(event)

    def subscribe(self, timeout: float | None = None) -> Iterator[ProgressEvent]:
        """Register a subscriber and return its event iterator.

        Registration happens immediately, so no event published after this
        call is missed even if iteration starts later.

        Args:
            timeout: Max seconds to wait for each next event. None waits forever.

        Raises:
            TimeoutError: from the iterator when no event arrives in time.
        """
        subscriber: queue.SimpleQueue[ProgressEvent | None] = queue.SimpleQueue()
        with self._lock:
            subscriber.put(self._latest)
            if self._closed:
                subscriber.put(None)
            else:
                self._subscribers.append(subscriber)
        return self._iterate(subscriber, timeout)

    def close(self) -> None:
        """Stop all subscribers; later publishes are dropped."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            for subscriber in self._subscribers:
                subscriber.put(None)
            self._subscribers.clear()

    def _iterate(
        self,
        subscriber: "queue.SimpleQueue[ProgressEvent | None]",
        timeout: float | None,
    ) -> Iterator[ProgressEvent]:
        try:
            while True:
                try:
                    item = subscriber.get(timeout=timeout)
                except queue.Empty as exc:
                    raise TimeoutError(
                        f"No progress event within {timeout} seconds"
                    ) from exc
                if item is None:  # channel closed
                    return
                yield item
                if item.terminal:
                    return
        finally:
            self._unsubscribe(subscriber)

    def _unsubscribe(self, subscriber: "queue.SimpleQueue[ProgressEvent | None]") -> None:
        with self._lock:
            if subscriber in self._subscribers:
                self._subscribers.remove(subscriber)
