import logging
import threading
from typing import Callable, Generic, List, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar('T')


class Observable(Generic[T]):
    """Holds the latest value of some published state and notifies subscribers.

    Subscribers are called on the publishing thread, after the value is stored.
    A subscriber that raises is logged and skipped; the others still run.
    """

    def __init__(self, initial: T):
        self._value = initial
        self._lock = threading.Lock()
        self._subscribers: List[Callable[[T], None]] = []

    def get(self) -> T:
        with self._lock:
            return self._value

    def set(self, value: T) -> None:
        with self._lock:
            self._value = value
            subscribers = list(self._subscribers)
        for cb in subscribers:
            try:
                cb(value)
            except Exception:
                logger.exception('Observable subscriber %r failed', cb)

    def subscribe(self, callback: Callable[[T], None]) -> Callable[[], None]:
        """Register ``callback`` and return a function that removes it."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe():
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)
        return unsubscribe
