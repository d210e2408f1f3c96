import logging
from typing import Callable, List

log = logging.getLogger(__name__)


class ObserverEvent:
    """
    Synchronous signal used for node events and configuration changes.

    A failing subscriber is logged and skipped; the remaining subscribers
    still run.
    """

    def __init__(self, name: str):
        self.name = name
        self._subscribers: List[Callable] = []

    def connect(self, callback: Callable) -> Callable[[], None]:
        """Subscribe ``callback``; returns a function that unsubscribes it."""
        if callback not in self._subscribers:
            self._subscribers.append(callback)
        return lambda: self.disconnect(callback)

    def disconnect(self, callback: Callable) -> bool:
        if callback in self._subscribers:
            self._subscribers.remove(callback)
            return True
        return False

    def clear(self) -> None:
        self._subscribers.clear()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def emit(self, *args, **kwargs) -> int:
        """Notify subscribers in connection order; returns how many succeeded."""
        delivered = 0
        # Subscribers may disconnect themselves while being notified
        for sub in list(self._subscribers):
            try:
                sub(*args, **kwargs)
            except Exception as e:
                log.error(f"Event '{self.name}' error in subscriber '{sub}': {e}")
                continue
            delivered += 1
        return delivered
