from __future__ import annotations

import logging
import threading
from typing import Callable, Generic, TypeVar

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

Subscriber = Callable[[T], None]
Dispatcher = Callable[[Callable[[], None]], None]


class Observable(Generic[T]):
    """Holds one value and notifies subscribers whenever it is replaced.

    ``dispatcher`` decides where notifications from ``post`` run. A host with
    a UI thread or event loop passes something like
    ``loop.call_soon_threadsafe`` so that callbacks never run on a worker
    thread. Without a dispatcher callbacks run in the posting thread.

    Notifications are handed out in the order values were posted, so the last
    notification a subscriber receives always matches ``value``.
    """

    def __init__(self, value: T, *, dispatcher: Dispatcher | None = None) -> None:
        self._value = value
        self._dispatcher = dispatcher
        self._subscribers: list[Subscriber[T]] = []
        self._lock = threading.RLock()

    @property
    def value(self) -> T:
        with self._lock:
            return self._value

    def subscribe(self, callback: Subscriber[T]) -> None:
        with self._lock:
            self._subscribers.append(callback)
            self._invoke(callback, self._value)

    def post(self, value: T) -> None:
        with self._lock:
            self._value = value
            subscribers = list(self._subscribers)
            if not subscribers:
                return
            if self._dispatcher is None:
                self._notify(subscribers, value)
                return
            self._dispatcher(lambda: self._notify(subscribers, value))

    def _notify(self, subscribers: list[Subscriber[T]], value: T) -> None:
        for callback in subscribers:
            self._invoke(callback, value)

    @staticmethod
    def _invoke(callback: Subscriber[T], value: T) -> None:
        try:
            callback(value)
        except Exception:
            LOGGER.exception("Observable subscriber %r failed", callback)
