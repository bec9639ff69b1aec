from __future__ import annotations

import logging
from dataclasses import dataclass
from threading import RLock
from typing import Callable, List

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreChange:
    """
    A committed store mutation.

    - action: 'created', 'updated', 'deleted' or 'applied'
    - kind: 'entry' or 'template'
    - record_id: id of the affected record (the template id for 'applied')
    """

    action: str
    kind: str
    record_id: str


Listener = Callable[[StoreChange], None]


class ChangeNotifier:
    """
    Observer registry shared by the store backends.

    Listeners are called synchronously, in subscription order, and only after
    the mutation they describe has been committed.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def notify(self, change: StoreChange) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(change)
            except Exception:
                # Already committed; remaining listeners still run
                logger.exception("Store listener failed for %s", change)
