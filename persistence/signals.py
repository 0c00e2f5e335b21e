from __future__ import annotations

import logging
import threading
import uuid
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StorageEvent:
    """
    "Something changed" notification.

    key is the unprefixed document key, or None for bulk changes
    (import, clear). Consumers re-load whatever they care about.
    """

    key: str | None
    origin: str


Listener = Callable[[StorageEvent], None]


@dataclass(frozen=True)
class _Subscription:
    token: str
    listener_id: str | None
    key: str | None
    callback: Listener


class ChangeBus:
    """
    In-process stand-in for the browser `storage` event.

    Subscribers registered with a listener_id never receive events whose
    origin is that same id, so a store is not told about its own writes.
    Delivery is synchronous and in subscription order.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._subscriptions: list[_Subscription] = []

    def subscribe(
        self,
        callback: Listener,
        *,
        key: str | None = None,
        listener_id: str | None = None,
    ) -> Callable[[], None]:
        sub = _Subscription(token=uuid.uuid4().hex, listener_id=listener_id, key=key, callback=callback)
        with self._guard:
            self._subscriptions.append(sub)

        def _unsubscribe() -> None:
            with self._guard:
                self._subscriptions = [s for s in self._subscriptions if s.token != sub.token]

        return _unsubscribe

    def publish(self, event: StorageEvent) -> int:
        """Deliver event; returns how many callbacks were invoked."""
        with self._guard:
            targets = list(self._subscriptions)

        delivered = 0
        for sub in targets:
            if sub.listener_id is not None and sub.listener_id == event.origin:
                continue
            if sub.key is not None and event.key is not None and sub.key != event.key:
                continue
            try:
                sub.callback(event)
            except Exception:
                # One broken listener must not starve the others.
                logger.exception("CHANGE SIGNAL: listener failed for key=%s", event.key)
            delivered += 1
        return delivered

    def __len__(self) -> int:
        with self._guard:
            return len(self._subscriptions)
