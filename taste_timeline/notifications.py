"""Feedback change notifications.

The feedback write path publishes the id of a user whose ratings changed;
subscribers (the engine's result cache) react to it. Publishing is
fire-and-forget: a failing subscriber is logged and the rest still run.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

FeedbackListener = Callable[[str], object]


class FeedbackChangeNotifier:
    """In-process publish/subscribe hub for feedback changes."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._listeners: list[FeedbackListener] = []

    def subscribe(self, listener: FeedbackListener) -> Callable[[], None]:
        """Register *listener*; returns a function that unregisters it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def publish(self, user_id: str) -> None:
        """Tell every subscriber that *user_id*'s feedback changed."""
        with self._lock:
            listeners = list(self._listeners)

        for listener in listeners:
            try:
                listener(user_id)
            except Exception:
                logger.exception("Feedback change listener failed for user %s.", user_id)
