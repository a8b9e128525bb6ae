"""
Photo-saved notifications.

The photo upload flow calls ``publish`` once a photo is stored; subscribers
(the movement sync) then re-read local overrides.
"""

import logging
import threading

logger = logging.getLogger("movements.events")


class PhotoSavedBus:

    def __init__(self):
        self._lock = threading.Lock()
        self._listeners = []

    def subscribe(self, listener):
        """Register ``listener(movement_id)``. Returns a callable that unsubscribes it."""
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self):
        with self._lock:
            return len(self._listeners)

    def publish(self, movement_id=None):
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(movement_id)
            except Exception as e:
                logger.error(f"photo-saved listener failed for {movement_id}: {e}")
