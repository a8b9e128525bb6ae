"""
Live sync of the ``movements`` collection.

One Firestore realtime listener, ordered by date descending. Every snapshot
replaces the in-memory raw documents; a decoration pass then applies the
local photo overrides and publishes the result to change listeners.

A photo-saved signal only re-runs the decoration pass against the last
snapshot; the listener itself is never re-opened for it.

Snapshot callbacks run on the Firestore watch thread.
"""

import logging
import threading

from firebase_admin import firestore

from movements import config
from movements.models import Movement
from movements.notifier import Notifier
from movements.photo_overrides import resolve_photo_url

logger = logging.getLogger("movements.sync")

CONNECTION_ERROR_TITLE = "Error de Conexión"
CONNECTION_ERROR_DESCRIPTION = "No se pudieron cargar los datos."


class MovementSync:

    def __init__(self, db, overrides, bus=None, notifier=None,
                 collection_name=config.COLLECTION_NAME):
        self.db = db
        self.overrides = overrides
        self.bus = bus
        self.notifier = notifier or Notifier()
        self.collection_name = collection_name

        self._lock = threading.Lock()
        # read, decorate and store of one pass happen under this lock
        self._publish_lock = threading.Lock()
        self._watch = None
        self._bus_unsubscribe = None
        self._raw = []          # list of (doc_id, data) in query order
        self._movements = []
        self._listeners = []
        self.snapshot_count = 0

    # ── subscription lifecycle ──────────────────────────

    @property
    def is_running(self):
        return self._watch is not None

    def query(self):
        return (
            self.db.collection(self.collection_name)
            .order_by("date", direction=firestore.Query.DESCENDING)
        )

    def start(self):
        """Open the listener. Restarting tears down the previous one first."""
        self.stop()
        if self.bus is not None:
            self._bus_unsubscribe = self.bus.subscribe(self._on_photo_saved)
        try:
            self._watch = self.query().on_snapshot(self._on_snapshot)
        except Exception as e:
            self.handle_error(e)
            return False
        logger.info(f"Listening to {self.collection_name} ordered by date desc")
        return True

    def stop(self):
        watch, self._watch = self._watch, None
        if watch is not None:
            try:
                watch.unsubscribe()
            except Exception as e:
                logger.warning(f"Listener teardown error: {e}")
        unsubscribe, self._bus_unsubscribe = self._bus_unsubscribe, None
        if unsubscribe is not None:
            unsubscribe()

    # ── snapshot handling ───────────────────────────────

    def _on_snapshot(self, docs, changes=None, read_time=None):
        try:
            raw = [(doc.id, doc.to_dict() or {}) for doc in docs]
            with self._lock:
                self._raw = raw
                self.snapshot_count += 1
            self._publish()
        except Exception as e:
            self.handle_error(e)

    def handle_error(self, error):
        """Report a subscription failure once; the last published state stays."""
        logger.error(f"Error fetching movements: {error}")
        self.notifier.error(CONNECTION_ERROR_TITLE, CONNECTION_ERROR_DESCRIPTION)

    def _on_photo_saved(self, movement_id=None):
        logger.info(f"Photo saved for {movement_id or 'unknown movement'}, re-reading overrides")
        self.resync()

    def resync(self):
        """Fresh decoration pass over the last snapshot."""
        self._publish()

    def forget(self, movement_id):
        """Drop one movement locally until the next snapshot confirms the delete."""
        with self._lock:
            self._raw = [(doc_id, data) for doc_id, data in self._raw if doc_id != movement_id]
        self._publish()

    def _decorate(self, raw):
        local = self.overrides.all() if self.overrides is not None else {}
        result = []
        for doc_id, data in raw:
            movement = Movement.from_dict(doc_id, data)
            if movement is None:
                continue
            url = resolve_photo_url(doc_id, movement.photo_url, local)
            result.append(movement.with_photo_url(url))
        return result

    def _publish(self):
        with self._publish_lock:
            with self._lock:
                raw = list(self._raw)
            movements = self._decorate(raw)
            with self._lock:
                self._movements = movements
                listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(list(movements))
            except Exception as e:
                logger.error(f"Movement listener failed: {e}")

    # ── readers ─────────────────────────────────────────

    def movements(self):
        with self._lock:
            return list(self._movements)

    def get(self, movement_id):
        for movement in self.movements():
            if movement.id == movement_id:
                return movement
        return None

    def add_listener(self, listener):
        with self._lock:
            self._listeners.append(listener)

        def remove():
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return remove
