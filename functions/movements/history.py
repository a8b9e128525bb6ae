"""
MovementHistory — the movement history screen as one object.

Holds the live sync, the active date range and the derived filtered view,
and exposes the row actions and the CSV export against that view.

Usage::

    history = MovementHistory(db, JsonFilePhotoOverrides(config.PHOTO_CACHE_PATH))
    history.mount()                 # current week, listener open
    rows = history.filtered()
    export = history.export_csv()
    history.unmount()
"""

import logging
from datetime import datetime

from movements import actions, config
from movements.csv_export import build_csv
from movements.events import PhotoSavedBus
from movements.filters import DateRange, current_week, filter_movements
from movements.models import MovementNotFound
from movements.notifier import Notifier
from movements.render import LAYOUT_TABLE, render_history
from movements.sync import MovementSync

logger = logging.getLogger("movements.history")


class MovementHistory:

    def __init__(self, db, overrides, bus=None, notifier=None, tz=None,
                 collection_name=config.COLLECTION_NAME, today=None):
        self.db = db
        self.overrides = overrides
        self.bus = bus or PhotoSavedBus()
        self.notifier = notifier or Notifier()
        self.tz = tz or config.local_timezone()
        self.collection_name = collection_name
        self.today = today or self._local_today
        self.sync = MovementSync(
            db, overrides, bus=self.bus, notifier=self.notifier,
            collection_name=collection_name,
        )
        self.date_range = DateRange()
        self.mounted = False

    def _local_today(self):
        return datetime.now(self.tz).date()

    # ── lifecycle ───────────────────────────────────────

    def mount(self, today=None):
        """Default the range to the current local week and open the listener."""
        if today is None:
            today = self.today()
        self.date_range = current_week(today)
        self.sync.start()
        self.mounted = True
        logger.info(f"History mounted, range {self.date_range.start}..{self.date_range.end}")

    def unmount(self):
        self.sync.stop()
        self.mounted = False

    # ── range ───────────────────────────────────────────

    def set_range(self, start=None, end=None):
        self.date_range = DateRange(start=start, end=end)
        return self.date_range

    def clear_filters(self):
        return self.set_range(None, None)

    # ── views ───────────────────────────────────────────

    def movements(self):
        return self.sync.movements()

    def default_range(self):
        """Current local week by the clock at call time."""
        return current_week(self.today())

    def filtered(self, date_range=None):
        """Synced movements inside ``date_range`` (the component range when omitted)."""
        if date_range is None:
            date_range = self.date_range
        return filter_movements(self.sync.movements(), date_range, self.tz)

    def get(self, movement_id):
        movement = self.sync.get(movement_id)
        if movement is None:
            raise MovementNotFound(movement_id)
        return movement

    def render(self, layout=LAYOUT_TABLE, base="/movements", date_range=None):
        if date_range is None:
            date_range = self.date_range
        return render_history(self.filtered(date_range), date_range, self.tz, layout=layout, base=base)

    def export_csv(self, date_range=None):
        """CSV of the filtered view; None (disabled) when it is empty."""
        return build_csv(self.filtered(date_range), self.tz)

    # ── row actions ─────────────────────────────────────

    def edit_url(self, movement_id):
        return actions.edit_url(self.get(movement_id))

    def delete(self, movement_id, confirmed=False):
        self.get(movement_id)
        deleted = actions.delete_movement(
            self.db, movement_id, self.overrides, self.notifier,
            confirmed=confirmed, collection_name=self.collection_name,
        )
        if deleted:
            self.sync.forget(movement_id)
        return deleted

    def attach_photo_url(self, movement_id):
        self.get(movement_id)
        return actions.attach_photo_url(movement_id)

    def view_photo_url(self, movement_id):
        return actions.view_photo_url(self.get(movement_id))

    def download_photo(self, movement_id):
        movement = self.get(movement_id)
        if not movement.photo_url:
            return None
        return actions.download_photo(movement.photo_url, movement.container, self.notifier)

    def save_photo(self, movement_id, photo_url):
        """Called by the photo upload flow once a photo is stored for ``movement_id``."""
        if not actions.is_allowed_photo_url(photo_url):
            raise ValueError(f"photo URL not allowed: {photo_url}")
        self.overrides.set(movement_id, photo_url)
        self.bus.publish(movement_id)
