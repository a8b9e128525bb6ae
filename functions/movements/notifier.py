"""
Non-blocking user notifications (toasts).

Notifications are logged and queued; the HTTP layer drains the queue so the
web client can show them.
"""

import logging
import threading
from collections import deque
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone

logger = logging.getLogger("movements.notifier")

MAX_PENDING = 50


class Variant:
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    title: str
    description: str = ""
    variant: str = Variant.DEFAULT
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_dict(self):
        d = asdict(self)
        d["created_at"] = self.created_at.isoformat()
        return d


class Notifier:

    def __init__(self, max_pending=MAX_PENDING):
        self._lock = threading.Lock()
        self._pending = deque(maxlen=max_pending)

    def notify(self, title, description="", variant=Variant.DEFAULT):
        note = Notification(title=title, description=description, variant=variant)
        if variant == Variant.DESTRUCTIVE:
            logger.warning(f"{title}: {description}")
        else:
            logger.info(f"{title} {description}".strip())
        with self._lock:
            self._pending.append(note)
        return note

    def error(self, title, description=""):
        return self.notify(title, description, Variant.DESTRUCTIVE)

    def pending(self):
        with self._lock:
            return list(self._pending)

    def drain(self):
        with self._lock:
            items = list(self._pending)
            self._pending.clear()
        return items
