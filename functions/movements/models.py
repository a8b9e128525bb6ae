"""
Movement record — one container transfer event.

Firestore documents in the ``movements`` collection look like::

    {
        "date": Timestamp,          # required, sort/filter key
        "origin": "Port",
        "destination": "Yard",
        "status": "In Transit",
        "container": "CONT1",
        "driver": "Juan",
        "plate": "ABC123",
        "photoUrl": "https://..."   # optional
    }
"""

import logging
from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

logger = logging.getLogger("movements.models")

TEXT_FIELDS = ("origin", "destination", "status", "container", "driver", "plate")


class MovementNotFound(KeyError):
    """No movement with this id in the synced collection."""


@dataclass
class Movement:
    id: str
    date: datetime
    origin: str = ""
    destination: str = ""
    status: str = ""
    container: str = ""
    driver: str = ""
    plate: str = ""
    photo_url: Optional[str] = None
    extra: dict = field(default_factory=dict)   # any other document fields

    @classmethod
    def from_dict(cls, doc_id, data):
        """Build a Movement from raw document data. Returns None without a usable date."""
        data = dict(data or {})
        when = _coerce_datetime(data.pop("date", None))
        if when is None:
            logger.warning(f"Movement {doc_id} has no usable date, skipped")
            return None
        values = {name: _text(data.pop(name, "")) for name in TEXT_FIELDS}
        photo_url = data.pop("photoUrl", None) or None
        return cls(id=doc_id, date=when, photo_url=photo_url, extra=data, **values)

    @classmethod
    def from_snapshot(cls, doc):
        return cls.from_dict(doc.id, doc.to_dict())

    def with_photo_url(self, url):
        return replace(self, photo_url=url)

    def editable_fields(self):
        """Fields handed to the edit flow: everything except id, date and photoUrl."""
        payload = dict(self.extra)
        for name in TEXT_FIELDS:
            payload[name] = getattr(self, name)
        return payload

    def to_dict(self):
        d = self.editable_fields()
        d["id"] = self.id
        d["date"] = self.date.isoformat()
        d["photoUrl"] = self.photo_url
        return d


def _text(value):
    if value is None:
        return ""
    return str(value)


def _coerce_datetime(value):
    # Firestore Timestamps arrive as DatetimeWithNanoseconds (a datetime subclass)
    if isinstance(value, datetime):
        return value
    if isinstance(value, str) and value:
        try:
            return datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return None
    return None
