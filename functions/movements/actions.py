"""
Row-level actions for the movement history: edit, delete, attach/view/download photo.
"""

import json
import logging
import re
from dataclasses import dataclass
from datetime import date, datetime
from urllib.parse import urlencode, urlparse

import requests

from movements import config

logger = logging.getLogger("movements.actions")

DELETE_PROMPT = "¿Estás seguro de que quieres eliminar este movimiento?"
DELETED_TITLE = "Movimiento eliminado"
DELETE_ERROR_TITLE = "Error al eliminar"
DELETE_ERROR_DESCRIPTION = "No se pudo eliminar el movimiento."
DOWNLOAD_ERROR_TITLE = "Error de descarga"
DOWNLOAD_ERROR_DESCRIPTION = "No se pudo descargar la foto."

_WHITESPACE = re.compile(r"\s")
_PHOTO_SCHEMES = ("http", "https")


@dataclass
class PhotoDownload:
    filename: str
    content: bytes
    content_type: str = "image/jpeg"


# ── edit ────────────────────────────────────────────────

def edit_url(movement, route=None):
    """Edit route with ``id`` and the JSON-encoded editable fields as ``data``."""
    payload = json.dumps(
        movement.editable_fields(), ensure_ascii=False, separators=(",", ":"), default=_json_value,
    )
    params = urlencode({"id": movement.id, "data": payload})
    return f"{route or config.EDIT_ROUTE}?{params}"


def _json_value(value):
    # Firestore timestamps and other non-JSON fields in the edit payload
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value)


# ── delete ──────────────────────────────────────────────

def delete_movement(db, movement_id, overrides, notifier, confirmed=False,
                    collection_name=config.COLLECTION_NAME):
    """
    Delete a movement and prune its local photo override.

    Returns False without touching anything unless ``confirmed``.
    A failed Firestore delete is reported and re-raised; the override is kept.
    """
    if not confirmed:
        return False
    try:
        db.collection(collection_name).document(movement_id).delete()
    except Exception as e:
        logger.error(f"Delete failed for {collection_name}/{movement_id}: {e}")
        notifier.error(DELETE_ERROR_TITLE, DELETE_ERROR_DESCRIPTION)
        raise
    overrides.remove(movement_id)
    notifier.notify(DELETED_TITLE)
    logger.info(f"Deleted movement {movement_id}")
    return True


# ── photos ──────────────────────────────────────────────

def attach_photo_url(movement_id, route=None):
    """Photo upload flow scoped to one movement."""
    return f"{route or config.PHOTO_UPLOAD_ROUTE}?{urlencode({'movementId': movement_id})}"


def view_photo_url(movement):
    return movement.photo_url or None


def is_allowed_photo_url(url, allowed_hosts=None):
    """http(s) URL on one of the configured photo hosts."""
    try:
        parsed = urlparse(url or "")
    except ValueError:
        return False
    host = (parsed.hostname or "").lower()
    if parsed.scheme not in _PHOTO_SCHEMES or not host:
        return False
    for allowed in allowed_hosts or config.PHOTO_ALLOWED_HOSTS:
        if allowed.startswith(".") and host.endswith(allowed):
            return True
        if host == allowed:
            return True
    return False


def photo_filename(container):
    safe = _WHITESPACE.sub("_", container or "")
    return f"foto_{safe}.jpg"


def download_photo(photo_url, container, notifier, timeout=None):
    """Fetch the photo as an attachment. Reports and returns None on failure."""
    if not is_allowed_photo_url(photo_url):
        logger.warning(f"Refused to fetch photo from {photo_url}")
        notifier.error(DOWNLOAD_ERROR_TITLE, DOWNLOAD_ERROR_DESCRIPTION)
        return None
    try:
        response = requests.get(
            photo_url, timeout=timeout or config.DOWNLOAD_TIMEOUT, allow_redirects=False,
        )
        response.raise_for_status()
        if response.status_code != 200:
            raise requests.HTTPError(f"unexpected status {response.status_code}")
    except Exception as e:
        logger.error(f"Error downloading photo {photo_url}: {e}")
        notifier.error(DOWNLOAD_ERROR_TITLE, DOWNLOAD_ERROR_DESCRIPTION)
        return None
    content_type = response.headers.get("Content-Type") or "image/jpeg"
    return PhotoDownload(
        filename=photo_filename(container),
        content=response.content,
        content_type=content_type,
    )
