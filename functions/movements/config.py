"""
Runtime settings for the movement history.
Every value can be overridden through an environment variable.
"""

import os
from datetime import datetime
from zoneinfo import ZoneInfo

# Firestore collection holding one document per container movement
COLLECTION_NAME = os.environ.get("MOVEMENTS_COLLECTION", "movements")

# Device-local photo overrides (photo_<id> -> url)
PHOTO_CACHE_PATH = os.environ.get(
    "MOVEMENTS_PHOTO_CACHE", "/tmp/movements_photo_overrides.json"
)

# Routes owned by the authoring / photo upload flows
EDIT_ROUTE = os.environ.get("MOVEMENTS_EDIT_ROUTE", "/movements/new")
NEW_MOVEMENT_ROUTE = os.environ.get("MOVEMENTS_NEW_ROUTE", "/movements/new")
PHOTO_UPLOAD_ROUTE = os.environ.get("MOVEMENTS_PHOTO_ROUTE", "/movements/photo")

# Below this viewport width the history renders as cards (md breakpoint)
CARD_BREAKPOINT = int(os.environ.get("MOVEMENTS_CARD_BREAKPOINT", "768"))

DOWNLOAD_TIMEOUT = int(os.environ.get("MOVEMENTS_DOWNLOAD_TIMEOUT", "30"))

# IANA name, e.g. "America/Mexico_City". Unset = clock of the host.
TIMEZONE_NAME = os.environ.get("MOVEMENTS_TIMEZONE", "")


def local_timezone():
    """Timezone used for week bounds, day bounds and displayed dates."""
    if TIMEZONE_NAME:
        return ZoneInfo(TIMEZONE_NAME)
    return datetime.now().astimezone().tzinfo


# Hosts photos may be fetched from; a leading "." also admits subdomains
PHOTO_ALLOWED_HOSTS = tuple(
    h.strip().lower()
    for h in os.environ.get(
        "MOVEMENTS_PHOTO_HOSTS",
        "firebasestorage.googleapis.com,storage.googleapis.com,.firebasestorage.app",
    ).split(",")
    if h.strip()
)
