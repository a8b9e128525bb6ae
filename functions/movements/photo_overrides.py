"""
Two-tier photo URL read path.

Tier 1 — Firestore: ``photoUrl`` stored on the movement document (authoritative, shared).
Tier 2 — local override: ``photo_<movementId>`` kept on this device/instance only.

Contract: the displayed photo URL is the local override when one exists,
otherwise the stored value. Overrides are never written back to Firestore and
are pruned when their movement is deleted.
"""

import json
import logging
import os
import threading

logger = logging.getLogger("movements.photo_overrides")

KEY_PREFIX = "photo_"


def override_key(movement_id):
    return f"{KEY_PREFIX}{movement_id}"


def resolve_photo_url(movement_id, stored_url, overrides):
    """Local override if present, else the store value."""
    local = overrides.get(movement_id) if overrides is not None else None
    return local or stored_url


class PhotoOverrideStore:
    """Interface for the local override tier. Keys are movement ids."""

    def get(self, movement_id):
        raise NotImplementedError

    def set(self, movement_id, url):
        raise NotImplementedError

    def remove(self, movement_id):
        raise NotImplementedError

    def all(self):
        """Every override as ``{movement_id: url}``, read in one go."""
        raise NotImplementedError


class MemoryPhotoOverrides(PhotoOverrideStore):
    """Process-local overrides; lost when the instance goes away."""

    def __init__(self, initial=None):
        self._lock = threading.Lock()
        self._items = {}
        for movement_id, url in (initial or {}).items():
            self._items[override_key(movement_id)] = url

    def get(self, movement_id):
        with self._lock:
            return self._items.get(override_key(movement_id))

    def set(self, movement_id, url):
        with self._lock:
            self._items[override_key(movement_id)] = url

    def remove(self, movement_id):
        with self._lock:
            self._items.pop(override_key(movement_id), None)

    def all(self):
        with self._lock:
            return {key[len(KEY_PREFIX):]: url for key, url in self._items.items()}


class JsonFilePhotoOverrides(PhotoOverrideStore):
    """
    Overrides persisted in a small JSON file on local disk.

    The file is re-read on every ``get`` and ``all``; a sync pass loads it
    once through ``all`` and sees the latest value written on this instance.
    """

    def __init__(self, path):
        self.path = path
        self._lock = threading.Lock()

    def _load(self):
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Unreadable photo override file {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Photo override file {self.path} is not an object, ignored")
            return {}
        return data

    def _save(self, data):
        directory = os.path.dirname(self.path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        tmp_path = f"{self.path}.tmp"
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, ensure_ascii=False)
        os.replace(tmp_path, self.path)

    def get(self, movement_id):
        with self._lock:
            return self._load().get(override_key(movement_id))

    def set(self, movement_id, url):
        with self._lock:
            data = self._load()
            data[override_key(movement_id)] = url
            self._save(data)

    def remove(self, movement_id):
        with self._lock:
            data = self._load()
            if data.pop(override_key(movement_id), None) is not None:
                self._save(data)

    def all(self):
        with self._lock:
            data = self._load()
        return {
            key[len(KEY_PREFIX):]: url
            for key, url in data.items()
            if key.startswith(KEY_PREFIX)
        }
