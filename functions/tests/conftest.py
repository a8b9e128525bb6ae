"""
Pytest Configuration and Shared Fixtures
"""
import pytest
from unittest.mock import Mock
from datetime import datetime, timezone
import sys
import os

# Add functions directory to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from movements.notifier import Notifier
from movements.photo_overrides import MemoryPhotoOverrides


# ============================================================
# MOCK FIRESTORE
# ============================================================

@pytest.fixture
def mock_db():
    """Mock Firestore client whose movements query hands out a mock listener"""
    db = Mock()
    watch = Mock()
    db.collection.return_value.order_by.return_value.on_snapshot.return_value = watch
    db.watch = watch
    return db


@pytest.fixture
def mock_firestore_doc():
    """Create a mock Firestore document"""
    def _create(doc_id, data):
        doc = Mock()
        doc.id = doc_id
        doc.to_dict.return_value = data
        return doc
    return _create


# ============================================================
# MOVEMENTS
# ============================================================

@pytest.fixture
def movement_data():
    """Raw document data for one movement"""
    def _create(day, hour=10, **fields):
        data = {
            "date": datetime(2024, 6, day, hour, 0, tzinfo=timezone.utc),
            "origin": "Port",
            "destination": "Yard",
            "status": "In Transit",
            "container": "CONT1",
            "driver": "Juan",
            "plate": "ABC123",
        }
        data.update(fields)
        return data
    return _create


@pytest.fixture
def week_docs(mock_firestore_doc, movement_data):
    """Three movements, date descending: next Monday, Wednesday, Monday"""
    return [
        mock_firestore_doc("m3", movement_data(10, container="CONT3")),
        mock_firestore_doc("m2", movement_data(5, container="CONT 2", photoUrl="https://firebasestorage.googleapis.com/v0/b/bucket/o/m2.jpg")),
        mock_firestore_doc("m1", movement_data(3)),
    ]


@pytest.fixture
def overrides():
    return MemoryPhotoOverrides()


@pytest.fixture
def notifier():
    return Notifier()

