"""
Tests for sync — realtime listener, decoration pass, resync, teardown.
"""

import threading
import pytest
from unittest.mock import Mock
from firebase_admin import firestore
import sys, os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from movements.events import PhotoSavedBus
from movements.notifier import Variant
from movements.photo_overrides import MemoryPhotoOverrides
from movements.sync import MovementSync, CONNECTION_ERROR_TITLE


@pytest.fixture
def bus():
    return PhotoSavedBus()


@pytest.fixture
def sync(mock_db, overrides, bus, notifier):
    return MovementSync(mock_db, overrides, bus=bus, notifier=notifier)


class TestSubscription:

    def test_start_opens_ordered_listener(self, sync, mock_db):
        assert sync.start() is True
        mock_db.collection.assert_called_with("movements")
        order_by = mock_db.collection.return_value.order_by
        args, kwargs = order_by.call_args
        assert args == ("date",)
        assert kwargs["direction"] == firestore.Query.DESCENDING
        assert order_by.return_value.on_snapshot.call_count == 1
        assert sync.is_running

    def test_restart_never_leaves_two_listeners(self, sync, mock_db, bus):
        sync.start()
        sync.start()
        assert mock_db.watch.unsubscribe.call_count == 1
        assert bus.listener_count == 1

    def test_stop_tears_down_listener_and_bus(self, sync, mock_db, bus):
        sync.start()
        sync.stop()
        mock_db.watch.unsubscribe.assert_called_once()
        assert bus.listener_count == 0
        assert not sync.is_running

    def test_stop_is_idempotent(self, sync, mock_db):
        sync.start()
        sync.stop()
        sync.stop()
        assert mock_db.watch.unsubscribe.call_count == 1

    def test_open_failure_notifies(self, sync, mock_db, notifier):
        mock_db.collection.return_value.order_by.return_value.on_snapshot.side_effect = RuntimeError("offline")
        assert sync.start() is False
        notes = notifier.pending()
        assert notes[-1].title == CONNECTION_ERROR_TITLE
        assert notes[-1].variant == Variant.DESTRUCTIVE
        assert not sync.is_running


class TestSnapshots:

    def test_snapshot_publishes_in_query_order(self, sync, week_docs):
        sync._on_snapshot(week_docs, [], None)
        assert [m.id for m in sync.movements()] == ["m3", "m2", "m1"]

    def test_override_takes_precedence(self, sync, overrides, week_docs):
        overrides.set("m2", "local://m2")
        overrides.set("m1", "local://m1")
        sync._on_snapshot(week_docs, [], None)
        by_id = {m.id: m for m in sync.movements()}
        assert by_id["m2"].photo_url == "local://m2"
        assert by_id["m1"].photo_url == "local://m1"
        assert by_id["m3"].photo_url is None

    def test_store_value_without_override(self, sync, week_docs):
        sync._on_snapshot(week_docs, [], None)
        assert sync.get("m2").photo_url == "https://firebasestorage.googleapis.com/v0/b/bucket/o/m2.jpg"

    def test_undated_documents_dropped(self, sync, mock_firestore_doc, week_docs):
        docs = week_docs + [mock_firestore_doc("bad", {"origin": "x"})]
        sync._on_snapshot(docs, [], None)
        assert sync.get("bad") is None
        assert len(sync.movements()) == 3

    def test_snapshot_error_keeps_prior_state(self, sync, week_docs, notifier):
        sync._on_snapshot(week_docs, [], None)
        broken = Mock()
        broken.id = "boom"
        broken.to_dict.side_effect = RuntimeError("decode")
        sync._on_snapshot([broken], [], None)
        assert [m.id for m in sync.movements()] == ["m3", "m2", "m1"]
        assert notifier.pending()[-1].title == CONNECTION_ERROR_TITLE

    def test_listeners_receive_each_publish(self, sync, week_docs):
        seen = []
        sync.add_listener(lambda movements: seen.append(len(movements)))
        sync._on_snapshot(week_docs, [], None)
        sync._on_snapshot(week_docs[:1], [], None)
        assert seen == [3, 1]

    def test_removed_listener_not_called(self, sync, week_docs):
        seen = []
        remove = sync.add_listener(seen.append)
        remove()
        sync._on_snapshot(week_docs, [], None)
        assert seen == []

    def test_overrides_read_once_per_pass(self, mock_db, bus, notifier, week_docs):
        store = Mock()
        store.all.return_value = {"m1": "local://m1"}
        sync = MovementSync(mock_db, store, bus=bus, notifier=notifier)
        sync._on_snapshot(week_docs, [], None)
        assert store.all.call_count == 1
        store.get.assert_not_called()
        assert sync.get("m1").photo_url == "local://m1"
        sync.resync()
        assert store.all.call_count == 2

    def test_newer_snapshot_not_overwritten_by_slower_pass(self, mock_db, bus, notifier, week_docs):
        """A snapshot arriving mid-decoration waits, then publishes last."""
        state = {}

        class SlowOverrides(MemoryPhotoOverrides):
            def all(self):
                if "thread" not in state:
                    state["thread"] = threading.Thread(
                        target=sync._on_snapshot, args=(week_docs[:1], [], None))
                    state["thread"].start()
                    state["thread"].join(timeout=0.2)
                    state["blocked"] = state["thread"].is_alive()
                return super().all()

        sync = MovementSync(mock_db, SlowOverrides(), bus=bus, notifier=notifier)
        sync._on_snapshot(week_docs, [], None)
        state["thread"].join(timeout=5)

        assert state["blocked"] is True
        assert not state["thread"].is_alive()
        assert [m.id for m in sync.movements()] == ["m3"]
        assert sync.snapshot_count == 2


class TestResync:

    def test_photo_saved_rereads_overrides_without_new_listener(self, sync, mock_db, bus, overrides, week_docs):
        sync.start()
        sync._on_snapshot(week_docs, [], None)
        assert sync.get("m1").photo_url is None

        overrides.set("m1", "local://fresh")
        bus.publish("m1")

        assert sync.get("m1").photo_url == "local://fresh"
        assert mock_db.collection.return_value.order_by.return_value.on_snapshot.call_count == 1
        assert sync.snapshot_count == 1

    def test_no_resync_after_stop(self, sync, bus, overrides, week_docs):
        sync.start()
        sync._on_snapshot(week_docs, [], None)
        sync.stop()
        overrides.set("m1", "local://late")
        bus.publish("m1")
        assert sync.get("m1").photo_url is None

    def test_forget_drops_movement(self, sync, week_docs):
        sync._on_snapshot(week_docs, [], None)
        sync.forget("m2")
        assert [m.id for m in sync.movements()] == ["m3", "m1"]


class TestPhotoSavedBus:

    def test_publish_reaches_subscribers(self):
        bus = PhotoSavedBus()
        seen = []
        bus.subscribe(seen.append)
        bus.publish("m1")
        bus.publish()
        assert seen == ["m1", None]

    def test_failing_listener_does_not_block_others(self):
        bus = PhotoSavedBus()
        seen = []

        def broken(_):
            raise RuntimeError("boom")

        bus.subscribe(broken)
        bus.subscribe(seen.append)
        bus.publish("m1")
        assert seen == ["m1"]

    def test_unsubscribe_twice_is_safe(self):
        bus = PhotoSavedBus()
        unsubscribe = bus.subscribe(lambda _: None)
        unsubscribe()
        unsubscribe()
        assert bus.listener_count == 0
