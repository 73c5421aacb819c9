"""Tests for store.py — request record lifecycle."""

import threading

import pytest

from tariff_harvester.store import STATUS_ERROR, STATUS_PENDING, RequestStore


class TestRequestStore:
    def test_ids_start_at_one(self):
        store = RequestStore()
        assert store.create("https://m", "https://a").id == 1
        assert store.create("https://m", "https://a").id == 2

    def test_new_record_defaults(self):
        record = RequestStore().create("https://m", "https://a", "https://j")
        assert record.status == STATUS_PENDING
        assert record.cookies is None
        assert record.response is None
        assert record.error is None
        assert record.journey_url == "https://j"

    def test_update(self):
        store = RequestStore()
        record = store.create("https://m", "https://a")
        updated = store.update(record.id, status=STATUS_ERROR, error="boom")
        assert updated.status == STATUS_ERROR
        assert store.get(record.id).error == "boom"
        assert record.status == STATUS_PENDING

    def test_update_unknown_id(self):
        assert RequestStore().update(99, status=STATUS_ERROR) is None

    def test_get_unknown_id(self):
        assert RequestStore().get(99) is None

    def test_unknown_status_rejected(self):
        store = RequestStore()
        record = store.create("https://m", "https://a")
        with pytest.raises(ValueError):
            store.update(record.id, status="done")

    def test_to_dict(self):
        record = RequestStore().create("https://m", "https://a")
        data = record.to_dict()
        assert data["id"] == 1
        assert data["mainUrl"] == "https://m"
        assert data["apiUrl"] == "https://a"
        assert data["status"] == "pending"
        assert data["createdAt"].endswith("+00:00")

    def test_concurrent_creates_get_unique_ids(self):
        store = RequestStore()
        ids = []

        def create_many():
            for _ in range(50):
                ids.append(store.create("https://m", "https://a").id)

        threads = [threading.Thread(target=create_many) for _ in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert sorted(ids) == list(range(1, 201))
        assert len(store) == 200
