"""
Tests for key/value persistence backends.
"""

import json
from pathlib import Path

import pytest

from jobsync import database
from jobsync.database import KeyValue, get_session, init_database
from jobsync.env import Settings
from jobsync.errors import StorageError
from jobsync.storage import JsonFileStore, MemoryStore, SqliteStore, open_store

JOB_LIST = [{"url": "https://example.com/index.json", "data": {"name": "数学", "version": "1"}}]


class TestJsonFileStore:
    def test_missing_file_reads_as_empty(self, tmp_path):
        store = JsonFileStore(tmp_path / "missing.json")
        assert store.get("jobList") is None

    def test_empty_file_reads_as_empty(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("   ")
        assert JsonFileStore(path).get("jobList") is None

    def test_roundtrip_keeps_unicode(self, tmp_path):
        path = tmp_path / "nested" / "store.json"
        store = JsonFileStore(path)

        store.set("jobList", JOB_LIST)

        assert store.get("jobList") == JOB_LIST
        assert "数学" in path.read_text(encoding="utf-8")

    def test_other_keys_preserved(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text(json.dumps({"settings": {"theme": "dark"}}))
        store = JsonFileStore(path)

        store.set("jobList", [])

        assert store.get("settings") == {"theme": "dark"}
        assert store.get("jobList") == []

    def test_corrupt_file_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("{not json")
        store = JsonFileStore(path)

        with pytest.raises(StorageError):
            store.get("jobList")
        with pytest.raises(StorageError):
            store.set("jobList", [])

    def test_non_object_file_raises(self, tmp_path):
        path = tmp_path / "store.json"
        path.write_text("[1, 2]")
        with pytest.raises(StorageError):
            JsonFileStore(path).get("jobList")


class TestSqliteStore:
    def test_creates_database_and_parent_dirs(self, tmp_path):
        db_path = tmp_path / "nested" / "dir" / "jobs.db"
        with SqliteStore(db_path):
            pass
        assert db_path.exists()

    def test_roundtrip(self, tmp_path):
        with SqliteStore(tmp_path / "jobs.db") as store:
            assert store.get("jobList") is None

            store.set("jobList", JOB_LIST)

            assert store.get("jobList") == JOB_LIST

    def test_overwrite(self, tmp_path):
        with SqliteStore(tmp_path / "jobs.db") as store:
            store.set("jobList", JOB_LIST)
            store.set("jobList", [])

            assert store.get("jobList") == []
            session = get_session(store.engine)
            assert session.query(KeyValue).count() == 1
            session.close()

    def test_one_engine_reused_across_calls(self, tmp_path, monkeypatch):
        created = []
        real_create_engine = database.create_engine

        def counting_create_engine(*args, **kwargs):
            engine = real_create_engine(*args, **kwargs)
            created.append(engine)
            return engine

        monkeypatch.setattr(database, "create_engine", counting_create_engine)

        with SqliteStore(tmp_path / "jobs.db") as store:
            for _ in range(5):
                store.set("jobList", JOB_LIST)
                store.get("jobList")

        assert len(created) == 1

    def test_close_disposes_engine(self, tmp_path):
        store = SqliteStore(tmp_path / "jobs.db")
        store.set("jobList", JOB_LIST)
        pool = store.engine.pool

        store.close()

        # dispose() swaps in a fresh pool
        assert store.engine.pool is not pool

    def test_corrupt_value_raises(self, tmp_path):
        db_path = tmp_path / "jobs.db"
        engine = init_database(db_path)
        session = get_session(engine)
        session.add(KeyValue(key="jobList", value="{broken"))
        session.commit()
        session.close()
        engine.dispose()

        with SqliteStore(db_path) as store:
            with pytest.raises(StorageError):
                store.get("jobList")

    def test_unserializable_value_raises(self, tmp_path):
        with SqliteStore(tmp_path / "jobs.db") as store:
            with pytest.raises(StorageError):
                store.set("jobList", {1, 2})


class TestMemoryStore:
    def test_values_are_copies(self):
        store = MemoryStore()
        value = [{"url": "x"}]
        store.set("jobList", value)
        value.append({"url": "y"})

        assert store.get("jobList") == [{"url": "x"}]

    def test_unserializable_value_raises(self):
        with pytest.raises(StorageError):
            MemoryStore().set("jobList", object())


def test_open_store_picks_backend(tmp_path):
    json_store = open_store(Settings(store_path=tmp_path / "jobs.json"))
    assert isinstance(json_store, JsonFileStore)

    sqlite_store = open_store(Settings(store_path=tmp_path / "jobs.json", db_path=tmp_path / "jobs.db"))
    assert isinstance(sqlite_store, SqliteStore)
    sqlite_store.close()
