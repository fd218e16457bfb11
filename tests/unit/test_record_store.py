import asyncio
import sqlite3

import pytest

from resumeanalyzer.config import Settings
from resumeanalyzer.core.errors import RecordStoreError
from resumeanalyzer.services.record_store import SqliteRecordStore


def test_set_get_and_overwrite(tmp_path) -> None:
    store = SqliteRecordStore(tmp_path / "kv.db")

    async def scenario():
        assert await store.get("resume:1") is None
        await store.set("resume:1", '{"feedback": ""}')
        await store.set("resume:1", '{"feedback": {"score": 80}}')
        return await store.get("resume:1")

    assert asyncio.run(scenario()) == '{"feedback": {"score": 80}}'


def test_list_matches_prefix_literally(tmp_path) -> None:
    store = SqliteRecordStore(tmp_path / "kv.db")

    async def scenario():
        await store.set("resume:a", "A")
        await store.set("resume:b", "B")
        await store.set("resumeXa", "not a record")
        await store.set("other:c", "C")
        return await store.list("resume:")

    assert sorted(asyncio.run(scenario())) == ["A", "B"]


def test_from_settings_uses_database_url(tmp_path) -> None:
    settings = Settings(DATABASE_URL=f"sqlite:///{tmp_path}/nested/app.db")
    SqliteRecordStore.from_settings(settings)
    assert (tmp_path / "nested" / "app.db").exists()


def test_write_failure_raises_record_store_error(tmp_path) -> None:
    db = tmp_path / "kv.db"
    store = SqliteRecordStore(db)
    with sqlite3.connect(db) as con:
        con.execute("DROP TABLE kv")

    with pytest.raises(RecordStoreError) as exc:
        asyncio.run(store.set("resume:1", "{}"))
    assert exc.value.key == "resume:1"
