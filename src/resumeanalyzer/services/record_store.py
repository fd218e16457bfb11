from __future__ import annotations

import asyncio
import sqlite3
from pathlib import Path
from typing import List, Optional

from resumeanalyzer.config import Settings, sqlite_path_from_database_url
from resumeanalyzer.core.errors import RecordStoreError
from resumeanalyzer.core.events import utc_now_iso


class SqliteRecordStore:
    """
    Description: Local-first key/value persistence for submission records using SQLite.
    Layer: L8
    Input: key + JSON string
    Output: durable records, lookup by key or key prefix
    """

    def __init__(self, db_path: Path) -> None:
        """
        Description: Initialize sqlite DB at db_path.
        Layer: L0
        Input: database file path
        Output: SqliteRecordStore
        """
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_schema()

    @classmethod
    def from_settings(cls, settings: Settings) -> "SqliteRecordStore":
        return cls(Path(sqlite_path_from_database_url(settings.DATABASE_URL)))

    def _init_schema(self) -> None:
        with sqlite3.connect(self._db_path) as con:
            con.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at_utc TEXT NOT NULL
                )
                """
            )
            con.commit()

    def _set(self, key: str, value: str) -> None:
        try:
            with sqlite3.connect(self._db_path) as con:
                con.execute(
                    """
                    INSERT INTO kv(key, value, updated_at_utc)
                    VALUES(?,?,?)
                    ON CONFLICT(key) DO UPDATE SET
                        value=excluded.value,
                        updated_at_utc=excluded.updated_at_utc
                    """,
                    (key, value, utc_now_iso()),
                )
                con.commit()
        except sqlite3.Error as e:
            raise RecordStoreError(key, str(e)) from e

    def _get(self, key: str) -> Optional[str]:
        try:
            with sqlite3.connect(self._db_path) as con:
                row = con.execute("SELECT value FROM kv WHERE key=?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise RecordStoreError(key, str(e)) from e
        return row[0] if row else None

    def _list(self, prefix: str) -> List[str]:
        escaped = prefix.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
        try:
            with sqlite3.connect(self._db_path) as con:
                rows = con.execute(
                    "SELECT value FROM kv WHERE key LIKE ? ESCAPE '\\' ORDER BY updated_at_utc",
                    (escaped + "%",),
                ).fetchall()
        except sqlite3.Error as e:
            raise RecordStoreError(prefix + "*", str(e)) from e
        return [r[0] for r in rows]

    async def set(self, key: str, value: str) -> None:
        await asyncio.to_thread(self._set, key, value)

    async def get(self, key: str) -> Optional[str]:
        return await asyncio.to_thread(self._get, key)

    async def list(self, prefix: str) -> List[str]:
        """Values of every key starting with prefix, oldest update first."""
        return await asyncio.to_thread(self._list, prefix)
