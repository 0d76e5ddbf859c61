from __future__ import annotations

import os
import sqlite3
import threading
from dataclasses import dataclass, field
from typing import Protocol

from resume_revision.schemas.history import VersionEntry


@dataclass
class HistoryRecord:
    versions: list[VersionEntry] = field(default_factory=list)
    cursor: int = -1


class HistoryStore(Protocol):
    def load(self, user_id: str) -> HistoryRecord: ...

    def commit(self, user_id: str, keep: int, entry: VersionEntry) -> None:
        """Truncate the user's versions to ``keep``, append ``entry`` and point the cursor at it."""

    def set_cursor(self, user_id: str, cursor: int) -> None: ...


class InMemoryHistoryStore:
    def __init__(self) -> None:
        self._records: dict[str, HistoryRecord] = {}
        self._lock = threading.Lock()

    def load(self, user_id: str) -> HistoryRecord:
        with self._lock:
            record = self._records.get(user_id)
            if record is None:
                return HistoryRecord()
            return HistoryRecord(versions=list(record.versions), cursor=record.cursor)

    def commit(self, user_id: str, keep: int, entry: VersionEntry) -> None:
        with self._lock:
            record = self._records.setdefault(user_id, HistoryRecord())
            versions = record.versions[:keep]
            versions.append(entry)
            self._records[user_id] = HistoryRecord(versions=versions, cursor=len(versions) - 1)

    def set_cursor(self, user_id: str, cursor: int) -> None:
        with self._lock:
            record = self._records.setdefault(user_id, HistoryRecord())
            record.cursor = cursor


class SQLiteHistoryStore:
    """One row per version plus one cursor row per user, WAL mode."""

    def __init__(self, db_path: str) -> None:
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(
            db_path,
            check_same_thread=False,
            timeout=5,
            isolation_level=None,
        )
        self._conn.execute("PRAGMA journal_mode=WAL;")
        self._conn.execute("PRAGMA synchronous=NORMAL;")
        self._conn.execute("PRAGMA busy_timeout=5000;")
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS history_versions (
                user_id TEXT NOT NULL,
                position INTEGER NOT NULL,
                version_id TEXT NOT NULL,
                entry_json TEXT NOT NULL,
                created_at TEXT NOT NULL,
                PRIMARY KEY (user_id, position)
            );
            """
        )
        self._conn.execute(
            """
            CREATE TABLE IF NOT EXISTS history_cursors (
                user_id TEXT PRIMARY KEY,
                cursor INTEGER NOT NULL
            );
            """
        )

    def load(self, user_id: str) -> HistoryRecord:
        with self._lock:
            rows = self._conn.execute(
                "SELECT entry_json FROM history_versions WHERE user_id = ? ORDER BY position ASC",
                (user_id,),
            ).fetchall()
            cursor_row = self._conn.execute(
                "SELECT cursor FROM history_cursors WHERE user_id = ?",
                (user_id,),
            ).fetchone()
        versions = [VersionEntry.model_validate_json(row[0]) for row in rows]
        cursor = int(cursor_row[0]) if cursor_row is not None else len(versions) - 1
        return HistoryRecord(versions=versions, cursor=cursor)

    def commit(self, user_id: str, keep: int, entry: VersionEntry) -> None:
        with self._lock:
            cursor = self._conn.cursor()
            cursor.execute("BEGIN IMMEDIATE")
            try:
                cursor.execute(
                    "DELETE FROM history_versions WHERE user_id = ? AND position >= ?",
                    (user_id, keep),
                )
                cursor.execute(
                    """
                    INSERT INTO history_versions (user_id, position, version_id, entry_json, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (user_id, keep, entry.id, entry.model_dump_json(), entry.created_at.isoformat()),
                )
                cursor.execute(
                    """
                    INSERT INTO history_cursors (user_id, cursor) VALUES (?, ?)
                    ON CONFLICT(user_id) DO UPDATE SET cursor = excluded.cursor
                    """,
                    (user_id, keep),
                )
                cursor.execute("COMMIT")
            except Exception:
                cursor.execute("ROLLBACK")
                raise

    def set_cursor(self, user_id: str, cursor: int) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO history_cursors (user_id, cursor) VALUES (?, ?)
                ON CONFLICT(user_id) DO UPDATE SET cursor = excluded.cursor
                """,
                (user_id, cursor),
            )

    def close(self) -> None:
        with self._lock:
            self._conn.close()
