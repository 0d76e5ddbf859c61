from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from resume_revision.core.config import settings

_TABLES: dict[str, str] = {
    "ai_analysis_runs": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        run_id TEXT NOT NULL,
        tool_slug TEXT NOT NULL,
        model TEXT NOT NULL,
        schema_valid INTEGER NOT NULL,
        status TEXT NOT NULL,
        error_code TEXT,
        latency_ms INTEGER
    """,
    "history_events": """
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        created_at TEXT NOT NULL,
        user_id TEXT NOT NULL,
        action TEXT NOT NULL,
        moved INTEGER NOT NULL,
        entry_id TEXT,
        ats_score INTEGER
    """,
}


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _get_db_path() -> Path:
    return Path(settings.analytics_db_path)


@contextmanager
def _connection() -> Iterator[sqlite3.Connection]:
    with closing(sqlite3.connect(_get_db_path())) as conn:
        with conn:
            yield conn


def _insert(table: str, row: dict[str, Any]) -> None:
    if not settings.analytics_enabled:
        return
    record = {"created_at": _utc_now().isoformat(), **row}
    columns = ", ".join(record)
    placeholders = ", ".join("?" for _ in record)
    with _connection() as conn:
        conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", tuple(record.values()))


def init_db() -> None:
    """Create the analytics tables (when enabled) and drop rows past retention."""
    if not settings.analytics_enabled:
        return
    _get_db_path().parent.mkdir(parents=True, exist_ok=True)
    with _connection() as conn:
        for table, columns in _TABLES.items():
            conn.execute(f"CREATE TABLE IF NOT EXISTS {table} ({columns})")
            conn.execute(f"CREATE INDEX IF NOT EXISTS idx_{table}_created_at ON {table} (created_at)")
    purge_old_records()


def log_ai_analysis_run(
    *,
    run_id: str,
    tool_slug: str,
    model: str,
    schema_valid: bool,
    status: str,
    error_code: str | None = None,
    latency_ms: int | None = None,
) -> None:
    _insert(
        "ai_analysis_runs",
        {
            "run_id": run_id,
            "tool_slug": tool_slug,
            "model": model,
            "schema_valid": int(schema_valid),
            "status": status,
            "error_code": error_code,
            "latency_ms": latency_ms,
        },
    )


def log_history_event(
    *,
    user_id: str,
    action: str,
    moved: bool,
    entry_id: str | None = None,
    ats_score: int | None = None,
) -> None:
    _insert(
        "history_events",
        {"user_id": user_id, "action": action, "moved": int(moved), "entry_id": entry_id, "ats_score": ats_score},
    )


def purge_old_records() -> dict[str, int]:
    deleted = {table: 0 for table in _TABLES}
    if not settings.analytics_enabled:
        return deleted

    retention = max(1, int(settings.analytics_retention_days))
    cutoff = (_utc_now() - timedelta(days=retention)).isoformat()
    with _connection() as conn:
        for table in _TABLES:
            cursor = conn.execute(f"DELETE FROM {table} WHERE created_at < ?", (cutoff,))
            deleted[table] = int(cursor.rowcount or 0)
    return deleted
