import dataclasses
import sqlite3
import sys
import tempfile
import unittest
from datetime import timedelta
from pathlib import Path
from unittest.mock import patch

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.analytics import db as analytics_db  # noqa: E402


class AnalyticsDbTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        enabled = dataclasses.replace(
            analytics_db.settings,
            analytics_enabled=True,
            analytics_db_path=str(Path(self._tmp.name) / "nested" / "analytics.db"),
            analytics_retention_days=30,
        )
        self._patch = patch.object(analytics_db, "settings", enabled)
        self._patch.start()
        analytics_db.init_db()

    def tearDown(self):
        self._patch.stop()
        self._tmp.cleanup()

    def _rows(self, table: str) -> list[tuple]:
        with sqlite3.connect(analytics_db._get_db_path()) as conn:
            return conn.execute(f"SELECT * FROM {table}").fetchall()

    def test_events_are_recorded(self):
        analytics_db.log_history_event(user_id="user-1", action="undo", moved=True, entry_id="e1", ats_score=71)
        analytics_db.log_ai_analysis_run(
            run_id="r1", tool_slug="change_oracle", model="m", schema_valid=True, status="success", latency_ms=12
        )
        self.assertEqual(len(self._rows("history_events")), 1)
        self.assertEqual(len(self._rows("ai_analysis_runs")), 1)

    def test_purge_removes_rows_older_than_retention(self):
        analytics_db.log_history_event(user_id="user-1", action="commit", moved=True)
        old = analytics_db._utc_now() - timedelta(days=45)
        with patch.object(analytics_db, "_utc_now", return_value=old):
            analytics_db.log_history_event(user_id="user-1", action="commit", moved=True)

        deleted = analytics_db.purge_old_records()
        self.assertEqual(deleted, {"ai_analysis_runs": 0, "history_events": 1})
        self.assertEqual(len(self._rows("history_events")), 1)

    def test_disabled_analytics_is_a_noop(self):
        disabled = dataclasses.replace(analytics_db.settings, analytics_enabled=False)
        with patch.object(analytics_db, "settings", disabled):
            analytics_db.log_history_event(user_id="user-1", action="redo", moved=False)
            self.assertEqual(analytics_db.purge_old_records(), {"ai_analysis_runs": 0, "history_events": 0})
        self.assertEqual(self._rows("history_events"), [])


if __name__ == "__main__":
    unittest.main()
