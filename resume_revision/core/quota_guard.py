from __future__ import annotations

import contextlib
import logging
import os
import sqlite3
import threading
import time
from dataclasses import dataclass
from typing import Callable, Iterator, Protocol

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


def system_clock_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class QuotaPolicy:
    name: str
    max_requests: int
    window_ms: int


DEFAULT_POLICIES: dict[str, QuotaPolicy] = {
    "default": QuotaPolicy(name="default", max_requests=60, window_ms=60_000),
    "ai": QuotaPolicy(name="ai", max_requests=20, window_ms=60_000),
    "scoring": QuotaPolicy(name="scoring", max_requests=30, window_ms=60_000),
    "history": QuotaPolicy(name="history", max_requests=120, window_ms=60_000),
}


@dataclass(frozen=True)
class RateLimitRecord:
    identifier: str
    count: int
    reset_time: int


@dataclass(frozen=True)
class QuotaDecision:
    allowed: bool
    remaining: int
    reset_time: int
    limit: int


class QuotaExceededError(RuntimeError):
    code = "retry_later"
    status_code = 429

    def __init__(self, reset_time: int, limit: int, now: int | None = None) -> None:
        super().__init__("Rate limit exceeded")
        self.reset_time = reset_time
        self.limit = limit
        current = system_clock_ms() if now is None else now
        self.retry_after_s = max(1, -(-(reset_time - current) // 1000))


class RateLimitStore(Protocol):
    def get(self, key: str) -> RateLimitRecord | None: ...

    def set(self, key: str, record: RateLimitRecord) -> None: ...

    def delete(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...

    def transaction(self) -> contextlib.AbstractContextManager[None]: ...


class InMemoryRateLimitStore:
    def __init__(self) -> None:
        self._records: dict[str, RateLimitRecord] = {}
        self._lock = threading.RLock()

    def get(self, key: str) -> RateLimitRecord | None:
        with self._lock:
            return self._records.get(key)

    def set(self, key: str, record: RateLimitRecord) -> None:
        with self._lock:
            self._records[key] = record

    def delete(self, key: str) -> None:
        with self._lock:
            self._records.pop(key, None)

    def keys(self) -> list[str]:
        with self._lock:
            return list(self._records.keys())

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            yield


class SQLiteRateLimitStore:
    def __init__(self, db_path: str) -> None:
        directory = os.path.dirname(db_path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        self._lock = threading.RLock()
        self._in_transaction = False
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
            CREATE TABLE IF NOT EXISTS quota_records (
                record_key TEXT PRIMARY KEY,
                identifier TEXT NOT NULL,
                count INTEGER NOT NULL,
                reset_time INTEGER NOT NULL
            );
            """
        )
        self._conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_quota_records_reset
            ON quota_records (reset_time);
            """
        )

    def get(self, key: str) -> RateLimitRecord | None:
        with self._lock:
            row = self._conn.execute(
                "SELECT identifier, count, reset_time FROM quota_records WHERE record_key = ?",
                (key,),
            ).fetchone()
        if row is None:
            return None
        return RateLimitRecord(identifier=str(row[0]), count=int(row[1]), reset_time=int(row[2]))

    def set(self, key: str, record: RateLimitRecord) -> None:
        with self._lock:
            self._conn.execute(
                """
                INSERT INTO quota_records (record_key, identifier, count, reset_time)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(record_key) DO UPDATE SET
                    identifier = excluded.identifier,
                    count = excluded.count,
                    reset_time = excluded.reset_time
                """,
                (key, record.identifier, record.count, record.reset_time),
            )

    def delete(self, key: str) -> None:
        with self._lock:
            self._conn.execute("DELETE FROM quota_records WHERE record_key = ?", (key,))

    def keys(self) -> list[str]:
        with self._lock:
            rows = self._conn.execute("SELECT record_key FROM quota_records").fetchall()
        return [str(row[0]) for row in rows]

    @contextlib.contextmanager
    def transaction(self) -> Iterator[None]:
        with self._lock:
            if self._in_transaction:
                yield
                return
            self._conn.execute("BEGIN IMMEDIATE")
            self._in_transaction = True
            try:
                yield
            except Exception:
                self._conn.execute("ROLLBACK")
                raise
            else:
                self._conn.execute("COMMIT")
            finally:
                self._in_transaction = False

    def close(self) -> None:
        with self._lock:
            self._conn.close()


class QuotaGuard:
    """Fixed-window request quota per ``identifier:endpoint`` key.

    Check and increment happen inside one store transaction, so N concurrent callers
    against a fresh window see exactly ``max_requests`` allowed decisions.
    """

    def __init__(
        self,
        store: RateLimitStore,
        clock: Clock = system_clock_ms,
        policies: dict[str, QuotaPolicy] | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.policies = dict(policies or DEFAULT_POLICIES)

    def policy(self, name: str) -> QuotaPolicy:
        return self.policies.get(name) or self.policies["default"]

    @staticmethod
    def record_key(identifier: str, endpoint: str) -> str:
        return f"{identifier}:{endpoint}"

    def check(self, identifier: str, policy: QuotaPolicy, endpoint: str | None = None) -> QuotaDecision:
        key = self.record_key(identifier, endpoint or policy.name)
        with self.store.transaction():
            now = self.clock()
            record = self.store.get(key)
            if record is None or now >= record.reset_time:
                record = RateLimitRecord(identifier=identifier, count=0, reset_time=now + policy.window_ms)

            if record.count >= policy.max_requests:
                self.store.set(key, record)
                return QuotaDecision(
                    allowed=False,
                    remaining=0,
                    reset_time=record.reset_time,
                    limit=policy.max_requests,
                )

            updated = RateLimitRecord(identifier=identifier, count=record.count + 1, reset_time=record.reset_time)
            self.store.set(key, updated)
            return QuotaDecision(
                allowed=True,
                remaining=max(0, policy.max_requests - updated.count),
                reset_time=updated.reset_time,
                limit=policy.max_requests,
            )

    def enforce(self, identifier: str, policy: QuotaPolicy, endpoint: str | None = None) -> QuotaDecision:
        decision = self.check(identifier, policy, endpoint=endpoint)
        if not decision.allowed:
            logger.info(
                "quota_exceeded identifier=%s endpoint=%s reset_time=%s",
                identifier,
                endpoint or policy.name,
                decision.reset_time,
            )
            raise QuotaExceededError(decision.reset_time, decision.limit, now=self.clock())
        return decision

    def sweep(self, now: int | None = None) -> int:
        removed = 0
        with self.store.transaction():
            current = self.clock() if now is None else now
            for key in self.store.keys():
                record = self.store.get(key)
                if record is not None and current >= record.reset_time:
                    self.store.delete(key)
                    removed += 1
        if removed:
            logger.debug("quota_sweep_removed count=%s", removed)
        return removed
