import sys
import tempfile
import threading
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.core.quota_guard import (  # noqa: E402
    InMemoryRateLimitStore,
    QuotaExceededError,
    QuotaGuard,
    QuotaPolicy,
    SQLiteRateLimitStore,
)


class FakeClock:
    def __init__(self, now: int = 1_000_000):
        self.now = now

    def __call__(self) -> int:
        return self.now


POLICY = QuotaPolicy(name="test", max_requests=5, window_ms=10_000)


class _QuotaCases:
    def make_store(self):
        raise NotImplementedError

    def test_concurrent_checks_allow_exactly_the_limit(self):
        guard = QuotaGuard(self.make_store(), clock=FakeClock())
        total = 24
        barrier = threading.Barrier(total)
        decisions = []
        lock = threading.Lock()

        def worker() -> None:
            barrier.wait()
            decision = guard.check("client-a", POLICY)
            with lock:
                decisions.append(decision)

        threads = [threading.Thread(target=worker) for _ in range(total)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        allowed = [decision for decision in decisions if decision.allowed]
        denied = [decision for decision in decisions if not decision.allowed]
        self.assertEqual(len(allowed), POLICY.max_requests)
        self.assertEqual(len(denied), total - POLICY.max_requests)
        self.assertTrue(all(decision.remaining == 0 for decision in denied))
        self.assertEqual(sorted(decision.remaining for decision in allowed), [0, 1, 2, 3, 4])

    def test_window_reset_replaces_record(self):
        clock = FakeClock()
        guard = QuotaGuard(self.make_store(), clock=clock)
        for _ in range(POLICY.max_requests):
            self.assertTrue(guard.check("client-a", POLICY).allowed)
        self.assertFalse(guard.check("client-a", POLICY).allowed)

        clock.now += POLICY.window_ms
        decision = guard.check("client-a", POLICY)
        self.assertTrue(decision.allowed)
        self.assertEqual(decision.remaining, POLICY.max_requests - 1)
        self.assertEqual(decision.reset_time, clock.now + POLICY.window_ms)

    def test_identifiers_and_endpoints_are_independent(self):
        guard = QuotaGuard(self.make_store(), clock=FakeClock())
        for _ in range(POLICY.max_requests):
            guard.check("client-a", POLICY, endpoint="/v1/revisions")
        self.assertFalse(guard.check("client-a", POLICY, endpoint="/v1/revisions").allowed)
        self.assertTrue(guard.check("client-a", POLICY, endpoint="/v1/history").allowed)
        self.assertTrue(guard.check("client-b", POLICY, endpoint="/v1/revisions").allowed)

    def test_record_keeps_caller_identifier_under_composite_key(self):
        store = self.make_store()
        guard = QuotaGuard(store, clock=FakeClock())
        guard.check("client-a", POLICY, endpoint="/v1/revisions")
        guard.check("client-a", POLICY, endpoint="/v1/revisions")

        self.assertEqual(store.keys(), ["client-a:/v1/revisions"])
        record = store.get("client-a:/v1/revisions")
        self.assertEqual(record.identifier, "client-a")
        self.assertEqual(record.count, 2)

    def test_enforce_raises_with_retry_after(self):
        clock = FakeClock()
        guard = QuotaGuard(self.make_store(), clock=clock)
        for _ in range(POLICY.max_requests):
            guard.enforce("client-a", POLICY)
        clock.now += 2_500
        with self.assertRaises(QuotaExceededError) as ctx:
            guard.enforce("client-a", POLICY)
        self.assertEqual(ctx.exception.status_code, 429)
        self.assertEqual(ctx.exception.code, "retry_later")
        self.assertEqual(ctx.exception.retry_after_s, 8)
        self.assertEqual(ctx.exception.limit, POLICY.max_requests)

    def test_sweep_removes_only_expired_records(self):
        clock = FakeClock()
        store = self.make_store()
        guard = QuotaGuard(store, clock=clock)
        guard.check("old", POLICY)
        clock.now += 6_000
        guard.check("fresh", POLICY)
        clock.now += 5_000

        self.assertEqual(guard.sweep(), 1)
        self.assertEqual(store.keys(), ["fresh:test"])

    def test_unknown_policy_uses_default(self):
        guard = QuotaGuard(self.make_store())
        self.assertEqual(guard.policy("missing").name, "default")
        self.assertEqual(guard.policy("ai").max_requests, 20)


class InMemoryQuotaGuardTests(_QuotaCases, unittest.TestCase):
    def make_store(self):
        return InMemoryRateLimitStore()


class SQLiteQuotaGuardTests(_QuotaCases, unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self._stores = []

    def tearDown(self):
        for store in self._stores:
            store.close()
        self._tmp.cleanup()

    def make_store(self):
        store = SQLiteRateLimitStore(str(Path(self._tmp.name) / f"quota-{len(self._stores)}.db"))
        self._stores.append(store)
        return store


if __name__ == "__main__":
    unittest.main()
