import asyncio
import contextlib
import logging
from contextlib import asynccontextmanager

from resume_revision.analytics.db import init_db, purge_old_records
from resume_revision.core.config import settings

logger = logging.getLogger(__name__)

ANALYTICS_PURGE_INTERVAL_S = 3600


@asynccontextmanager
async def lifespan(app):
    init_db()

    stop_event = asyncio.Event()
    guard = getattr(app.state, "quota_guard", None)

    async def periodic_compaction() -> None:
        interval = max(1, int(settings.quota_sweep_interval_s))
        since_purge = 0
        while not stop_event.is_set():
            if guard is not None:
                try:
                    removed = await asyncio.to_thread(guard.sweep)
                    if removed:
                        logger.info("quota_sweep removed=%s", removed)
                except Exception as exc:  # pragma: no cover - next tick retries
                    logger.warning("quota_sweep_failed: %s", exc)
            if since_purge <= 0:
                try:
                    deleted = purge_old_records()
                    if any(deleted.values()):
                        logger.info("analytics_retention_purge deleted=%s", deleted)
                except Exception as exc:  # pragma: no cover - next tick retries
                    logger.warning("analytics_retention_purge_failed: %s", exc)
                since_purge = ANALYTICS_PURGE_INTERVAL_S
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=interval)
            except asyncio.TimeoutError:
                since_purge -= interval
                continue

    compaction_task = asyncio.create_task(periodic_compaction())
    yield
    stop_event.set()
    if not compaction_task.done():
        compaction_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await compaction_task
