import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi import _rate_limit_exceeded_handler
import sentry_sdk

from resume_revision.api.v1.health import router as health_router
from resume_revision.api.v1.revisions import router as revisions_router
from resume_revision.core.cors import cors_allow_origin_regex, cors_allowed_origins
from resume_revision.core.quota_guard import InMemoryRateLimitStore, QuotaGuard, SQLiteRateLimitStore
from resume_revision.core.rate_limit import limiter
from resume_revision.core.config import settings
from resume_revision.history.store import InMemoryHistoryStore, SQLiteHistoryStore
from resume_revision.history.timeline import HistoryTimeline
from resume_revision.services.change_oracle import ChangeOracle
from resume_revision.services.renderer import HtmlPreviewRenderer
from resume_revision.services.revision_service import RevisionService
from dotenv import load_dotenv
from resume_revision.core.lifespan import lifespan

load_dotenv()
logging.basicConfig(level=settings.log_level, format="%(message)s")
if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn)


def build_quota_guard() -> QuotaGuard:
    if settings.quota_backend == "sqlite":
        return QuotaGuard(SQLiteRateLimitStore(settings.quota_db_path))
    return QuotaGuard(InMemoryRateLimitStore())


def build_revision_service() -> RevisionService:
    if settings.history_backend == "sqlite":
        store = SQLiteHistoryStore(settings.history_db_path)
    else:
        store = InMemoryHistoryStore()
    return RevisionService(
        HistoryTimeline(store),
        renderer=HtmlPreviewRenderer(settings.preview_dir),
        oracle=ChangeOracle(timeout_s=settings.oracle_timeout_s),
        scoring_timeout_s=settings.scoring_timeout_s,
        default_theme=settings.default_theme,
    )


app = FastAPI(title="Resume Revision API", version="0.1.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_allowed_origins(),
    allow_origin_regex=cors_allow_origin_regex(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Retry-After", "X-RateLimit-Limit", "X-RateLimit-Remaining", "X-RateLimit-Reset"],
)
app.state.limiter = limiter
app.state.quota_guard = build_quota_guard()
app.state.revision_service = build_revision_service()
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_middleware(SlowAPIMiddleware)

app.include_router(health_router, prefix="/v1", tags=["Health"])
app.include_router(revisions_router, prefix="/v1", tags=["Revisions"])
