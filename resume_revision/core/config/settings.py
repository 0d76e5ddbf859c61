from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    api_key: str | None
    auth_mode: str
    rate_limit: str
    rate_limit_enabled: bool
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    trust_x_forwarded_for: bool
    quota_backend: str
    quota_db_path: str
    quota_sweep_interval_s: int
    history_backend: str
    history_db_path: str
    scoring_timeout_s: float
    oracle_timeout_s: float
    preview_dir: str
    default_theme: str
    analytics_enabled: bool
    analytics_db_path: str
    analytics_retention_days: int


settings = Settings(
    api_key=_get_env("API_KEY"),
    auth_mode=(_get_env("AUTH_MODE", "public") or "public").strip().lower(),
    rate_limit=_get_env("RATE_LIMIT", "120/minute") or "120/minute",
    rate_limit_enabled=_get_env_bool("RATE_LIMIT_ENABLED", True),
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    trust_x_forwarded_for=_get_env_bool("TRUST_X_FORWARDED_FOR", False),
    quota_backend=(_get_env("QUOTA_BACKEND", "memory") or "memory").strip().lower(),
    quota_db_path=_get_env("QUOTA_DB_PATH", "data/quota.db") or "data/quota.db",
    quota_sweep_interval_s=_get_env_int("QUOTA_SWEEP_INTERVAL_S", 300),
    history_backend=(_get_env("HISTORY_BACKEND", "memory") or "memory").strip().lower(),
    history_db_path=_get_env("HISTORY_DB_PATH", "data/history.db") or "data/history.db",
    scoring_timeout_s=_get_env_float("SCORING_TIMEOUT_S", 8.0),
    oracle_timeout_s=_get_env_float("ORACLE_TIMEOUT_S", 20.0),
    preview_dir=_get_env("PREVIEW_DIR", "data/previews") or "data/previews",
    default_theme=_get_env("DEFAULT_THEME", "classic") or "classic",
    analytics_enabled=_get_env_bool("ANALYTICS_ENABLED", True),
    analytics_db_path=_get_env("ANALYTICS_DB_PATH", "data/analytics.db") or "data/analytics.db",
    analytics_retention_days=_get_env_int("ANALYTICS_RETENTION_DAYS", 90),
)

if settings.auth_mode not in {"public", "protected"}:
    raise RuntimeError("AUTH_MODE must be either 'public' or 'protected'.")

if settings.auth_mode == "protected" and not settings.api_key:
    raise RuntimeError("AUTH_MODE=protected requires API_KEY to be set.")

if settings.quota_backend not in {"memory", "sqlite"}:
    raise RuntimeError("QUOTA_BACKEND must be either 'memory' or 'sqlite'.")

if settings.history_backend not in {"memory", "sqlite"}:
    raise RuntimeError("HISTORY_BACKEND must be either 'memory' or 'sqlite'.")
