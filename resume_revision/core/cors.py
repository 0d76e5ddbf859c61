from __future__ import annotations

from resume_revision.core.config import settings


def cors_allowed_origins() -> list[str]:
    return [origin for origin in settings.cors_allowed_origins if origin != "*"]


def cors_allow_origin_regex() -> str | None:
    regex = (settings.cors_allow_origin_regex or "").strip()
    return regex or None
