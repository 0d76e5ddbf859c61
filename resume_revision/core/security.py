from __future__ import annotations

from fastapi import HTTPException, status

from resume_revision.core.config import settings

_USER_ID_MAX_LENGTH = 128


def _normalize_lang(lang: str | None) -> str:
    if not lang:
        return "en"
    return lang.split(",")[0].strip().lower()[:2]


def _auth_error_message(lang: str | None) -> str:
    messages = {
        "en": "Please provide a valid API key.",
        "de": "Bitte gib einen gültigen API-Schlüssel an.",
        "es": "Por favor, proporciona una clave API válida.",
        "fr": "Veuillez fournir une clé API valide.",
    }
    return messages.get(_normalize_lang(lang), messages["en"])


def check_api_key(x_api_key: str | None, lang: str | None = None) -> None:
    if settings.auth_mode != "protected" or not settings.api_key:
        return
    if x_api_key != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=_auth_error_message(lang),
        )


def require_user_id(x_user_id: str | None) -> str:
    """User identity is established upstream; only its presence and shape are checked here."""
    user_id = (x_user_id or "").strip()
    if not user_id or len(user_id) > _USER_ID_MAX_LENGTH:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "missing_user", "message": "X-User-Id header is required."},
        )
    return user_id
