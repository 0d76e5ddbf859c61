from __future__ import annotations

import json
import logging
import os
import time
import uuid
from functools import lru_cache
from typing import Any

from openai import OpenAI

from resume_revision.analytics.db import log_ai_analysis_run

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "y", "on"}
_PLACEHOLDER_PREFIXES = ("your_", "replace_", "sk-xxx")


def _api_key() -> str:
    return (os.getenv("OPENAI_API_KEY") or "").strip()


def llm_enabled() -> bool:
    """The change oracle needs ``LLM_ENABLED`` (default on) and a real-looking API key."""
    flag = os.getenv("LLM_ENABLED")
    if flag is not None and flag.strip().lower() not in _TRUTHY:
        return False
    key = _api_key()
    return bool(key) and not key.lower().startswith(_PLACEHOLDER_PREFIXES)


@lru_cache(maxsize=1)
def _client() -> OpenAI:
    return OpenAI(
        api_key=_api_key(),
        base_url=os.getenv("OPENAI_BASE_URL") or None,
        timeout=float(os.getenv("LLM_TIMEOUT_S", "20")),
        max_retries=int(os.getenv("LLM_MAX_RETRIES", "2")),
    )


def model_name() -> str:
    return (os.getenv("LLM_MODEL") or os.getenv("OPENAI_MODEL") or "gpt-4o-mini").strip()


class _RunRecorder:
    """Writes one ai_analysis_runs row per completion attempt."""

    def __init__(self, purpose: str) -> None:
        self.run_id = uuid.uuid4().hex
        self.purpose = purpose or "unknown"
        self.started = time.perf_counter()

    def finish(self, status: str, *, schema_valid: bool = False, error_code: str | None = None) -> None:
        latency_ms = int((time.perf_counter() - self.started) * 1000)
        try:
            log_ai_analysis_run(
                run_id=self.run_id,
                tool_slug=self.purpose,
                model=model_name(),
                schema_valid=schema_valid,
                status=status,
                error_code=error_code,
                latency_ms=latency_ms,
            )
        except Exception:  # pragma: no cover - analytics must not break AI responses
            logger.debug("ai_run_logging_failed run_id=%s", self.run_id, exc_info=True)


def json_completion(
    *,
    system_prompt: str,
    user_prompt: str,
    temperature: float = 0.2,
    max_output_tokens: int = 1200,
    tool_slug: str = "unknown",
) -> dict[str, Any] | None:
    """JSON-mode chat completion returning the decoded object.

    Returns ``None`` when the model is disabled or the reply is empty, not JSON, or not
    an object; the caller decides how to degrade.
    """
    recorder = _RunRecorder(tool_slug)
    if not llm_enabled():
        recorder.finish("skipped", error_code="llm_disabled")
        return None

    try:
        response = _client().chat.completions.create(
            model=model_name(),
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            temperature=temperature,
            response_format={"type": "json_object"},
            max_tokens=max_output_tokens,
        )
    except Exception as exc:  # noqa: BLE001 - network and API errors all degrade the same way
        logger.warning("llm_request_failed model=%s prompt_len=%s: %s", model_name(), len(user_prompt), exc)
        recorder.finish("error", error_code="llm_exception")
        return None

    content = response.choices[0].message.content if response.choices else None
    if not content:
        recorder.finish("empty", error_code="empty_response")
        return None
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError as exc:
        logger.warning("llm_invalid_json model=%s: %s", model_name(), exc)
        recorder.finish("invalid_schema", error_code="invalid_json")
        return None
    if not isinstance(parsed, dict):
        recorder.finish("invalid_schema", error_code="invalid_schema")
        return None
    recorder.finish("success", schema_valid=True)
    return parsed
