from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Callable

from pydantic import ValidationError

from resume_revision.core.errors import OracleError, OracleFailure, OracleTimeout
from resume_revision.schemas.changes import ProposedChange
from resume_revision.schemas.resume import ResumeDocument
from resume_revision.services.llm import json_completion, llm_enabled

logger = logging.getLogger(__name__)

JsonCompletion = Callable[..., dict[str, Any] | None]

MAX_JOB_CHARS = 6000
MAX_CHANGES = 20

_SYSTEM_PROMPT = """You improve resumes for a specific job posting without inventing facts.
Return a JSON object: {"changes": [ ... ]}. Each change has:
- "id": short unique string
- "summary": one sentence describing the change
- "scope": one of "paragraph", "bullet", "section", "style", "layout"
- "category": free-form label such as "keywords", "metrics", "clarity"
- "confidence": one of "low", "medium", "high"
- "before": exact text currently in the resume (empty when adding a new bullet)
- "after": replacement text
- "metadata": {"pointer": "/experience/<i>/achievements/<j>" when targeting a bullet,
  "risk": "low"|"medium"|"high", "requires_human_review": true|false}
Paragraph changes target the summary. Never fabricate employers, dates, degrees or numbers."""


def _user_prompt(document: ResumeDocument, job_text: str) -> str:
    resume_json = document.model_dump(mode="json", exclude={"language"})
    return (
        "Resume (JSON):\n"
        f"{json.dumps(resume_json, ensure_ascii=False)}\n\n"
        "Job description:\n"
        f"{job_text[:MAX_JOB_CHARS]}\n\n"
        f"Propose at most {MAX_CHANGES} changes."
    )


def parse_changes(payload: dict[str, Any]) -> list[ProposedChange]:
    """Validate raw oracle output; invalid items are dropped, an unusable payload raises."""
    items = payload.get("changes")
    if not isinstance(items, list):
        raise OracleFailure("Change oracle returned no 'changes' list.", code="invalid_input", status_code=422)

    changes: list[ProposedChange] = []
    seen_ids: set[str] = set()
    for index, item in enumerate(items[:MAX_CHANGES]):
        if not isinstance(item, dict):
            logger.info("oracle_change_dropped index=%s reason=not_an_object", index)
            continue
        candidate = dict(item)
        candidate.setdefault("id", f"change-{index + 1}")
        try:
            change = ProposedChange.model_validate(candidate)
        except ValidationError as exc:
            logger.info("oracle_change_dropped index=%s errors=%s", index, exc.error_count())
            continue
        if change.scope not in {"style", "layout"} and (not change.after.strip() or change.before == change.after):
            logger.info("oracle_change_dropped index=%s reason=no_op", index)
            continue
        if change.id in seen_ids:
            change = change.model_copy(update={"id": f"{change.id}-{index + 1}"})
        seen_ids.add(change.id)
        changes.append(change)

    if items and not changes:
        raise OracleFailure("Change oracle output did not contain any valid change.", code="invalid_input", status_code=422)
    return changes


class ChangeOracle:
    """Timeout-bound proposer of resume edits backed by a JSON-mode LLM call."""

    def __init__(self, completion: JsonCompletion | None = None, timeout_s: float = 20.0) -> None:
        self._completion = completion
        self.timeout_s = timeout_s

    def _complete(self, document: ResumeDocument, job_text: str) -> dict[str, Any] | None:
        completion = self._completion or json_completion
        return completion(
            system_prompt=_SYSTEM_PROMPT,
            user_prompt=_user_prompt(document, job_text),
            temperature=0.2,
            tool_slug="change_oracle",
        )

    async def propose(self, document: ResumeDocument, job_text: str) -> list[ProposedChange]:
        if self._completion is None and not llm_enabled():
            raise OracleFailure("Change oracle is not configured.", code="retry_later", status_code=503)

        try:
            payload = await asyncio.wait_for(
                asyncio.to_thread(self._complete, document, job_text),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("oracle_timeout timeout_s=%s", self.timeout_s)
            raise OracleTimeout() from exc

        if payload is None:
            raise OracleFailure("Change oracle could not produce a response. Try again.", code="retry_later", status_code=503)
        changes = parse_changes(payload)
        logger.info("oracle_changes_proposed count=%s", len(changes))
        return changes


async def propose_changes_safe(oracle: ChangeOracle, document: ResumeDocument, job_text: str) -> list[ProposedChange]:
    try:
        return await oracle.propose(document, job_text)
    except OracleError as exc:
        logger.warning("oracle_fallback_empty code=%s: %s", exc.code, exc)
        return []
