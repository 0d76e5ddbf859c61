from __future__ import annotations

import asyncio
import logging

from resume_revision.analytics.db import log_history_event
from resume_revision.ats.engine import ATSScoringEngine, get_engine, score_delta
from resume_revision.history.timeline import HistoryTimeline
from resume_revision.normalize.lang import detect_language
from resume_revision.normalize.utils import resume_to_text
from resume_revision.schemas.ats import ATSScoreOutput
from resume_revision.schemas.changes import ProposedChange
from resume_revision.schemas.history import HistoryNavigation
from resume_revision.schemas.resume import LanguageTag, ResumeDocument
from resume_revision.schemas.revision import RevisionResult
from resume_revision.services.change_oracle import ChangeOracle
from resume_revision.services.diff_applicator import apply_changes
from resume_revision.services.renderer import ArtifactRenderer, render_safely

logger = logging.getLogger(__name__)


def _record_history_event(*, user_id: str, action: str, moved: bool, entry_id: str | None, ats_score: int | None) -> None:
    try:
        log_history_event(user_id=user_id, action=action, moved=moved, entry_id=entry_id, ats_score=ats_score)
    except Exception:  # pragma: no cover - analytics must not break revisions
        logger.debug("history_event_logging_failed", exc_info=True)


def resolve_language(document: ResumeDocument, text: str) -> LanguageTag:
    if document.language.source == "explicit":
        return document.language
    return detect_language(text)


class RevisionService:
    """Apply -> score -> detect language -> render -> commit.

    The commit is the final step so an abandoned request never leaves a partially
    computed version in history.
    """

    def __init__(
        self,
        timeline: HistoryTimeline,
        *,
        engine: ATSScoringEngine | None = None,
        renderer: ArtifactRenderer | None = None,
        oracle: ChangeOracle | None = None,
        scoring_timeout_s: float = 8.0,
        default_theme: str = "classic",
    ) -> None:
        self.timeline = timeline
        self.engine = engine or get_engine()
        self.renderer = renderer
        self.oracle = oracle
        self.scoring_timeout_s = scoring_timeout_s
        self.default_theme = default_theme

    async def score_documents(
        self,
        before: ResumeDocument,
        after: ResumeDocument,
        job_text: str,
        *,
        job_title: str | None = None,
    ) -> ATSScoreOutput:
        return await self.engine.score_with_timeout(
            resume_to_text(before),
            resume_to_text(after),
            job_text,
            timeout_s=self.scoring_timeout_s,
            resume_before=before,
            resume_after=after,
            job_title=job_title,
        )

    async def revise(
        self,
        user_id: str,
        document: ResumeDocument,
        changes: list[ProposedChange],
        *,
        job_text: str = "",
        job_title: str | None = None,
        baseline_score: int | None = None,
        theme: str | None = None,
    ) -> RevisionResult:
        applied = await asyncio.to_thread(apply_changes, document, changes)
        revised = applied.document

        ats = await self.score_documents(document, revised, job_text, job_title=job_title)
        revised.language = resolve_language(revised, resume_to_text(revised))

        artifact = await asyncio.to_thread(render_safely, self.renderer, revised, theme or self.default_theme)
        entry = await asyncio.to_thread(
            self.timeline.commit,
            user_id,
            resume_snapshot=revised,
            ats_score=ats.ats_score_optimized,
            artifacts=[artifact] if artifact is not None else [],
            proposed_changes=changes,
            language=revised.language,
        )
        _record_history_event(
            user_id=user_id,
            action="commit",
            moved=True,
            entry_id=entry.id,
            ats_score=entry.ats_score,
        )
        logger.info(
            "revision_committed user_id=%s entry_id=%s applied=%s score=%s degraded=%s",
            user_id,
            entry.id,
            applied.applied_count,
            ats.ats_score_optimized,
            ats.metadata.degraded,
        )
        return RevisionResult(
            document=revised,
            ats=ats,
            after_scores=score_delta(ats, baseline_score),
            applied_count=applied.applied_count,
            outcomes=applied.outcomes,
            forwarded=applied.forwarded,
            history_entry_id=entry.id,
            language=revised.language,
            preview_reference=entry.preview_reference(),
            timeline=await asyncio.to_thread(self.timeline.timeline, user_id),
        )

    async def propose(self, document: ResumeDocument, job_text: str) -> list[ProposedChange]:
        if self.oracle is None:
            self.oracle = ChangeOracle()
        return await self.oracle.propose(document, job_text)

    async def undo(self, user_id: str) -> HistoryNavigation:
        navigation = await asyncio.to_thread(self.timeline.undo, user_id)
        self._record_navigation(user_id, "undo", navigation)
        return navigation

    async def redo(self, user_id: str) -> HistoryNavigation:
        navigation = await asyncio.to_thread(self.timeline.redo, user_id)
        self._record_navigation(user_id, "redo", navigation)
        return navigation

    @staticmethod
    def _record_navigation(user_id: str, action: str, navigation: HistoryNavigation) -> None:
        _record_history_event(
            user_id=user_id,
            action=action,
            moved=navigation.moved,
            entry_id=navigation.entry.id if navigation.entry is not None else None,
            ats_score=navigation.entry.ats_score if navigation.entry is not None else None,
        )
