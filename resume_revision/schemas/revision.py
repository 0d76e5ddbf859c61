from __future__ import annotations

from pydantic import BaseModel, Field

from .ats import ATSScoreOutput, ScoreDelta
from .changes import ChangeOutcome, ProposedChange
from .history import TimelineSnapshot
from .resume import LanguageTag, ResumeDocument


class RevisionResult(BaseModel):
    document: ResumeDocument
    ats: ATSScoreOutput
    after_scores: ScoreDelta
    applied_count: int = Field(ge=0)
    outcomes: list[ChangeOutcome] = Field(default_factory=list)
    forwarded: list[ProposedChange] = Field(default_factory=list)
    history_entry_id: str
    language: LanguageTag
    preview_reference: str | None = None
    timeline: TimelineSnapshot
