from __future__ import annotations

from pydantic import BaseModel, Field, model_validator

from .ats import ATSScoreOutput, ScoreDelta
from .changes import ProposedChange
from .history import HistoryNavigation, TimelineSnapshot, VersionEntry
from .resume import LanguageTag, ResumeDocument

MAX_JOB_TEXT = 20000
MAX_RESUME_TEXT = 40000


class RevisionRequest(BaseModel):
    document: ResumeDocument
    changes: list[ProposedChange] = Field(default_factory=list, max_length=50)
    job_description_text: str = Field(default="", max_length=MAX_JOB_TEXT)
    job_title: str | None = Field(default=None, max_length=200)
    baseline_score: int | None = Field(default=None, ge=0, le=100)
    theme: str | None = Field(default=None, max_length=40)


class ScoreRequest(BaseModel):
    job_description_text: str = Field(min_length=1, max_length=MAX_JOB_TEXT)
    job_title: str | None = Field(default=None, max_length=200)
    resume_before: ResumeDocument | None = None
    resume_after: ResumeDocument | None = None
    resume_text_before: str | None = Field(default=None, max_length=MAX_RESUME_TEXT)
    resume_text_after: str | None = Field(default=None, max_length=MAX_RESUME_TEXT)
    baseline_score: int | None = Field(default=None, ge=0, le=100)

    @model_validator(mode="after")
    def _require_resume(self) -> "ScoreRequest":
        if self.resume_after is None and not (self.resume_text_after or "").strip():
            raise ValueError("Provide resume_after or resume_text_after.")
        return self


class ScoreResponse(BaseModel):
    ats: ATSScoreOutput
    after_scores: ScoreDelta


class ProposeRequest(BaseModel):
    document: ResumeDocument
    job_description_text: str = Field(min_length=1, max_length=MAX_JOB_TEXT)


class ProposeResponse(BaseModel):
    changes: list[ProposedChange]


class HistoryNavigationResponse(BaseModel):
    moved: bool
    reason: str
    history_entry_id: str | None = None
    resume_json: ResumeDocument | None = None
    ats_score: int | None = None
    preview_url: str | None = None
    language: LanguageTag | None = None
    timeline: TimelineSnapshot

    @classmethod
    def from_navigation(cls, navigation: HistoryNavigation) -> "HistoryNavigationResponse":
        entry = navigation.entry
        return cls(
            moved=navigation.moved,
            reason=navigation.reason,
            history_entry_id=entry.id if entry is not None else None,
            resume_json=entry.resume_snapshot if entry is not None else None,
            ats_score=entry.ats_score if entry is not None else None,
            preview_url=entry.preview_reference() if entry is not None else None,
            language=entry.language if entry is not None else None,
            timeline=navigation.timeline,
        )


class HistoryListResponse(BaseModel):
    timeline: TimelineSnapshot
    current: VersionEntry | None = None
    entries: list[VersionEntry] = Field(default_factory=list)
