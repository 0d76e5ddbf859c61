from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .changes import ProposedChange
from .resume import LanguageTag, ResumeDocument

NavigationReason = Literal["moved", "nothing_to_undo", "nothing_to_redo"]


class Artifact(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str = Field(min_length=1, max_length=30)
    path: str = Field(min_length=1, max_length=1000)


class VersionEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    user_id: str
    resume_snapshot: ResumeDocument
    ats_score: int = Field(ge=0, le=100)
    artifacts: tuple[Artifact, ...] = ()
    proposed_changes: tuple[ProposedChange, ...] = ()
    language: LanguageTag = Field(default_factory=LanguageTag)
    created_at: datetime

    def preview_reference(self) -> str | None:
        for artifact in self.artifacts:
            if artifact.type == "preview":
                return artifact.path
        return None


class TimelineSnapshot(BaseModel):
    cursor: int = Field(ge=-1)
    length: int = Field(ge=0)
    past: list[str] = Field(default_factory=list)
    current: str | None = None
    future: list[str] = Field(default_factory=list)


class HistoryNavigation(BaseModel):
    moved: bool
    reason: NavigationReason
    entry: VersionEntry | None = None
    timeline: TimelineSnapshot
