from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .resume import ResumeDocument

ChangeScope = Literal["section", "paragraph", "bullet", "style", "layout"]
ChangeConfidence = Literal["low", "medium", "high"]
RiskLevel = Literal["low", "medium", "high"]
OutcomeStatus = Literal["applied", "appended", "not_applicable", "forwarded"]


class ChangeMetadata(BaseModel):
    model_config = ConfigDict(extra="allow")

    pointer: str | None = None
    experience_index: int | None = Field(default=None, ge=0)
    risk: RiskLevel | None = None
    estimated_score_delta: float | None = None
    requires_human_review: bool = False


class ProposedChange(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, max_length=120)
    summary: str = Field(default="", max_length=500)
    scope: ChangeScope
    category: str = Field(default="content", max_length=60)
    confidence: ChangeConfidence = "medium"
    before: str = Field(default="", max_length=5000)
    after: str = Field(default="", max_length=5000)
    metadata: ChangeMetadata = Field(default_factory=ChangeMetadata)


class ChangeOutcome(BaseModel):
    change_id: str
    applied: bool
    status: OutcomeStatus
    target: str | None = None
    reason: str = ""


class ApplyResult(BaseModel):
    document: ResumeDocument
    applied_count: int = Field(ge=0)
    outcomes: list[ChangeOutcome] = Field(default_factory=list)
    forwarded: list[ProposedChange] = Field(default_factory=list)
