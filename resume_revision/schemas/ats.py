from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field

SubScoreKey = Literal[
    "keyword_exact",
    "keyword_phrase",
    "semantic_relevance",
    "title_alignment",
    "metrics_presence",
    "section_completeness",
    "format_parseability",
    "recency_fit",
]
SuggestionCategory = Literal["keywords", "content", "metrics", "structure", "formatting"]

SUBSCORE_KEYS: tuple[str, ...] = (
    "keyword_exact",
    "keyword_phrase",
    "semantic_relevance",
    "title_alignment",
    "metrics_presence",
    "section_completeness",
    "format_parseability",
    "recency_fit",
)


class SubScores(BaseModel):
    keyword_exact: int = Field(default=0, ge=0, le=100)
    keyword_phrase: int = Field(default=0, ge=0, le=100)
    semantic_relevance: int = Field(default=0, ge=0, le=100)
    title_alignment: int = Field(default=0, ge=0, le=100)
    metrics_presence: int = Field(default=0, ge=0, le=100)
    section_completeness: int = Field(default=0, ge=0, le=100)
    format_parseability: int = Field(default=0, ge=0, le=100)
    recency_fit: int = Field(default=0, ge=0, le=100)


class Suggestion(BaseModel):
    id: str
    text: str
    estimated_gain: int = Field(ge=1, le=100)
    quick_win: bool = False
    category: SuggestionCategory
    targets: list[str] = Field(default_factory=list)


class ATSScoreMetadata(BaseModel):
    version: int = 2
    processing_time_ms: int = Field(default=0, ge=0)
    analyzers_used: list[str] = Field(default_factory=list)
    failed_analyzers: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    missing_keywords: list[str] = Field(default_factory=list)
    cache_hit: bool = False
    degraded: bool = False


class ATSScoreOutput(BaseModel):
    ats_score_original: int = Field(ge=0, le=100)
    ats_score_optimized: int = Field(ge=0, le=100)
    subscores: SubScores | None = None
    subscores_original: SubScores | None = None
    suggestions: list[Suggestion] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)
    metadata: ATSScoreMetadata = Field(default_factory=ATSScoreMetadata)


class ScoreDelta(BaseModel):
    score: int = Field(ge=0, le=100)
    before: int | None = None
    delta: int | None = None
    missing_keywords: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
