from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from resume_revision.ats.extractors import JobExtraction
from resume_revision.normalize.utils import extract_ngrams, tokenize
from resume_revision.schemas.resume import ResumeDocument


@dataclass(frozen=True)
class AnalyzerInput:
    resume_text: str
    job_text: str
    job_data: JobExtraction
    resume: ResumeDocument | None = None
    now: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class AnalyzerResult:
    score: float
    evidence: dict[str, Any] = field(default_factory=dict)
    confidence: float = 1.0
    warnings: list[str] = field(default_factory=list)

    @property
    def usable(self) -> bool:
        return math.isfinite(self.score) and math.isfinite(self.confidence) and self.confidence > 0


class BaseAnalyzer:
    name = "base"

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        raise NotImplementedError

    def create_result(
        self,
        score: float,
        evidence: dict[str, Any] | None = None,
        confidence: float = 1.0,
        warnings: list[str] | None = None,
    ) -> AnalyzerResult:
        if math.isfinite(score):
            score = max(0.0, min(100.0, score))
        return AnalyzerResult(
            score=score,
            evidence=evidence or {},
            confidence=max(0.0, min(1.0, confidence)),
            warnings=list(warnings or []),
        )

    def create_failed_result(self, message: str) -> AnalyzerResult:
        return AnalyzerResult(score=0.0, evidence={"error": message}, confidence=0.0, warnings=[message])

    @staticmethod
    def tokenize(text: str) -> list[str]:
        return tokenize(text)

    @staticmethod
    def ngrams(text: str, n: int) -> list[str]:
        return extract_ngrams(text, n)

    @staticmethod
    def jaccard(left: set[str], right: set[str]) -> float:
        union = left | right
        if not union:
            return 0.0
        return len(left & right) / len(union)

    @staticmethod
    def safe_divide(numerator: float, denominator: float) -> float:
        if denominator <= 0:
            return 0.0
        return numerator / denominator

    @staticmethod
    def lerp(value: float, low: float, high: float) -> float:
        """Map ``value`` from [low, high] onto [0, 100], clamped."""
        if high <= low:
            return 100.0 if value >= high else 0.0
        ratio = (value - low) / (high - low)
        return max(0.0, min(100.0, ratio * 100.0))

    @staticmethod
    def calculate_confidence(*, has_required_data: bool, data_completeness: float = 1.0, parsing_errors: int = 0) -> float:
        if not has_required_data:
            return 0.3
        confidence = data_completeness - 0.1 * parsing_errors
        return max(0.1, min(1.0, confidence))
