from __future__ import annotations

import math

from resume_revision.core.config.scoring import get_scoring_value
from resume_revision.normalize.utils import word_count

from .analyzers.base import AnalyzerResult


def _variance(values: list[float]) -> float:
    if not values:
        return 0.0
    mean = sum(values) / len(values)
    return sum((value - mean) ** 2 for value in values) / len(values)


def estimate_confidence(
    results: dict[str, AnalyzerResult | None],
    *,
    total_analyzers: int,
    job_completeness: float,
    resume_text: str,
    job_text: str,
) -> float:
    """Confidence in the composite from analyzer quality, failures and input size."""
    usable = [result for result in results.values() if result is not None and result.usable]
    failed = max(0, total_analyzers - len(usable))
    confidence = 1.0

    min_conf = float(get_scoring_value("confidence.min_analyzer_confidence", 0.5))
    average = sum(result.confidence for result in usable) / len(usable) if usable else 0.0
    if average < min_conf:
        confidence -= (min_conf - average) * 0.5

    if total_analyzers > 0 and failed:
        confidence -= failed / total_analyzers * float(get_scoring_value("confidence.failure_penalty", 0.5))

    if job_completeness < 0.8:
        confidence -= float(get_scoring_value("confidence.jd_extraction_penalty", 0.2))
    if word_count(resume_text) < int(get_scoring_value("confidence.short_resume_words", 40)):
        confidence -= float(get_scoring_value("confidence.short_resume_penalty", 0.15))
    if word_count(job_text) < int(get_scoring_value("confidence.short_job_words", 20)):
        confidence -= float(get_scoring_value("confidence.short_job_penalty", 0.1))

    spread = math.sqrt(_variance([result.score for result in usable])) / 100
    # Agreement boost only when nothing failed; a failure must never be offset.
    if usable and not failed and spread < float(get_scoring_value("confidence.agreement_variance", 0.2)):
        confidence += float(get_scoring_value("confidence.agreement_boost", 0.1))

    return round(max(0.0, min(1.0, confidence)), 3)
