from __future__ import annotations

from dataclasses import dataclass, field

from resume_revision.core.errors import ScoringUnavailable
from resume_revision.schemas.ats import SUBSCORE_KEYS, SubScores

from .analyzers.base import AnalyzerResult


@dataclass
class AggregateScore:
    score: int
    subscores: SubScores
    failed: list[str] = field(default_factory=list)


def aggregate_scores(results: dict[str, AnalyzerResult | None], weights: dict[str, float]) -> AggregateScore:
    """Weighted average over usable analyzers; failed ones report 0 and drop out of the denominator."""
    values: dict[str, int] = {}
    failed: list[str] = []
    numerator = 0.0
    denominator = 0.0

    for key in SUBSCORE_KEYS:
        result = results.get(key)
        if result is None or not result.usable:
            failed.append(key)
            values[key] = 0
            continue
        rounded = int(round(max(0.0, min(100.0, result.score))))
        values[key] = rounded
        weight = weights.get(key, 0.0)
        numerator += result.score * weight
        denominator += weight

    if denominator <= 0:
        raise ScoringUnavailable()

    composite = int(round(numerator / denominator))
    return AggregateScore(score=max(0, min(100, composite)), subscores=SubScores(**values), failed=failed)
