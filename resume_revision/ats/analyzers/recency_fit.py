from __future__ import annotations

import re
from datetime import datetime

from resume_revision.core.config.scoring import get_scoring_value
from resume_revision.normalize.utils import tokenize

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer
from .keyword_exact import keyword_terms, must_have_coverage

_YEAR = re.compile(r"\b(19\d{2}|20\d{2})\b")
_CURRENT = ("present", "current", "now", "today", "ongoing")


def years_since(end_date: str, start_date: str, now: datetime) -> float | None:
    """Whole years between a role's end (or start, if no end) and ``now``; 0 for current roles."""
    end = (end_date or "").strip().lower()
    if any(marker in end for marker in _CURRENT):
        return 0.0
    match = _YEAR.search(end) or _YEAR.search(start_date or "")
    if match is None:
        return None
    return float(max(0, now.year - int(match.group(1))))


class RecencyAnalyzer(BaseAnalyzer):
    """Must-have coverage in the latest role, discounted by how old the roles are."""

    name = "recency_fit"

    def decay_for(self, years_ago: float) -> float:
        start = float(get_scoring_value("recency.decay_start_years", 3))
        per_year = float(get_scoring_value("recency.decay_per_year", 0.1))
        maximum = float(get_scoring_value("recency.max_decay_rate", 0.5))
        if years_ago <= start:
            return 0.0
        return min(maximum, (years_ago - start) * per_year)

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        if data.resume is None or not data.resume.experience:
            coverage, _, _ = must_have_coverage(data.resume_text, data.job_data)
            return self.create_result(
                coverage * 100,
                {"source": "text", "latest_role_coverage": round(coverage, 3)},
                0.5,
                ["No structured experience; recency estimated from full text."],
            )

        terms = keyword_terms(data.job_data.must_have)
        latest = data.resume.experience[0]
        latest_tokens = set(tokenize(" ".join([latest.title, *latest.achievements])))
        ratio = self.safe_divide(sum(1 for term in terms if term in latest_tokens), len(terms))

        score = ratio * 100
        if ratio >= float(get_scoring_value("recency.latest_role_keyword_ratio", 0.6)):
            score += float(get_scoring_value("recency.latest_role_boost", 10))

        ages = [years_since(entry.end_date, entry.start_date, data.now) for entry in data.resume.experience]
        known = [age for age in ages if age is not None]
        average_decay = sum(self.decay_for(age) for age in known) / len(known) if known else 0.0
        score = min(100.0, score) * (1 - average_decay)

        confidence = self.calculate_confidence(
            has_required_data=bool(terms),
            data_completeness=1.0 if len(known) == len(ages) else 0.7,
        )
        return self.create_result(
            score,
            {
                "latest_role": latest.title,
                "latest_role_coverage": round(ratio, 3),
                "years_since_roles": ages,
                "average_decay": round(average_decay, 3),
            },
            confidence,
        )
