from __future__ import annotations

from resume_revision.ats.extractors import JobExtraction
from resume_revision.core.config.scoring import get_scoring_value
from resume_revision.normalize.utils import STOPWORDS, dedupe_preserve_order, tokenize

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer


def keyword_terms(items: list[str], min_length: int | None = None) -> list[str]:
    minimum = int(min_length if min_length is not None else get_scoring_value("keywords.min_keyword_length", 3))
    terms = [
        token
        for item in items
        for token in tokenize(item)
        if len(token) >= minimum and token not in STOPWORDS and not token.isdigit()
    ]
    return dedupe_preserve_order(terms)


def must_have_coverage(resume_text: str, job_data: JobExtraction) -> tuple[float, list[str], list[str]]:
    """Share of must-have terms present in the resume, with matched and missing terms."""
    resume_tokens = set(tokenize(resume_text))
    terms = keyword_terms(job_data.must_have)
    matched = [term for term in terms if term in resume_tokens]
    missing = [term for term in terms if term not in resume_tokens]
    if not terms:
        return 0.0, matched, missing
    return len(matched) / len(terms), matched, missing


class KeywordExactAnalyzer(BaseAnalyzer):
    name = "keyword_exact"

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        resume_tokens = set(self.tokenize(data.resume_text))
        must_have = keyword_terms(data.job_data.must_have)
        must_set = set(must_have)
        nice_to_have = [term for term in keyword_terms(data.job_data.nice_to_have) if term not in must_set]

        must_weight = float(get_scoring_value("keywords.must_have_weight", 2.0))
        nice_weight = float(get_scoring_value("keywords.nice_to_have_weight", 1.0))

        must_matched = [term for term in must_have if term in resume_tokens]
        nice_matched = [term for term in nice_to_have if term in resume_tokens]
        missing = [term for term in must_have if term not in resume_tokens]
        missing.extend(term for term in nice_to_have if term not in resume_tokens)

        possible = len(must_have) * must_weight + len(nice_to_have) * nice_weight
        earned = len(must_matched) * must_weight + len(nice_matched) * nice_weight
        score = self.safe_divide(earned, possible) * 100

        confidence = self.calculate_confidence(
            has_required_data=bool(must_have or nice_to_have),
            data_completeness=1.0 if must_have else 0.7,
        )
        return self.create_result(
            score,
            {
                "matched": must_matched + nice_matched,
                "missing": missing,
                "must_have_matched": len(must_matched),
                "must_have_total": len(must_have),
                "nice_to_have_matched": len(nice_matched),
                "nice_to_have_total": len(nice_to_have),
            },
            confidence,
        )
