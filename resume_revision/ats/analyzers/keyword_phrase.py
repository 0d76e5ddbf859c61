from __future__ import annotations

from resume_revision.core.config.scoring import get_scoring_value
from resume_revision.normalize.utils import STOPWORDS, dedupe_preserve_order, normalize_text

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer

_FUZZY_CREDIT = 0.5


class KeywordPhraseAnalyzer(BaseAnalyzer):
    """Coverage of multi-word job phrases, exact or as a full word set."""

    name = "keyword_phrase"

    def _job_phrases(self, data: AnalyzerInput) -> list[str]:
        sizes = [int(size) for size in get_scoring_value("keywords.ngram_sizes", [3, 4, 5, 6])]
        limit = int(get_scoring_value("keywords.max_keywords", 100))
        phrases: list[str] = []
        items = data.job_data.must_have + data.job_data.nice_to_have + data.job_data.responsibilities
        for item in items:
            for size in sizes:
                for phrase in self.ngrams(item, size):
                    words = phrase.split(" ")
                    if words[0] in STOPWORDS or words[-1] in STOPWORDS:
                        continue
                    phrases.append(phrase)
        return dedupe_preserve_order(phrases)[:limit]

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        phrases = self._job_phrases(data)
        if not phrases:
            return self.create_result(
                50.0,
                {"matched": [], "fuzzy": [], "missing": [], "phrases_total": 0},
                0.4,
                ["No multi-word phrases found in job description."],
            )

        resume_normalized = f" {normalize_text(data.resume_text)} "
        resume_tokens = set(resume_normalized.split())
        exact: list[str] = []
        fuzzy: list[str] = []
        missing: list[str] = []
        for phrase in phrases:
            if f" {phrase} " in resume_normalized:
                exact.append(phrase)
                continue
            content = {word for word in phrase.split(" ") if word not in STOPWORDS}
            if content and content <= resume_tokens:
                fuzzy.append(phrase)
            else:
                missing.append(phrase)

        earned = len(exact) + _FUZZY_CREDIT * len(fuzzy)
        score = self.safe_divide(earned, len(phrases)) * 100
        confidence = self.calculate_confidence(
            has_required_data=True,
            data_completeness=1.0 if len(phrases) >= 5 else 0.6,
        )
        return self.create_result(
            score,
            {"matched": exact, "fuzzy": fuzzy, "missing": missing, "phrases_total": len(phrases)},
            confidence,
        )
