from __future__ import annotations

import re
from difflib import SequenceMatcher

from resume_revision.ats.extractors import SENIORITY_LEVELS, detect_seniority, extract_resume_titles
from resume_revision.core.config.scoring import get_scoring_value

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer

_SENIORITY_WORDS = re.compile(r"\b(jr|sr|senior|junior|lead|staff|principal)\b")
_LEVEL_WORDS = re.compile(r"\b(i|ii|iii|iv|v|1|2|3|4|5)\b")
_NON_WORD = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")


def normalize_title(title: str) -> str:
    lowered = (title or "").lower()
    lowered = _SENIORITY_WORDS.sub("", lowered)
    lowered = _LEVEL_WORDS.sub("", lowered)
    lowered = _NON_WORD.sub(" ", lowered)
    return _SPACES.sub(" ", lowered).strip()


class TitleAlignmentAnalyzer(BaseAnalyzer):
    name = "title_alignment"

    def title_similarity(self, left: str, right: str) -> float:
        first = normalize_title(left)
        second = normalize_title(right)
        if not first or not second:
            return 0.0
        if first == second:
            return 1.0
        edit = SequenceMatcher(None, first, second).ratio()
        overlap = self.jaccard(set(first.split(" ")), set(second.split(" ")))
        return edit * 0.5 + overlap * 0.5

    @staticmethod
    def seniority_matches(resume_title: str, target_seniority: str) -> bool:
        resume_level = SENIORITY_LEVELS.get(detect_seniority(resume_title), 2)
        target_level = SENIORITY_LEVELS.get(target_seniority, 2)
        return abs(resume_level - target_level) <= 1

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        target_title = data.job_data.title
        target_seniority = data.job_data.seniority or "mid"
        if not target_title:
            return self.create_result(50.0, {"error": "No target title available"}, 0.5)

        titles = extract_resume_titles(data.resume_text, data.resume)
        if not titles:
            return self.create_result(20.0, {"target_title": target_title, "error": "No job titles found in resume"}, 0.6)

        ranked = sorted(
            ((title, self.title_similarity(title, target_title)) for title in titles),
            key=lambda item: item[1],
            reverse=True,
        )
        best_title, similarity = ranked[0]
        seniority_ok = self.seniority_matches(best_title, target_seniority)

        score = similarity * 100
        if best_title == titles[0]:
            score = min(100.0, score + float(get_scoring_value("title.latest_role_bonus", 10)))
        if not seniority_ok:
            score = max(0.0, score - float(get_scoring_value("title.seniority_mismatch_penalty", 15)))

        confidence = self.calculate_confidence(
            has_required_data=True,
            data_completeness=1.0 if len(titles) >= 2 else 0.8,
        )
        return self.create_result(
            score,
            {
                "target_title": target_title,
                "target_seniority": target_seniority,
                "best_match": best_title,
                "similarity": round(similarity * 100),
                "seniority_match": seniority_ok,
                "all_titles": titles,
            },
            confidence,
        )
