from __future__ import annotations

import re

from resume_revision.schemas.resume import ResumeDocument

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer

REQUIRED_SECTIONS = ("summary", "skills", "experience", "education")
_TEXT_HEADERS = {
    "summary": ("summary", "profile", "objective"),
    "skills": ("skills", "technical skills", "competencies"),
    "experience": ("experience", "work experience", "employment"),
    "education": ("education", "academic background"),
}
_QUALITY_BONUS = 5


def present_sections(resume: ResumeDocument) -> list[str]:
    present: list[str] = []
    if resume.summary.strip():
        present.append("summary")
    if resume.skills.technical or resume.skills.soft:
        present.append("skills")
    if resume.experience:
        present.append("experience")
    if resume.education:
        present.append("education")
    return present


class SectionCompletenessAnalyzer(BaseAnalyzer):
    name = "section_completeness"

    def _quality_bonus(self, resume: ResumeDocument) -> int:
        bonus = 0
        if 50 <= len(resume.summary.split()) <= 150:
            bonus += _QUALITY_BONUS
        if len(resume.skills.technical) + len(resume.skills.soft) >= 5:
            bonus += _QUALITY_BONUS
        if resume.experience and all(entry.achievements for entry in resume.experience):
            bonus += _QUALITY_BONUS
        if resume.education and all(entry.degree and entry.institution for entry in resume.education):
            bonus += _QUALITY_BONUS
        return bonus

    def _analyze_text(self, text: str) -> AnalyzerResult:
        found = [
            section
            for section, headers in _TEXT_HEADERS.items()
            if any(re.search(rf"\b{re.escape(header)}\b", text, re.IGNORECASE) for header in headers)
        ]
        missing = [section for section in REQUIRED_SECTIONS if section not in found]
        score = len(found) / len(REQUIRED_SECTIONS) * 100
        return self.create_result(score, {"present": found, "missing": missing, "source": "text"}, 0.7)

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        if data.resume is None:
            return self._analyze_text(data.resume_text)

        present = present_sections(data.resume)
        missing = [section for section in REQUIRED_SECTIONS if section not in present]
        bonus = self._quality_bonus(data.resume)
        score = min(100.0, len(present) / len(REQUIRED_SECTIONS) * 100 + bonus)
        return self.create_result(
            score,
            {"present": present, "missing": missing, "quality_bonus": bonus, "has_all": not missing},
            self.calculate_confidence(has_required_data=True),
        )
