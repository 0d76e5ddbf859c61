from __future__ import annotations

import re

from resume_revision.core.config.scoring import get_scoring_value

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer

_ODD_GLYPHS = re.compile(r"[^\x00-\x7F -ɏ–—‘’“”•]")
_COLUMN_GAP = re.compile(r"\S(?: {4,}|\t+)\S")
_IMAGE_MARKERS = re.compile(r"(?:<img\b|!\[[^\]]*\]\(|\[image\]|\.(?:png|jpe?g|gif|svg)\b)", re.IGNORECASE)
_LONG_LINE_CHARS = 220
_MIN_TABLE_ROWS = 3
_MIN_COLUMN_ROWS = 3


def format_report(text: str) -> dict[str, object]:
    lines = (text or "").splitlines()
    table_rows = sum(1 for line in lines if line.count("|") >= 2 or line.count("\t") >= 2)
    column_rows = sum(1 for line in lines if _COLUMN_GAP.search(line))
    return {
        "has_tables": table_rows >= _MIN_TABLE_ROWS,
        "has_multi_column": column_rows >= _MIN_COLUMN_ROWS,
        "has_images": bool(_IMAGE_MARKERS.search(text or "")),
        "has_odd_glyphs": bool(_ODD_GLYPHS.search(text or "")),
        "long_lines": sum(1 for line in lines if len(line) > _LONG_LINE_CHARS),
    }


class FormatAnalyzer(BaseAnalyzer):
    """Text-level ATS safety: 100 minus a penalty per detected layout risk."""

    name = "format_parseability"

    _CHECKS = (
        ("has_tables", "tables_penalty", 20, "Tables detected; ATS may not parse them correctly."),
        ("has_multi_column", "multi_column_penalty", 15, "Multi-column layout detected; content order may be lost."),
        ("has_images", "images_penalty", 10, "Images detected; ATS ignores them."),
        ("has_odd_glyphs", "odd_glyphs_penalty", 5, "Unusual characters detected; may cause encoding issues."),
    )

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        if not data.resume_text.strip():
            return self.create_failed_result("Resume text is empty.")

        report = format_report(data.resume_text)
        score = 100.0
        issues: list[str] = []
        for flag, penalty_key, default, message in self._CHECKS:
            if report[flag]:
                score -= float(get_scoring_value(f"format.{penalty_key}", default))
                issues.append(message)
        if report["long_lines"]:
            score -= float(get_scoring_value("format.long_lines_penalty", 5))
            issues.append("Very long lines detected; consider shorter bullets.")

        confidence = 0.9 if data.resume is not None else 0.8
        return self.create_result(score, {**report, "issues": issues}, confidence)
