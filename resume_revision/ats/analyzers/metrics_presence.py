from __future__ import annotations

import re

from resume_revision.core.config.scoring import get_scoring_value

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer

METRIC_PATTERN = re.compile(
    r"(?:\d+(?:\.\d+)?\s*%"
    r"|[$€£]\s?\d[\d,]*(?:\.\d+)?\s*[kmb]?\b"
    r"|#\d+"
    r"|\b\d+(?:\.\d+)?\s*x\b"
    r"|\b\d+(?:\.\d+)?\s*[kmb]\b"
    r"|\b\d[\d,]*\+?\s+(?:users|customers|clients|people|engineers|projects|services|hours|days|weeks|months|requests|transactions|countries|teams|members|reports)\b)",
    re.IGNORECASE,
)


def find_metrics(text: str) -> list[str]:
    return [match.group(0).strip() for match in METRIC_PATTERN.finditer(text or "")]


class MetricsAnalyzer(BaseAnalyzer):
    name = "metrics_presence"

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        metrics = find_metrics(data.resume_text)
        per_role: list[dict[str, object]] = []
        if data.resume is not None:
            for entry in data.resume.experience:
                role_text = " ".join([entry.title, entry.company, *entry.achievements])
                per_role.append({"role": f"{entry.title} at {entry.company}", "count": len(find_metrics(role_text))})

        minimum = int(get_scoring_value("metrics.min_total_metrics", 3))
        per_role_ideal = int(get_scoring_value("metrics.ideal_metrics_per_role", 2))
        bonus_max = float(get_scoring_value("metrics.distribution_bonus_max", 20))

        ideal = len(data.resume.experience) * per_role_ideal if data.resume is not None else minimum
        coverage = self.lerp(len(metrics), 0, max(ideal, minimum))

        bonus = 0.0
        if per_role:
            with_metrics = sum(1 for role in per_role if int(role["count"]) > 0)
            bonus = with_metrics / len(per_role) * bonus_max

        score = 0.0 if not metrics else min(100.0, coverage + bonus)
        return self.create_result(
            score,
            {
                "total_metrics": len(metrics),
                "examples": metrics[:10],
                "metrics_per_role": per_role,
                "ideal_metrics": ideal,
            },
            self.calculate_confidence(has_required_data=True),
        )
