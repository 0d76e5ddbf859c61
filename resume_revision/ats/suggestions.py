from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from typing import Any, Callable

from resume_revision.core.config.scoring import get_scoring_value
from resume_revision.schemas.ats import SUBSCORE_KEYS, SubScores, Suggestion

from .analyzers.base import AnalyzerResult

logger = logging.getLogger(__name__)

Evidence = dict[str, Any]


@dataclass(frozen=True)
class SuggestionTemplate:
    text: str
    category: str
    estimated_gain: int
    quick_win: bool = False
    condition: Callable[[Evidence], bool] | None = None


def _has(key: str) -> Callable[[Evidence], bool]:
    return lambda evidence: bool(evidence.get(key))


TEMPLATES: dict[str, tuple[SuggestionTemplate, ...]] = {
    "keyword_exact": (
        SuggestionTemplate(
            "Add the missing keywords {keywords} where they truthfully describe your experience.",
            "keywords",
            30,
            quick_win=True,
            condition=_has("missing"),
        ),
        SuggestionTemplate(
            "List '{keyword}' in your skills section using the job's exact wording.",
            "keywords",
            15,
            quick_win=True,
            condition=_has("missing"),
        ),
    ),
    "keyword_phrase": (
        SuggestionTemplate(
            "Use the phrase '{phrase}' from the job description in a relevant bullet.",
            "keywords",
            20,
            quick_win=True,
            condition=_has("missing"),
        ),
    ),
    "semantic_relevance": (
        SuggestionTemplate(
            "Rewrite your summary so it speaks directly to the role's core responsibilities.",
            "content",
            20,
        ),
        SuggestionTemplate(
            "Describe your projects and achievements with the domain vocabulary of the posting.",
            "content",
            15,
        ),
    ),
    "title_alignment": (
        SuggestionTemplate(
            "Align your headline with the target title '{target_title}'.",
            "content",
            25,
            quick_win=True,
            condition=_has("target_title"),
        ),
        SuggestionTemplate(
            "Make your seniority explicit so it reads as a fit for a {target_seniority}-level role.",
            "content",
            10,
            condition=lambda evidence: bool(evidence.get("target_seniority")) and evidence.get("seniority_match") is False,
        ),
    ),
    "metrics_presence": (
        SuggestionTemplate(
            "Quantify at least {count} achievements with numbers, percentages or amounts.",
            "metrics",
            30,
        ),
        SuggestionTemplate(
            "Add one measurable result to every role that currently has none.",
            "metrics",
            15,
            quick_win=True,
            condition=lambda evidence: any(int(role.get("count", 0)) == 0 for role in evidence.get("metrics_per_role", [])),
        ),
    ),
    "section_completeness": (
        SuggestionTemplate(
            "Add a {section} section.",
            "structure",
            25,
            quick_win=True,
            condition=_has("missing"),
        ),
        SuggestionTemplate(
            "Flesh out thin sections: a 50-150 word summary and at least five skills.",
            "structure",
            10,
        ),
    ),
    "format_parseability": (
        SuggestionTemplate(
            "Switch to a single-column layout without tables.",
            "formatting",
            20,
            condition=lambda evidence: bool(evidence.get("has_tables") or evidence.get("has_multi_column")),
        ),
        SuggestionTemplate(
            "Remove images and graphics; applicant tracking systems skip them.",
            "formatting",
            10,
            quick_win=True,
            condition=_has("has_images"),
        ),
        SuggestionTemplate(
            "Replace special characters and symbols with plain text.",
            "formatting",
            5,
            quick_win=True,
            condition=_has("has_odd_glyphs"),
        ),
        SuggestionTemplate(
            "Break very long lines into short, scannable bullets.",
            "formatting",
            5,
            quick_win=True,
            condition=_has("long_lines"),
        ),
    ),
    "recency_fit": (
        SuggestionTemplate(
            "Surface the job's key requirements in your most recent role.",
            "content",
            20,
        ),
    ),
}


def _template_data(subscore: str, evidence: Evidence) -> tuple[dict[str, Any], list[str]]:
    data: dict[str, Any] = {}
    extra_targets: list[str] = []
    missing = [str(item) for item in evidence.get("missing") or []]
    if subscore == "keyword_exact" and missing:
        data["keyword"] = missing[0]
        data["keywords"] = ", ".join(missing[:5])
        extra_targets = missing[:5]
    elif subscore == "keyword_phrase" and missing:
        data["phrase"] = missing[0]
        extra_targets = missing[:1]
    elif subscore == "title_alignment":
        data["target_title"] = evidence.get("target_title") or ""
        data["target_seniority"] = evidence.get("target_seniority") or "mid"
    elif subscore == "metrics_presence":
        ideal = int(evidence.get("ideal_metrics") or 3)
        data["count"] = max(1, ideal - int(evidence.get("total_metrics") or 0))
    elif subscore == "section_completeness" and missing:
        data["section"] = missing[0]
        extra_targets = missing[:1]
    return data, extra_targets


def _suggestion_id(subscore: str, text: str) -> str:
    return f"{subscore}_{hashlib.sha1(text.encode('utf-8')).hexdigest()[:10]}"


def generate_suggestions(
    subscores: SubScores,
    results: dict[str, AnalyzerResult | None],
    weights: dict[str, float],
) -> list[Suggestion]:
    """Ranked, deduplicated suggestions for every sub-score below the normal threshold."""
    normal = int(get_scoring_value("suggestions.normal_threshold", 70))
    urgent = int(get_scoring_value("suggestions.urgent_threshold", 50))
    min_gain = float(get_scoring_value("suggestions.min_gain", 1))
    max_suggestions = int(get_scoring_value("suggestions.max_suggestions", 10))
    quick_win_min = int(get_scoring_value("suggestions.quick_win_min_gain", 2))
    scaling = float(get_scoring_value("suggestions.gain_scaling", 1.0))

    values = subscores.model_dump()
    gaps = [key for key in SUBSCORE_KEYS if values[key] < normal]
    gaps.sort(key=lambda key: (values[key] >= urgent, -weights.get(key, 0.0)))

    merged: dict[tuple[str, tuple[str, ...]], Suggestion] = {}
    for subscore in gaps:
        result = results.get(subscore)
        if result is None or not result.usable:
            continue
        evidence = result.evidence
        data, extra_targets = _template_data(subscore, evidence)
        gap = 100 - values[subscore]
        for template in TEMPLATES.get(subscore, ()):
            if template.condition is not None and not template.condition(evidence):
                continue
            try:
                text = template.text.format(**data)
            except KeyError as exc:
                logger.warning("ats_suggestion_template_failed subscore=%s missing=%s", subscore, exc)
                continue

            raw_gain = min(template.estimated_gain, gap) * weights.get(subscore, 0.0) * scaling
            if raw_gain < min_gain:
                continue
            gain = max(1, int(round(raw_gain)))
            targets = sorted({subscore, *extra_targets})
            key = (template.category, tuple(targets))
            candidate = Suggestion(
                id=_suggestion_id(subscore, text),
                text=text,
                estimated_gain=gain,
                quick_win=template.quick_win and gain >= quick_win_min,
                category=template.category,
                targets=targets,
            )
            existing = merged.get(key)
            if existing is None:
                merged[key] = candidate
                continue
            # Same gap: keep the stronger wording, its gain and either quick-win flag.
            keep = candidate if candidate.estimated_gain > existing.estimated_gain else existing
            merged[key] = keep.model_copy(update={"quick_win": existing.quick_win or candidate.quick_win})

    ranked = sorted(merged.values(), key=lambda item: (item.estimated_gain, item.quick_win), reverse=True)
    return ranked[:max_suggestions]


def fallback_suggestions(missing_keywords: list[str], limit: int = 5, gain: int = 3) -> list[Suggestion]:
    suggestions: list[Suggestion] = []
    for keyword in missing_keywords[:limit]:
        text = f"Add '{keyword}' where it accurately reflects your experience."
        suggestions.append(
            Suggestion(
                id=_suggestion_id("fallback", text),
                text=text,
                estimated_gain=gain,
                quick_win=True,
                category="keywords",
                targets=[keyword],
            )
        )
    return suggestions
