from __future__ import annotations

import asyncio
import logging
import time
from datetime import datetime, timezone
from functools import lru_cache

from resume_revision.core.config.scoring import get_scoring_value, get_subscore_weights
from resume_revision.core.errors import AnalyzerFailure, ScoringUnavailable
from resume_revision.normalize.utils import alpha_tokens, dedupe_preserve_order
from resume_revision.schemas.ats import SUBSCORE_KEYS, ATSScoreMetadata, ATSScoreOutput, ScoreDelta
from resume_revision.schemas.resume import ResumeDocument

from .aggregator import aggregate_scores
from .analyzers import AnalyzerInput, AnalyzerResult, BaseAnalyzer, default_analyzers
from .cache import ScoreCache, score_cache_key
from .confidence import estimate_confidence
from .extractors import extract_job_data
from .suggestions import fallback_suggestions, generate_suggestions

logger = logging.getLogger(__name__)

ENGINE_VERSION = 2


def _elapsed_ms(started: float) -> int:
    return max(0, int((time.perf_counter() - started) * 1000))


def _clamp_score(value: float) -> int:
    return max(0, min(100, int(round(value))))


def degraded_score(
    resume_text_before: str,
    resume_text_after: str,
    job_description_text: str,
    *,
    warnings: list[str] | None = None,
) -> ATSScoreOutput:
    """Keyword-overlap estimate used when the full analyzer pass is unavailable."""
    started = time.perf_counter()
    min_length = int(get_scoring_value("fallback.min_keyword_length", 4))
    max_keywords = int(get_scoring_value("fallback.max_keywords", 50))
    original_base = float(get_scoring_value("fallback.original_base", 40))
    optimized_base = float(get_scoring_value("fallback.optimized_base", 45))
    span = float(get_scoring_value("fallback.ratio_span", 45))
    min_improvement = int(get_scoring_value("fallback.min_improvement", 5))

    keywords = dedupe_preserve_order(
        [token for token in alpha_tokens(job_description_text) if len(token) >= min_length]
    )[:max_keywords]

    def ratio(text: str) -> float:
        if not keywords:
            return 0.0
        tokens = set(alpha_tokens(text))
        return sum(1 for keyword in keywords if keyword in tokens) / len(keywords)

    original = _clamp_score(original_base + ratio(resume_text_before) * span)
    optimized = _clamp_score(max(original + min_improvement, optimized_base + ratio(resume_text_after) * span))

    after_tokens = set(alpha_tokens(resume_text_after))
    missing = [keyword for keyword in keywords if keyword not in after_tokens]
    return ATSScoreOutput(
        ats_score_original=original,
        ats_score_optimized=optimized,
        subscores=None,
        subscores_original=None,
        suggestions=fallback_suggestions(missing),
        confidence=float(get_scoring_value("fallback.confidence", 0.5)),
        metadata=ATSScoreMetadata(
            version=ENGINE_VERSION,
            processing_time_ms=_elapsed_ms(started),
            warnings=list(warnings or []),
            missing_keywords=missing[:10],
            degraded=True,
        ),
    )


class ATSScoringEngine:
    def __init__(
        self,
        analyzers: list[BaseAnalyzer] | None = None,
        weights: dict[str, float] | None = None,
        cache: ScoreCache | None = None,
    ) -> None:
        self.analyzers = analyzers if analyzers is not None else default_analyzers()
        self.weights = weights or get_subscore_weights()
        self.cache = cache

    @staticmethod
    def _analyze(analyzer: BaseAnalyzer, data: AnalyzerInput) -> AnalyzerResult:
        try:
            result = analyzer.analyze(data)
        except Exception as exc:
            raise AnalyzerFailure(analyzer.name, f"failed: {exc}") from exc
        if not result.usable:
            raise AnalyzerFailure(
                analyzer.name,
                f"unusable result (score={result.score}, confidence={result.confidence})",
            )
        return result

    def _run_analyzer(self, analyzer: BaseAnalyzer, data: AnalyzerInput, warnings: list[str]) -> AnalyzerResult | None:
        try:
            return self._analyze(analyzer, data)
        except AnalyzerFailure as exc:
            logger.warning("ats_analyzer_failed analyzer=%s: %s", exc.analyzer, exc)
            warnings.append(f"Analyzer {exc}")
            return None

    def _run_all(self, data: AnalyzerInput, warnings: list[str]) -> dict[str, AnalyzerResult | None]:
        results: dict[str, AnalyzerResult | None] = {}
        for analyzer in self.analyzers:
            results[analyzer.name] = self._run_analyzer(analyzer, data, warnings)
        return results

    def score(
        self,
        resume_text_before: str,
        resume_text_after: str,
        job_description_text: str,
        *,
        resume_before: ResumeDocument | None = None,
        resume_after: ResumeDocument | None = None,
        job_title: str | None = None,
    ) -> ATSScoreOutput:
        started = time.perf_counter()
        cache_key = score_cache_key(
            resume_text_before,
            resume_text_after,
            job_description_text,
            job_title,
            resume_before.model_dump_json() if resume_before is not None else None,
            resume_after.model_dump_json() if resume_after is not None else None,
        )
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                cached.metadata.cache_hit = True
                cached.metadata.processing_time_ms = _elapsed_ms(started)
                return cached

        job_data = extract_job_data(job_description_text, title=job_title)
        now = datetime.now(timezone.utc)
        before_warnings: list[str] = []
        after_warnings: list[str] = []
        results_before = self._run_all(
            AnalyzerInput(resume_text_before, job_description_text, job_data, resume_before, now), before_warnings
        )
        results_after = self._run_all(
            AnalyzerInput(resume_text_after, job_description_text, job_data, resume_after, now), after_warnings
        )

        try:
            aggregate_before = aggregate_scores(results_before, self.weights)
            aggregate_after = aggregate_scores(results_after, self.weights)
        except ScoringUnavailable as exc:
            logger.warning("ats_scoring_unavailable: %s", exc)
            return degraded_score(
                resume_text_before,
                resume_text_after,
                job_description_text,
                warnings=[*after_warnings, "All analyzers failed; degraded scoring used."],
            )

        completeness, missing_fields = job_data.completeness()
        confidence = estimate_confidence(
            results_after,
            total_analyzers=len(SUBSCORE_KEYS),
            job_completeness=completeness,
            resume_text=resume_text_after,
            job_text=job_description_text,
        )
        warnings = dedupe_preserve_order([*before_warnings, *after_warnings])
        if missing_fields:
            warnings.append(f"Incomplete job description extraction: missing {', '.join(missing_fields)}")

        keyword_result = results_after.get("keyword_exact")
        missing_keywords = list(keyword_result.evidence.get("missing", []))[:10] if keyword_result is not None else []
        failed = [key for key in SUBSCORE_KEYS if key in aggregate_after.failed or key in aggregate_before.failed]

        output = ATSScoreOutput(
            ats_score_original=aggregate_before.score,
            ats_score_optimized=aggregate_after.score,
            subscores=aggregate_after.subscores,
            subscores_original=aggregate_before.subscores,
            suggestions=generate_suggestions(aggregate_after.subscores, results_after, self.weights),
            confidence=confidence,
            metadata=ATSScoreMetadata(
                version=ENGINE_VERSION,
                processing_time_ms=_elapsed_ms(started),
                analyzers_used=[name for name, result in results_after.items() if result is not None],
                failed_analyzers=failed,
                warnings=warnings,
                missing_keywords=missing_keywords,
            ),
        )
        if self.cache is not None:
            self.cache.put(cache_key, output)
        return output

    async def score_with_timeout(
        self,
        resume_text_before: str,
        resume_text_after: str,
        job_description_text: str,
        *,
        timeout_s: float,
        resume_before: ResumeDocument | None = None,
        resume_after: ResumeDocument | None = None,
        job_title: str | None = None,
    ) -> ATSScoreOutput:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self.score,
                    resume_text_before,
                    resume_text_after,
                    job_description_text,
                    resume_before=resume_before,
                    resume_after=resume_after,
                    job_title=job_title,
                ),
                timeout=timeout_s,
            )
        except asyncio.TimeoutError:
            logger.warning("ats_scoring_timeout timeout_s=%s", timeout_s)
            warning = f"Scoring timed out after {timeout_s}s; degraded scoring used."
        except Exception as exc:
            logger.exception("ats_scoring_failed: %s", exc)
            warning = "Scoring failed; degraded scoring used."
        return degraded_score(resume_text_before, resume_text_after, job_description_text, warnings=[warning])


def score_delta(output: ATSScoreOutput, baseline: int | None) -> ScoreDelta:
    current = output.ats_score_optimized
    return ScoreDelta(
        score=current,
        before=baseline,
        delta=current - baseline if baseline is not None else None,
        missing_keywords=list(output.metadata.missing_keywords),
        recommendations=[suggestion.text for suggestion in output.suggestions[:5]],
    )


@lru_cache(maxsize=1)
def get_engine() -> ATSScoringEngine:
    return ATSScoringEngine(cache=ScoreCache(int(get_scoring_value("cache.max_entries", 256))))


def score(
    resume_text_before: str,
    resume_text_after: str,
    job_description_text: str,
    *,
    resume_before: ResumeDocument | None = None,
    resume_after: ResumeDocument | None = None,
    job_title: str | None = None,
) -> ATSScoreOutput:
    return get_engine().score(
        resume_text_before,
        resume_text_after,
        job_description_text,
        resume_before=resume_before,
        resume_after=resume_after,
        job_title=job_title,
    )


async def score_with_timeout(
    resume_text_before: str,
    resume_text_after: str,
    job_description_text: str,
    *,
    timeout_s: float,
    resume_before: ResumeDocument | None = None,
    resume_after: ResumeDocument | None = None,
    job_title: str | None = None,
) -> ATSScoreOutput:
    return await get_engine().score_with_timeout(
        resume_text_before,
        resume_text_after,
        job_description_text,
        timeout_s=timeout_s,
        resume_before=resume_before,
        resume_after=resume_after,
        job_title=job_title,
    )
