from .engine import ATSScoringEngine, degraded_score, get_engine, score, score_delta, score_with_timeout

__all__ = [
    "ATSScoringEngine",
    "degraded_score",
    "get_engine",
    "score",
    "score_delta",
    "score_with_timeout",
]
