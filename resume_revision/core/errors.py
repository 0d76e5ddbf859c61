from __future__ import annotations

from resume_revision.core.quota_guard import QuotaExceededError

__all__ = [
    "AnalyzerFailure",
    "OracleError",
    "OracleFailure",
    "OracleTimeout",
    "QuotaExceededError",
    "ScoringUnavailable",
]


class AnalyzerFailure(RuntimeError):
    """A single analyzer raised or produced an unusable result."""

    def __init__(self, analyzer: str, message: str):
        super().__init__(f"{analyzer}: {message}")
        self.analyzer = analyzer


class ScoringUnavailable(RuntimeError):
    def __init__(self, message: str = "No analyzer produced a usable score."):
        super().__init__(message)


class OracleError(RuntimeError):
    code = "retry_later"
    status_code = 503

    def __init__(self, message: str, *, code: str | None = None, status_code: int | None = None):
        super().__init__(message)
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code


class OracleTimeout(OracleError):
    def __init__(self, message: str = "Change oracle timed out."):
        super().__init__(message, code="retry_later", status_code=503)


class OracleFailure(OracleError):
    pass
