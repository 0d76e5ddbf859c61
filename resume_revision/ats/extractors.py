from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field

from resume_revision.normalize.utils import (
    STOPWORDS,
    contains_any,
    dedupe_preserve_order,
    normalize_line,
    strip_bullet_prefix,
    tokenize,
)
from resume_revision.schemas.resume import ResumeDocument

_MUST_HEADERS = (
    "required qualifications",
    "required skills",
    "minimum qualifications",
    "requirements",
    "must have",
    "must-have",
    "essential skills",
    "what you bring",
)
_NICE_HEADERS = (
    "preferred qualifications",
    "preferred skills",
    "nice to have",
    "nice-to-have",
    "bonus",
    "desirable",
)
_RESPONSIBILITY_HEADERS = (
    "responsibilities",
    "duties",
    "what you will do",
    "what you'll do",
    "your role",
    "day to day",
)
_TITLE_PATTERNS = (
    re.compile(r"(?:position|role|title|job)\s*:\s*([^\n]+)", re.IGNORECASE),
    re.compile(r"we are (?:looking for|hiring|seeking) (?:a|an)\s+([^\n.,]+)", re.IGNORECASE),
)
_RESUME_TITLE_PATTERN = re.compile(r"^([A-Z][A-Za-z]+(?:\s+[A-Z][A-Za-z]+){0,4})\s+(?:at|@|\|)\s", re.MULTILINE)
_HEADER_LINE = re.compile(r"^[A-Za-z][A-Za-z '\-/]{1,40}:?$")

_SENIORITY_MARKERS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("principal", ("principal", "distinguished", "director", "head of")),
    ("lead", ("lead", "staff", "manager")),
    ("senior", ("senior", "sr.", "sr ")),
    ("junior", ("junior", "jr.", "jr ", "entry level", "entry-level", "intern", "graduate")),
)
SENIORITY_LEVELS = {"junior": 1, "mid": 2, "senior": 3, "lead": 4, "principal": 5}

MAX_MUST_HAVE = 20
MAX_NICE_TO_HAVE = 15
MAX_RESPONSIBILITIES = 10


@dataclass(frozen=True)
class JobExtraction:
    title: str = ""
    seniority: str = "mid"
    must_have: list[str] = field(default_factory=list)
    nice_to_have: list[str] = field(default_factory=list)
    responsibilities: list[str] = field(default_factory=list)

    def completeness(self) -> tuple[float, list[str]]:
        missing = [
            name
            for name, value in (
                ("title", self.title),
                ("must_have", self.must_have),
                ("responsibilities", self.responsibilities),
            )
            if not value
        ]
        return (3 - len(missing)) / 3, missing


def detect_seniority(text: str) -> str:
    lowered = f" {(text or '').lower()} "
    for level, markers in _SENIORITY_MARKERS:
        if any(marker in lowered for marker in markers):
            return level
    return "mid"


def _header_kind(line: str) -> str | None:
    stripped = normalize_line(line)
    if not stripped or len(stripped) > 45 or not _HEADER_LINE.match(stripped):
        return None
    header = stripped.lower().rstrip(":").strip()
    explicit = stripped.endswith(":") or stripped.isupper()
    for kind, markers in (("nice", _NICE_HEADERS), ("must", _MUST_HEADERS), ("responsibilities", _RESPONSIBILITY_HEADERS)):
        if header in markers or (explicit and contains_any(header, markers)):
            return kind
    return "other" if explicit else None


def _title_from_text(text: str) -> str:
    for pattern in _TITLE_PATTERNS:
        match = pattern.search(text)
        if match:
            return normalize_line(match.group(1))
    for line in text.splitlines():
        stripped = normalize_line(line)
        if stripped:
            return stripped[:120]
    return ""


def extract_keywords(text: str, limit: int = 20) -> list[str]:
    tokens = [token for token in tokenize(text) if len(token) > 2 and token not in STOPWORDS and not token.isdigit()]
    counts = Counter(tokens)
    ordered = dedupe_preserve_order(tokens)
    ordered.sort(key=lambda token: counts[token], reverse=True)
    return ordered[:limit]


def extract_job_data(job_text: str, title: str | None = None) -> JobExtraction:
    """Split a job posting into title, seniority, requirement lists and responsibilities."""
    must: list[str] = []
    nice: list[str] = []
    responsibilities: list[str] = []
    section: str | None = None

    for raw_line in (job_text or "").splitlines():
        stripped = normalize_line(raw_line)
        if not stripped:
            continue
        kind = _header_kind(stripped)
        if kind is not None:
            section = kind
            continue
        item = strip_bullet_prefix(stripped)
        if len(item) <= 2 or len(item) >= 300:
            continue
        if section == "must":
            must.append(item)
        elif section == "nice":
            nice.append(item)
        elif section == "responsibilities":
            responsibilities.append(item)

    job_title = normalize_line(title or "") or _title_from_text(job_text or "")
    if not must:
        must = extract_keywords(job_text or "", limit=MAX_MUST_HAVE)

    return JobExtraction(
        title=job_title,
        seniority=detect_seniority(job_title) if job_title else detect_seniority(job_text or ""),
        must_have=dedupe_preserve_order(must)[:MAX_MUST_HAVE],
        nice_to_have=dedupe_preserve_order(nice)[:MAX_NICE_TO_HAVE],
        responsibilities=responsibilities[:MAX_RESPONSIBILITIES],
    )


def extract_resume_titles(resume_text: str, resume: ResumeDocument | None = None) -> list[str]:
    """Job titles, most recent first."""
    if resume is not None:
        return [entry.title.strip() for entry in resume.experience if entry.title.strip()]
    titles = [normalize_line(match.group(1)) for match in _RESUME_TITLE_PATTERN.finditer(resume_text or "")]
    return titles[:10]
