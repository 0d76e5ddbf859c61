from __future__ import annotations

import re

from resume_revision.schemas.resume import ResumeDocument

_MATCH_STRIP_RE = re.compile(r"[^a-z0-9\s]")
_PUNCT_RE = re.compile(r"[^\w\s]")
_WHITESPACE_RE = re.compile(r"\s+")
_ALPHA_TOKEN_RE = re.compile(r"[A-Za-z]+")
_BULLET_CHARS = "•◦▪▫●○■□◆◇▶►-–—*·"
_BULLET_PATTERN = re.compile(rf"^\s*(?:[{re.escape(_BULLET_CHARS)}]|(?:\d+[\.\)]))\s+")

STOPWORDS = {
    # Articles, pronouns, determiners
    "the", "and", "for", "with", "that", "this", "your", "you", "from", "into", "our", "are",
    "its", "his", "her", "their", "they", "them", "these", "those", "which", "what", "who",
    "where", "when", "how", "why", "each", "every", "both", "few", "many", "much", "some",
    "any", "all", "most", "other", "such", "than", "then",
    # Modals and auxiliaries
    "will", "must", "have", "has", "had", "can", "could", "would", "should", "shall", "may",
    "might", "been", "being", "was", "were", "did", "does", "not", "also", "very", "just",
    # Prepositions and conjunctions
    "but", "about", "above", "after", "before", "between", "during", "under", "over",
    "through", "while", "since", "because", "here", "there", "again",
    # Job-posting filler
    "job", "role", "team", "work", "using", "use", "experience", "ability", "strong",
    "required", "preferred", "skills", "skill", "years", "year", "plus", "including",
    "looking", "join", "help", "like", "well", "within", "across",
}


def strip_bullet_prefix(line: str) -> str:
    return _BULLET_PATTERN.sub("", line).strip()


def contains_any(text: str, markers: tuple[str, ...]) -> bool:
    lowered = text.lower()
    return any(marker in lowered for marker in markers)


def normalize_line(line: str) -> str:
    return _WHITESPACE_RE.sub(" ", line or "").strip()


def normalize_for_match(text: str) -> str:
    """Lowercase, drop everything outside [a-z0-9\\s] and collapse whitespace."""
    lowered = (text or "").lower()
    return normalize_line(_MATCH_STRIP_RE.sub("", lowered))


def normalize_text(text: str) -> str:
    lowered = (text or "").lower()
    return normalize_line(_PUNCT_RE.sub(" ", lowered))


def tokenize(text: str) -> list[str]:
    normalized = normalize_text(text)
    if not normalized:
        return []
    return normalized.split(" ")


def alpha_tokens(text: str) -> list[str]:
    return [token.lower() for token in _ALPHA_TOKEN_RE.findall(text or "")]


def extract_ngrams(text: str, n: int) -> list[str]:
    tokens = tokenize(text)
    if n <= 0 or len(tokens) < n:
        return []
    return [" ".join(tokens[idx : idx + n]) for idx in range(0, len(tokens) - n + 1)]


def word_count(text: str) -> int:
    return len((text or "").split())


def dedupe_preserve_order(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        key = item.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(item)
    return result


def resume_to_text(document: ResumeDocument) -> str:
    """Flatten a structured resume into the plain text the analyzers consume."""
    lines: list[str] = []
    contact = document.contact
    header = [value for value in (contact.name, contact.email, contact.phone, contact.location) if value]
    if header:
        lines.append(" | ".join(header))
    lines.extend(link for link in contact.links if link)

    if document.summary.strip():
        lines.extend(["", "Summary", document.summary.strip()])

    technical = [skill for skill in document.skills.technical if skill]
    soft = [skill for skill in document.skills.soft if skill]
    if technical or soft:
        lines.extend(["", "Skills"])
        if technical:
            lines.append(", ".join(technical))
        if soft:
            lines.append(", ".join(soft))

    if document.experience:
        lines.extend(["", "Experience"])
        for entry in document.experience:
            dates = " - ".join(value for value in (entry.start_date, entry.end_date) if value)
            title_line = " at ".join(value for value in (entry.title, entry.company) if value)
            if dates:
                title_line = f"{title_line} ({dates})" if title_line else dates
            if title_line:
                lines.append(title_line)
            lines.extend(f"- {achievement}" for achievement in entry.achievements if achievement)

    if document.education:
        lines.extend(["", "Education"])
        for entry in document.education:
            parts = [entry.degree, entry.field, entry.institution, entry.graduation_date]
            text = ", ".join(part for part in parts if part)
            if text:
                lines.append(text)

    if document.projects:
        lines.extend(["", "Projects"])
        for project in document.projects:
            text = ": ".join(part for part in (project.name, project.description) if part)
            if project.technologies:
                text = f"{text} ({', '.join(project.technologies)})" if text else ", ".join(project.technologies)
            if text:
                lines.append(f"- {text}")

    if document.certifications:
        lines.extend(["", "Certifications"])
        lines.extend(f"- {cert}" for cert in document.certifications if cert)

    return "\n".join(lines).strip()
