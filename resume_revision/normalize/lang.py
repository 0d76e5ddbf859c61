from __future__ import annotations

import re

from resume_revision.schemas.resume import LanguageTag

DEFAULT_LANGUAGE = "en"
RTL_LANGUAGE_CODES = frozenset({"ar", "he", "fa", "ur"})

# Ordered: script-specific ranges first, plain latin last.
_LANGUAGE_RULES: tuple[tuple[str, re.Pattern[str]], ...] = (
    ("he", re.compile(r"[֐-׿]")),
    ("ar", re.compile(r"[؀-ۿ]")),
    ("fa", re.compile(r"[ݐ-ݿࢠ-ࣿ]")),
    ("ru", re.compile(r"[Ѐ-ӿ]")),
    ("de", re.compile(r"[äöüßÄÖÜ]")),
    ("es", re.compile(r"[áéíóúñÁÉÍÓÚÑ]")),
    ("en", re.compile(r"[A-Za-z]")),
)
_LETTER_RE = re.compile(
    r"[A-Za-zÀ-ɏЀ-ӿ֐-׿؀-ۿݐ-ݿࢠ-ࣿ]"
)
_MARKER_WORDS = {
    "de": re.compile(r"\b(und|der|die|das|nicht|mit|für|ist|sind|bei|von)\b", re.IGNORECASE),
    "es": re.compile(r"\b(y|el|la|los|las|de|en|con|para|del|por)\b", re.IGNORECASE),
}
_MIN_ACCENTED_LETTERS = 3


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def detect_language(text: str, default_language: str = DEFAULT_LANGUAGE) -> LanguageTag:
    sanitized = (text or "").strip()
    default_rtl = default_language in RTL_LANGUAGE_CODES
    if not sanitized:
        return LanguageTag(lang=default_language, confidence=0.0, rtl=default_rtl)

    total_letters = len(_LETTER_RE.findall(sanitized))
    if not total_letters:
        return LanguageTag(lang=default_language, confidence=0.2, rtl=default_rtl)

    counts: dict[str, int] = {}
    for code, pattern in _LANGUAGE_RULES:
        count = len(pattern.findall(sanitized))
        if count:
            counts[code] = count

    # Accented letters are a small share of latin text; when enough of them (or the
    # language's function words) show up, the latin count is credited to that language.
    latin = counts.get("en", 0)
    accented = [
        code
        for code in ("de", "es")
        if counts.get(code)
        and (counts[code] >= _MIN_ACCENTED_LETTERS or _MARKER_WORDS[code].search(sanitized))
    ]
    for code in ("de", "es"):
        if code not in accented:
            counts.pop(code, None)
    if accented:
        winner = max(accented, key=lambda code: counts[code])
        credited = latin + counts[winner]
        for code in accented:
            counts.pop(code, None)
        counts[winner] = credited
        counts.pop("en", None)

    if not counts:
        return LanguageTag(lang=default_language, confidence=0.25, rtl=default_rtl)

    ranked = sorted(counts.items(), key=lambda item: item[1], reverse=True)
    primary_code, primary_count = ranked[0]
    primary_ratio = primary_count / total_letters
    secondary_ratio = ranked[1][1] / total_letters if len(ranked) > 1 else 0.0

    likely_mixed = len(ranked) > 1 and secondary_ratio >= 0.25 and abs(primary_ratio - secondary_ratio) <= 0.2
    if likely_mixed:
        lang = "mixed"
        rtl = any(code in RTL_LANGUAGE_CODES for code, _ in ranked[:2])
        confidence = _clamp((primary_ratio + secondary_ratio) / 1.5, 0.4, 0.65)
    else:
        lang = primary_code
        rtl = primary_code in RTL_LANGUAGE_CODES
        if primary_ratio >= 0.75:
            confidence = 0.92
        elif primary_ratio >= 0.55:
            confidence = 0.78
        elif primary_ratio >= 0.35:
            confidence = 0.62
        else:
            confidence = 0.45

    if total_letters < 6:
        confidence = min(confidence, 0.6)

    return LanguageTag(lang=lang, confidence=round(confidence, 2), rtl=rtl, source="heuristic")
