from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from resume_revision.matching.similarity import CONTAINMENT_MIN_CHARS, bullet_similarity
from resume_revision.normalize.utils import normalize_for_match
from resume_revision.schemas.changes import ApplyResult, ChangeOutcome, ProposedChange
from resume_revision.schemas.resume import ResumeDocument

logger = logging.getLogger(__name__)

_SUMMARY_SCOPES = {"paragraph", "section"}
_FORWARDED_SCOPES = {"style", "layout"}
_POINTER_PATTERNS = (
    re.compile(r"^/?experience/(\d+)(?:/|$)"),
    re.compile(r"^experience\[(\d+)\]"),
)


@dataclass(frozen=True)
class _BulletLocation:
    entry_index: int
    bullet_index: int
    exact: bool
    rank: float


def _target(entry_index: int, bullet_index: int) -> str:
    return f"experience[{entry_index}].achievements[{bullet_index}]"


def _outcome(change: ProposedChange, applied: bool, status: str, target: str | None, reason: str) -> ChangeOutcome:
    if not applied and status == "not_applicable":
        logger.debug("diff_change_not_applicable change_id=%s reason=%s", change.id, reason)
    return ChangeOutcome(change_id=change.id, applied=applied, status=status, target=target, reason=reason)


def pointer_experience_index(change: ProposedChange) -> int | None:
    """Experience entry named by the change metadata, if any."""
    metadata = change.metadata
    if metadata.experience_index is not None:
        return metadata.experience_index
    pointer = (metadata.pointer or "").strip()
    for pattern in _POINTER_PATTERNS:
        match = pattern.match(pointer)
        if match:
            return int(match.group(1))
    return None


def _apply_summary_change(document: ResumeDocument, change: ProposedChange) -> ChangeOutcome:
    before = change.before
    summary = document.summary
    if not before:
        return _outcome(change, False, "not_applicable", "summary", "empty_before")
    if change.after and change.after in summary and (before not in summary or before in change.after):
        return _outcome(change, False, "not_applicable", "summary", "already_applied")
    if before not in summary:
        return _outcome(change, False, "not_applicable", "summary", "before_not_found")
    document.summary = summary.replace(before, change.after, 1)
    return _outcome(change, True, "applied", "summary", "replaced")


def _scan_order(document: ResumeDocument, preferred: int | None) -> list[list[int]]:
    indices = list(range(len(document.experience)))
    if preferred is not None and 0 <= preferred < len(indices):
        return [[preferred], indices]
    return [indices]


def _find_exact(document: ResumeDocument, before: str, after: str, entry_indices: list[int]) -> _BulletLocation | None:
    for entry_index in entry_indices:
        for bullet_index, bullet in enumerate(document.experience[entry_index].achievements):
            # "x" -> "x and y" is already satisfied once "x and y" sits in the bullet.
            if before in bullet and not (after and before in after and after in bullet):
                return _BulletLocation(entry_index, bullet_index, exact=True, rank=2.0)
    return None


def _find_fuzzy(document: ResumeDocument, before: str, entry_indices: list[int]) -> _BulletLocation | None:
    best: _BulletLocation | None = None
    for entry_index in entry_indices:
        for bullet_index, bullet in enumerate(document.experience[entry_index].achievements):
            match = bullet_similarity(bullet, before)
            if not match.accepted:
                continue
            if best is None or match.rank > best.rank:
                best = _BulletLocation(entry_index, bullet_index, exact=False, rank=match.rank)
    return best


def _bullet_present(document: ResumeDocument, text: str) -> bool:
    """True when ``text`` already is, or sits inside, one of the bullets."""
    wanted = normalize_for_match(text)
    if not wanted:
        return False
    for entry in document.experience:
        for bullet in entry.achievements:
            normalized = normalize_for_match(bullet)
            if normalized == wanted or (len(wanted) >= CONTAINMENT_MIN_CHARS and wanted in normalized):
                return True
    return False


def _append_allowed(change: ProposedChange) -> bool:
    return change.confidence != "low" and not change.metadata.requires_human_review


def _apply_bullet_change(document: ResumeDocument, change: ProposedChange) -> ChangeOutcome:
    if not document.experience:
        return _outcome(change, False, "not_applicable", None, "no_experience_entries")

    after = change.after
    preferred = pointer_experience_index(change)
    scan_order = _scan_order(document, preferred)

    if change.before:
        for entry_indices in scan_order:
            location = _find_exact(document, change.before, after, entry_indices)
            if location is not None:
                achievements = document.experience[location.entry_index].achievements
                achievements[location.bullet_index] = achievements[location.bullet_index].replace(
                    change.before, after, 1
                )
                target = _target(location.entry_index, location.bullet_index)
                return _outcome(change, True, "applied", target, "replaced_exact")

    # Exact text of ``before`` is gone; a present ``after`` means the change already landed.
    if after and _bullet_present(document, after):
        return _outcome(change, False, "not_applicable", None, "already_applied")

    if change.before:
        for entry_indices in scan_order:
            location = _find_fuzzy(document, change.before, entry_indices)
            if location is not None:
                document.experience[location.entry_index].achievements[location.bullet_index] = after
                target = _target(location.entry_index, location.bullet_index)
                return _outcome(change, True, "applied", target, "replaced_fuzzy")

    if not after.strip():
        return _outcome(change, False, "not_applicable", None, "before_not_found")
    if not _append_allowed(change):
        return _outcome(change, False, "not_applicable", None, "append_requires_review")

    entry_index = preferred if preferred is not None and 0 <= preferred < len(document.experience) else 0
    achievements = document.experience[entry_index].achievements
    achievements.append(after)
    return _outcome(change, True, "appended", _target(entry_index, len(achievements) - 1), "appended")


def apply_changes(document: ResumeDocument, changes: list[ProposedChange]) -> ApplyResult:
    """Apply a batch of proposed changes in order to a copy of ``document``.

    Each change is best-effort: one that cannot be located is reported as
    ``not_applicable`` and the rest of the batch still runs. Style and layout changes
    are returned in ``forwarded`` untouched.
    """
    updated = document.model_copy(deep=True)
    outcomes: list[ChangeOutcome] = []
    forwarded: list[ProposedChange] = []

    for change in changes:
        if change.scope in _FORWARDED_SCOPES:
            forwarded.append(change)
            outcomes.append(_outcome(change, False, "forwarded", None, "presentation_change"))
            continue
        if change.scope in _SUMMARY_SCOPES:
            outcomes.append(_apply_summary_change(updated, change))
            continue
        outcomes.append(_apply_bullet_change(updated, change))

    applied_count = sum(1 for outcome in outcomes if outcome.applied)
    logger.info(
        "diff_batch_applied changes=%s applied=%s forwarded=%s",
        len(changes),
        applied_count,
        len(forwarded),
    )
    return ApplyResult(document=updated, applied_count=applied_count, outcomes=outcomes, forwarded=forwarded)
