from __future__ import annotations

from dataclasses import dataclass

from resume_revision.normalize.utils import normalize_for_match

# Shorter side must be at least this long before containment counts as a match.
CONTAINMENT_MIN_CHARS = 8
# Minimum |A & B| / min(|A|, |B|) for a token-overlap match.
TOKEN_OVERLAP_THRESHOLD = 0.6


@dataclass(frozen=True)
class BulletMatch:
    score: float
    rank: float
    kind: str

    @property
    def accepted(self) -> bool:
        return self.kind != "none"


NO_MATCH = BulletMatch(score=0.0, rank=0.0, kind="none")


def token_overlap(left: str, right: str) -> float:
    left_tokens = set(normalize_for_match(left).split())
    right_tokens = set(normalize_for_match(right).split())
    if not left_tokens or not right_tokens:
        return 0.0
    shared = len(left_tokens & right_tokens)
    return shared / min(len(left_tokens), len(right_tokens))


def bullet_similarity(candidate: str, target: str) -> BulletMatch:
    """Score how well an existing bullet matches the text a change wants to replace.

    Containment of the shorter normalized string in the longer one scores 1.0 when the
    shorter side has at least CONTAINMENT_MIN_CHARS characters; ``rank`` is then scaled
    by the length ratio so a tighter bullet wins over a long one that merely contains
    the target. Otherwise the token-overlap ratio is used and accepted at
    TOKEN_OVERLAP_THRESHOLD or above.
    """
    left = normalize_for_match(candidate)
    right = normalize_for_match(target)
    if not left or not right:
        return NO_MATCH

    shorter, longer = (left, right) if len(left) <= len(right) else (right, left)
    if len(shorter) >= CONTAINMENT_MIN_CHARS and shorter in longer:
        # Containment always outranks a plain token overlap.
        return BulletMatch(score=1.0, rank=1.0 + len(shorter) / len(longer), kind="containment")

    overlap = token_overlap(left, right)
    if overlap >= TOKEN_OVERLAP_THRESHOLD:
        return BulletMatch(score=overlap, rank=overlap, kind="overlap")
    return BulletMatch(score=overlap, rank=0.0, kind="none")
