"""Undo/redo cursor as a tagged state with pure transitions.

``Empty`` is a timeline with no versions (cursor -1); ``At(index)`` points at the
current version. Transitions never touch storage; callers apply the result.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Empty:
    @property
    def cursor(self) -> int:
        return -1


@dataclass(frozen=True)
class At:
    index: int

    def __post_init__(self) -> None:
        if self.index < 0:
            raise ValueError("index must be >= 0")

    @property
    def cursor(self) -> int:
        return self.index


TimelineState = Union[Empty, At]
EMPTY = Empty()


@dataclass(frozen=True)
class Transition:
    state: TimelineState
    moved: bool
    reason: str


def state_from_cursor(cursor: int) -> TimelineState:
    return EMPTY if cursor < 0 else At(cursor)


def check_invariant(state: TimelineState, length: int) -> None:
    if isinstance(state, Empty):
        if length != 0:
            raise ValueError(f"empty state with {length} versions")
        return
    if not 0 <= state.index < length:
        raise ValueError(f"cursor {state.index} outside 0..{length - 1}")


def commit(state: TimelineState, length: int) -> tuple[TimelineState, int]:
    """Return the new state and how many existing versions survive (entries after the cursor are dropped)."""
    check_invariant(state, length)
    keep = state.cursor + 1
    return At(keep), keep


def undo(state: TimelineState) -> Transition:
    if isinstance(state, At) and state.index > 0:
        return Transition(At(state.index - 1), True, "moved")
    return Transition(state, False, "nothing_to_undo")


def redo(state: TimelineState, length: int) -> Transition:
    cursor = state.cursor
    if cursor < length - 1:
        return Transition(At(cursor + 1), True, "moved")
    return Transition(state, False, "nothing_to_redo")
