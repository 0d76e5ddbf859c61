from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, Iterator

from resume_revision.schemas.changes import ProposedChange
from resume_revision.schemas.history import Artifact, HistoryNavigation, TimelineSnapshot, VersionEntry
from resume_revision.schemas.resume import LanguageTag, ResumeDocument

from . import state as timeline_state
from .store import HistoryRecord, HistoryStore

logger = logging.getLogger(__name__)


@dataclass
class _LockSlot:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLocks:
    """One lock per key, dropped from the registry once nobody holds or waits on it."""

    def __init__(self) -> None:
        self._slots: dict[str, _LockSlot] = {}
        self._registry_lock = threading.Lock()

    @contextmanager
    def hold(self, key: str) -> Iterator[None]:
        with self._registry_lock:
            slot = self._slots.get(key)
            if slot is None:
                slot = self._slots[key] = _LockSlot()
            slot.holders += 1
        try:
            with slot.lock:
                yield
        finally:
            with self._registry_lock:
                slot.holders -= 1
                if slot.holders == 0:
                    del self._slots[key]

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._slots)


@dataclass(frozen=True)
class HistoryView:
    timeline: TimelineSnapshot
    current: VersionEntry | None
    entries: list[VersionEntry]


def _snapshot(record: HistoryRecord) -> TimelineSnapshot:
    ids = [entry.id for entry in record.versions]
    cursor = record.cursor
    return TimelineSnapshot(
        cursor=cursor,
        length=len(ids),
        past=ids[:cursor] if cursor > 0 else [],
        current=ids[cursor] if 0 <= cursor < len(ids) else None,
        future=ids[cursor + 1 :],
    )


class HistoryTimeline:
    """Per-user linear version history with undo/redo.

    Every read-modify-write of a user's ``(versions, cursor)`` pair runs under that
    user's lock. Derived artifacts are stored on the entry at commit time and never
    recomputed on navigation.
    """

    def __init__(self, store: HistoryStore) -> None:
        self.store = store
        self._locks = KeyedLocks()

    def commit_entry(self, entry: VersionEntry) -> VersionEntry:
        with self._locks.hold(entry.user_id):
            record = self.store.load(entry.user_id)
            current = timeline_state.state_from_cursor(record.cursor)
            _, keep = timeline_state.commit(current, len(record.versions))
            discarded = len(record.versions) - keep
            self.store.commit(entry.user_id, keep, entry)
        logger.info(
            "history_commit user_id=%s entry_id=%s position=%s discarded=%s",
            entry.user_id,
            entry.id,
            keep,
            discarded,
        )
        return entry

    def commit(
        self,
        user_id: str,
        *,
        resume_snapshot: ResumeDocument,
        ats_score: int,
        artifacts: Iterable[Artifact] = (),
        proposed_changes: Iterable[ProposedChange] = (),
        language: LanguageTag | None = None,
    ) -> VersionEntry:
        entry = VersionEntry(
            id=uuid.uuid4().hex,
            user_id=user_id,
            resume_snapshot=resume_snapshot.model_copy(deep=True),
            ats_score=ats_score,
            artifacts=tuple(artifacts),
            proposed_changes=tuple(proposed_changes),
            language=language or resume_snapshot.language,
            created_at=datetime.now(timezone.utc),
        )
        return self.commit_entry(entry)

    def undo(self, user_id: str) -> HistoryNavigation:
        with self._locks.hold(user_id):
            record = self.store.load(user_id)
            transition = timeline_state.undo(timeline_state.state_from_cursor(record.cursor))
            if transition.moved:
                self.store.set_cursor(user_id, transition.state.cursor)
                record.cursor = transition.state.cursor
        return self._navigation(user_id, record, transition)

    def redo(self, user_id: str) -> HistoryNavigation:
        with self._locks.hold(user_id):
            record = self.store.load(user_id)
            transition = timeline_state.redo(timeline_state.state_from_cursor(record.cursor), len(record.versions))
            if transition.moved:
                self.store.set_cursor(user_id, transition.state.cursor)
                record.cursor = transition.state.cursor
        return self._navigation(user_id, record, transition)

    def _navigation(self, user_id: str, record: HistoryRecord, transition: timeline_state.Transition) -> HistoryNavigation:
        entry = record.versions[record.cursor] if 0 <= record.cursor < len(record.versions) else None
        logger.info(
            "history_navigation user_id=%s moved=%s reason=%s cursor=%s",
            user_id,
            transition.moved,
            transition.reason,
            record.cursor,
        )
        return HistoryNavigation(
            moved=transition.moved,
            reason=transition.reason,
            entry=entry,
            timeline=_snapshot(record),
        )

    def current(self, user_id: str) -> VersionEntry | None:
        return self.view(user_id).current

    def entries(self, user_id: str) -> list[VersionEntry]:
        return self.view(user_id).entries

    def timeline(self, user_id: str) -> TimelineSnapshot:
        return self.view(user_id).timeline

    def view(self, user_id: str) -> HistoryView:
        """Snapshot, current entry and entries taken from a single read."""
        with self._locks.hold(user_id):
            record = self.store.load(user_id)
        current = record.versions[record.cursor] if 0 <= record.cursor < len(record.versions) else None
        return HistoryView(timeline=_snapshot(record), current=current, entries=list(record.versions))
