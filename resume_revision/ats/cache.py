from __future__ import annotations

import hashlib
import threading
from collections import OrderedDict

from resume_revision.schemas.ats import ATSScoreOutput


def score_cache_key(*parts: str | None) -> str:
    digest = hashlib.sha256()
    for part in parts:
        digest.update((part or "").encode("utf-8"))
        digest.update(b"\x00")
    return digest.hexdigest()


class ScoreCache:
    """Thread-safe LRU of scoring outputs keyed by input hash."""

    def __init__(self, max_entries: int = 256) -> None:
        self.max_entries = max(1, max_entries)
        self._entries: OrderedDict[str, ATSScoreOutput] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> ATSScoreOutput | None:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return entry.model_copy(deep=True)

    def put(self, key: str, output: ATSScoreOutput) -> None:
        with self._lock:
            self._entries[key] = output.model_copy(deep=True)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
            self.hits = 0
            self.misses = 0

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
