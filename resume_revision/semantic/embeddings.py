from __future__ import annotations

import hashlib
import math
import re
from collections import Counter
from typing import Protocol

_TOKEN_PATTERN = re.compile(r"[a-z0-9\+#]+")
# Bigrams ("machine learning", "data pipelines") count for half a unigram.
_BIGRAM_WEIGHT = 0.5


class EmbeddingProvider(Protocol):
    def embed(self, texts: list[str]) -> list[list[float]]:
        """Return vector embeddings for input texts."""


def _bucket(feature: str, dimension: int) -> tuple[int, float]:
    digest = hashlib.sha256(feature.encode("utf-8")).digest()
    index = int.from_bytes(digest[:4], "big") % dimension
    sign = 1.0 if digest[4] & 1 else -1.0
    return index, sign


class HashedEmbeddingProvider:
    """Signed feature hashing over unigrams and bigrams with sublinear term frequency.

    Vectors are L2-normalized, so the dot product of two embeddings is their cosine.
    No model download and fully deterministic across processes.
    """

    def __init__(self, dimension: int = 128, stopwords: set[str] | None = None) -> None:
        if dimension <= 0:
            raise ValueError("dimension must be greater than 0")
        self.dimension = dimension
        self.stopwords = frozenset(stopwords or ())

    def features(self, text: str) -> Counter[str]:
        tokens = [token for token in _TOKEN_PATTERN.findall((text or "").lower()) if token not in self.stopwords]
        counts: Counter[str] = Counter(tokens)
        for left, right in zip(tokens, tokens[1:]):
            counts[f"{left} {right}"] += 1
        return counts

    def embed(self, texts: list[str]) -> list[list[float]]:
        return [self._embed_one(text) for text in texts]

    def _embed_one(self, text: str) -> list[float]:
        vector = [0.0] * self.dimension
        for feature, count in self.features(text).items():
            index, sign = _bucket(feature, self.dimension)
            weight = 1.0 + math.log(count)
            if " " in feature:
                weight *= _BIGRAM_WEIGHT
            vector[index] += sign * weight

        norm = math.sqrt(sum(value * value for value in vector))
        return [value / norm for value in vector] if norm > 0 else vector


def cosine_similarity(left: list[float], right: list[float]) -> float:
    if not left or len(left) != len(right):
        return 0.0
    dot = sum(a * b for a, b in zip(left, right))
    norms = math.sqrt(sum(a * a for a in left)) * math.sqrt(sum(b * b for b in right))
    return dot / norms if norms > 0 else 0.0


def top_k_similarities(query: list[float], candidates: list[list[float]], k: int) -> list[float]:
    """Highest ``k`` cosine scores of ``query`` against ``candidates``, best first."""
    if k <= 0:
        return []
    return sorted((cosine_similarity(query, candidate) for candidate in candidates), reverse=True)[:k]
