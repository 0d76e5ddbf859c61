import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.matching.similarity import (  # noqa: E402
    CONTAINMENT_MIN_CHARS,
    TOKEN_OVERLAP_THRESHOLD,
    bullet_similarity,
    token_overlap,
)


class BulletSimilarityTests(unittest.TestCase):
    def test_containment_scores_full_match(self):
        match = bullet_similarity(
            "Built REST APIs in Python for payment processing.",
            "built rest apis in python",
        )
        self.assertTrue(match.accepted)
        self.assertEqual(match.kind, "containment")
        self.assertEqual(match.score, 1.0)
        self.assertGreater(match.rank, 1.0)

    def test_tighter_bullet_ranks_higher(self):
        target = "Migrated services to Kubernetes"
        tight = bullet_similarity("Migrated services to Kubernetes clusters", target)
        loose = bullet_similarity(
            "Migrated services to Kubernetes and rewrote the deploy pipeline for four product teams",
            target,
        )
        self.assertGreater(tight.rank, loose.rank)

    def test_short_containment_is_ignored(self):
        self.assertLess(len("led qa"), CONTAINMENT_MIN_CHARS)
        match = bullet_similarity("Led QA effort for release 4", "led qa")
        self.assertNotEqual(match.kind, "containment")

    def test_token_overlap_threshold(self):
        overlap = token_overlap("reduced latency of search service", "search service latency reduced by caching")
        self.assertGreaterEqual(overlap, TOKEN_OVERLAP_THRESHOLD)
        match = bullet_similarity(
            "Reduced latency of search service",
            "search service latency reduced by caching",
        )
        self.assertEqual(match.kind, "overlap")
        self.assertAlmostEqual(match.rank, overlap)

    def test_unrelated_text_is_rejected(self):
        match = bullet_similarity("Managed vendor contracts", "Trained neural ranking models")
        self.assertFalse(match.accepted)
        self.assertEqual(match.rank, 0.0)

    def test_empty_input_is_rejected(self):
        self.assertFalse(bullet_similarity("", "anything here").accepted)
        self.assertEqual(token_overlap("", "text"), 0.0)


if __name__ == "__main__":
    unittest.main()
