import unittest
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.core.config.scoring import get_scoring_config, get_scoring_value, get_subscore_weights
from resume_revision.schemas.ats import SUBSCORE_KEYS


class ScoringConfigTests(unittest.TestCase):
    def test_loader_and_value_lookup(self):
        config = get_scoring_config()
        self.assertIsInstance(config, dict)
        self.assertEqual(get_scoring_value("fallback.min_improvement"), 5)
        self.assertEqual(get_scoring_value("missing.path", "fallback"), "fallback")

    def test_weights_cover_every_subscore_and_sum_to_one(self):
        weights = get_subscore_weights()
        self.assertEqual(set(weights), set(SUBSCORE_KEYS))
        self.assertAlmostEqual(sum(weights.values()), 1.0)


if __name__ == "__main__":
    unittest.main()
