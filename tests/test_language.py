import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.normalize.lang import detect_language  # noqa: E402
from resume_revision.schemas.resume import LanguageTag, ResumeDocument  # noqa: E402
from resume_revision.services.revision_service import resolve_language  # noqa: E402


class LanguageDetectionTests(unittest.TestCase):
    def test_english_text(self):
        tag = detect_language("Senior backend engineer building payment APIs with Python and PostgreSQL.")
        self.assertEqual(tag.lang, "en")
        self.assertFalse(tag.rtl)
        self.assertGreaterEqual(tag.confidence, 0.9)

    def test_single_accent_does_not_flip_english(self):
        tag = detect_language("Led the café loyalty programme rollout across twelve regional stores.")
        self.assertEqual(tag.lang, "en")

    def test_german_text(self):
        tag = detect_language("Erfahrener Entwickler für Zahlungssysteme und Schnittstellen, gemäß höchsten Qualitätsansprüchen.")
        self.assertEqual(tag.lang, "de")

    def test_hebrew_is_rtl(self):
        tag = detect_language("מהנדס תוכנה בכיר עם ניסיון בפיתוח מערכות")
        self.assertEqual(tag.lang, "he")
        self.assertTrue(tag.rtl)

    def test_cyrillic(self):
        self.assertEqual(detect_language("Старший инженер-программист").lang, "ru")

    def test_mixed_scripts(self):
        tag = detect_language("Senior engineer מהנדס תוכנה")
        self.assertEqual(tag.lang, "mixed")
        self.assertTrue(tag.rtl)

    def test_empty_text_uses_default(self):
        tag = detect_language("   ", default_language="he")
        self.assertEqual(tag.lang, "he")
        self.assertTrue(tag.rtl)
        self.assertEqual(tag.confidence, 0.0)

    def test_short_text_caps_confidence(self):
        self.assertLessEqual(detect_language("Dev").confidence, 0.6)

    def test_explicit_language_is_kept(self):
        explicit = LanguageTag(lang="fr", confidence=1.0, source="explicit")
        document = ResumeDocument(summary="Senior engineer", language=explicit)
        self.assertEqual(resolve_language(document, "Senior engineer"), explicit)

    def test_heuristic_language_is_redetected(self):
        document = ResumeDocument(summary="Старший инженер", language=LanguageTag(lang="en"))
        self.assertEqual(resolve_language(document, document.summary).lang, "ru")


if __name__ == "__main__":
    unittest.main()
