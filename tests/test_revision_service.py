import asyncio
import os
import sys
import tempfile
import time
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

os.environ.setdefault("ANALYTICS_ENABLED", "0")
os.environ.setdefault("LLM_ENABLED", "0")

from resume_revision.ats.analyzers import BaseAnalyzer, default_analyzers  # noqa: E402
from resume_revision.ats.engine import ATSScoringEngine  # noqa: E402
from resume_revision.history.store import InMemoryHistoryStore  # noqa: E402
from resume_revision.history.timeline import HistoryTimeline  # noqa: E402
from resume_revision.schemas.changes import ProposedChange  # noqa: E402
from resume_revision.schemas.resume import ExperienceEntry, LanguageTag, ResumeDocument  # noqa: E402
from resume_revision.services.renderer import HtmlPreviewRenderer  # noqa: E402
from resume_revision.services.revision_service import RevisionService  # noqa: E402

JOB_TEXT = (
    "Position: Senior Python Engineer\n"
    "Requirements:\n"
    "- Python and FastAPI\n"
    "- PostgreSQL\n"
)


def _document() -> ResumeDocument:
    return ResumeDocument(
        summary="Experienced engineer",
        experience=[
            ExperienceEntry(
                company="Acme",
                title="Engineer",
                start_date="2020-01",
                end_date="Present",
                achievements=["Built internal tools in Java"],
            )
        ],
    )


def _summary_change() -> ProposedChange:
    return ProposedChange(id="c1", scope="paragraph", before="Experienced engineer", after="Senior Python engineer")


class _SlowAnalyzer(BaseAnalyzer):
    name = "semantic_relevance"

    def analyze(self, data):
        time.sleep(0.5)
        return self.create_result(80.0)


class _BrokenRenderer:
    def render(self, document, theme):
        raise OSError("disk full")


class RevisionServiceTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.timeline = HistoryTimeline(InMemoryHistoryStore())

    def tearDown(self):
        self._tmp.cleanup()

    def _service(self, **kwargs) -> RevisionService:
        kwargs.setdefault("engine", ATSScoringEngine())
        kwargs.setdefault("renderer", HtmlPreviewRenderer(self._tmp.name))
        return RevisionService(self.timeline, **kwargs)

    def test_revise_applies_scores_renders_and_commits(self):
        result = asyncio.run(
            self._service().revise("user-1", _document(), [_summary_change()], job_text=JOB_TEXT, baseline_score=40)
        )
        self.assertEqual(result.document.summary, "Senior Python engineer")
        self.assertEqual(result.applied_count, 1)
        self.assertEqual(result.after_scores.before, 40)
        self.assertEqual(result.after_scores.delta, result.ats.ats_score_optimized - 40)
        self.assertEqual(result.language.lang, "en")
        self.assertTrue(Path(result.preview_reference).exists())

        current = self.timeline.current("user-1")
        self.assertEqual(current.id, result.history_entry_id)
        self.assertEqual(current.ats_score, result.ats.ats_score_optimized)
        self.assertEqual(current.resume_snapshot.summary, "Senior Python engineer")
        self.assertEqual(len(current.proposed_changes), 1)

    def test_scoring_timeout_still_commits_degraded_score(self):
        analyzers = [_SlowAnalyzer() if a.name == "semantic_relevance" else a for a in default_analyzers()]
        service = self._service(engine=ATSScoringEngine(analyzers=analyzers), scoring_timeout_s=0.05)
        result = asyncio.run(service.revise("user-1", _document(), [_summary_change()], job_text=JOB_TEXT))
        self.assertTrue(result.ats.metadata.degraded)
        self.assertGreaterEqual(result.ats.ats_score_optimized, result.ats.ats_score_original + 5)
        self.assertEqual(self.timeline.timeline("user-1").length, 1)

    def test_renderer_failure_does_not_block_commit(self):
        result = asyncio.run(
            self._service(renderer=_BrokenRenderer()).revise("user-1", _document(), [_summary_change()], job_text=JOB_TEXT)
        )
        self.assertIsNone(result.preview_reference)
        self.assertEqual(self.timeline.current("user-1").artifacts, ())

    def test_explicit_language_is_preserved(self):
        document = _document()
        document.language = LanguageTag(lang="de", confidence=1.0, source="explicit")
        result = asyncio.run(self._service().revise("user-1", document, [], job_text=JOB_TEXT))
        self.assertEqual(result.language.lang, "de")
        self.assertEqual(result.applied_count, 0)

    def test_undo_and_redo_return_stored_versions(self):
        service = self._service()
        first = asyncio.run(service.revise("user-1", _document(), [], job_text=JOB_TEXT))
        second = asyncio.run(service.revise("user-1", _document(), [_summary_change()], job_text=JOB_TEXT))

        undo = asyncio.run(service.undo("user-1"))
        self.assertTrue(undo.moved)
        self.assertEqual(undo.entry.id, first.history_entry_id)
        self.assertEqual(undo.entry.ats_score, first.ats.ats_score_optimized)

        redo = asyncio.run(service.redo("user-1"))
        self.assertEqual(redo.entry.id, second.history_entry_id)
        self.assertFalse(asyncio.run(service.redo("user-1")).moved)


if __name__ == "__main__":
    unittest.main()
