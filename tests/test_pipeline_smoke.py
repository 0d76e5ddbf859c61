import asyncio
import sys
import tempfile
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.ats import score  # noqa: E402
from resume_revision.history.store import SQLiteHistoryStore  # noqa: E402
from resume_revision.history.timeline import HistoryTimeline  # noqa: E402
from resume_revision.normalize.utils import resume_to_text  # noqa: E402
from resume_revision.schemas.changes import ProposedChange  # noqa: E402
from resume_revision.schemas.resume import ContactInfo, ExperienceEntry, ResumeDocument  # noqa: E402
from resume_revision.services.diff_applicator import apply_changes  # noqa: E402
from resume_revision.services.renderer import HtmlPreviewRenderer, render_html, render_safely  # noqa: E402
from resume_revision.services.revision_service import RevisionService  # noqa: E402


class PipelineSmokeTests(unittest.TestCase):
    def test_apply_score_commit_navigate(self):
        document = ResumeDocument(
            summary="Experienced engineer",
            contact=ContactInfo(name="Jane Doe", email="jane@example.com"),
            experience=[
                ExperienceEntry(
                    company="Acme",
                    title="Engineer",
                    start_date="2019-02",
                    end_date="Present",
                    achievements=["Maintained billing jobs", "Wrote internal docs"],
                )
            ],
        )
        changes = [
            ProposedChange(id="s", scope="paragraph", before="Experienced engineer", after="Senior engineer with 8 years"),
            ProposedChange(id="b", scope="bullet", before="Maintained billing jobs", after="Rebuilt billing jobs in Python, cutting cost by 30%"),
            ProposedChange(id="l", scope="layout", summary="Single column"),
        ]
        applied = apply_changes(document, changes)
        self.assertEqual(applied.applied_count, 2)
        self.assertEqual(len(applied.forwarded), 1)

        job = "Requirements:\n- Python\n- Billing systems\n"
        output = score(resume_to_text(document), resume_to_text(applied.document), job)
        self.assertTrue(0 <= output.ats_score_optimized <= 100)

        with tempfile.TemporaryDirectory() as tmp:
            store = SQLiteHistoryStore(str(Path(tmp) / "history.db"))
            try:
                service = RevisionService(HistoryTimeline(store), renderer=HtmlPreviewRenderer(Path(tmp) / "previews"))
                result = asyncio.run(service.revise("smoke-user", document, changes, job_text=job))
                self.assertEqual(result.applied_count, 2)
                self.assertTrue(result.preview_reference.endswith(".html"))
                navigation = asyncio.run(service.undo("smoke-user"))
                self.assertFalse(navigation.moved)
                self.assertEqual(navigation.entry.id, result.history_entry_id)
            finally:
                store.close()


class RendererTests(unittest.TestCase):
    def test_html_is_escaped_and_directional(self):
        document = ResumeDocument(summary="<script>alert(1)</script>")
        document.language.lang = "he"
        document.language.rtl = True
        markup = render_html(document, "modern")
        self.assertIn('dir="rtl"', markup)
        self.assertIn("&lt;script&gt;", markup)
        self.assertNotIn("<script>", markup)

    def test_same_document_reuses_preview_file(self):
        with tempfile.TemporaryDirectory() as tmp:
            renderer = HtmlPreviewRenderer(tmp)
            first = renderer.render(ResumeDocument(summary="x"), "classic")
            second = renderer.render(ResumeDocument(summary="x"), "classic")
            other_theme = renderer.render(ResumeDocument(summary="x"), "minimal")
            self.assertEqual(first.path, second.path)
            self.assertNotEqual(first.path, other_theme.path)
            self.assertEqual(first.type, "preview")

    def test_render_safely_swallows_renderer_errors(self):
        class Broken:
            def render(self, document, theme):
                raise RuntimeError("no fonts")

        self.assertIsNone(render_safely(Broken(), ResumeDocument(), "classic"))
        self.assertIsNone(render_safely(None, ResumeDocument(), "classic"))


if __name__ == "__main__":
    unittest.main()
