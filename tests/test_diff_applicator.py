import sys
import unittest
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from resume_revision.schemas.changes import ProposedChange  # noqa: E402
from resume_revision.schemas.resume import ExperienceEntry, ResumeDocument  # noqa: E402
from resume_revision.services.diff_applicator import apply_changes, pointer_experience_index  # noqa: E402


def _document() -> ResumeDocument:
    return ResumeDocument(
        summary="Experienced engineer",
        experience=[
            ExperienceEntry(
                company="Acme",
                title="Backend Engineer",
                start_date="2021-01",
                end_date="Present",
                achievements=[
                    "Built REST APIs in Python for the billing platform",
                    "Mentored two junior developers",
                ],
            ),
            ExperienceEntry(
                company="Globex",
                title="Software Engineer",
                start_date="2018-03",
                end_date="2020-12",
                achievements=["Maintained legacy reporting jobs"],
            ),
        ],
    )


def _change(**kwargs) -> ProposedChange:
    data = {"id": "c1", "scope": "bullet", "confidence": "high"}
    data.update(kwargs)
    return ProposedChange.model_validate(data)


class DiffApplicatorTests(unittest.TestCase):
    def test_summary_replacement_then_idempotent_noop(self):
        change = _change(scope="paragraph", before="Experienced engineer", after="Senior engineer with 8 years")
        first = apply_changes(_document(), [change])
        self.assertEqual(first.document.summary, "Senior engineer with 8 years")
        self.assertEqual(first.applied_count, 1)
        self.assertEqual(first.outcomes[0].status, "applied")

        second = apply_changes(first.document, [change])
        self.assertEqual(second.applied_count, 0)
        self.assertFalse(second.outcomes[0].applied)
        self.assertEqual(second.outcomes[0].status, "not_applicable")
        self.assertEqual(second.document, first.document)

    def test_input_document_is_not_mutated(self):
        document = _document()
        apply_changes(document, [_change(scope="paragraph", before="Experienced", after="Seasoned")])
        self.assertEqual(document.summary, "Experienced engineer")

    def test_summary_before_not_found(self):
        result = apply_changes(_document(), [_change(scope="section", before="Data scientist", after="ML engineer")])
        self.assertEqual(result.outcomes[0].reason, "before_not_found")
        self.assertEqual(result.document.summary, "Experienced engineer")

    def test_exact_bullet_replacement_keeps_surrounding_text(self):
        change = _change(before="REST APIs in Python", after="REST and GraphQL APIs in Python")
        result = apply_changes(_document(), [change])
        self.assertEqual(
            result.document.experience[0].achievements[0],
            "Built REST and GraphQL APIs in Python for the billing platform",
        )
        self.assertEqual(result.outcomes[0].target, "experience[0].achievements[0]")
        self.assertEqual(result.outcomes[0].reason, "replaced_exact")

        again = apply_changes(result.document, [change])
        self.assertEqual(again.applied_count, 0)
        self.assertEqual(again.document, result.document)

    def test_exact_match_wins_when_after_text_sits_in_another_bullet(self):
        document = ResumeDocument(
            experience=[
                ExperienceEntry(
                    company="Initech",
                    title="Engineering Manager",
                    achievements=[
                        "Managed a small team of contractors",
                        "Improved performance of the billing API by 30%",
                    ],
                )
            ]
        )
        change = _change(before="Managed a small team of contractors", after="Improved performance")
        result = apply_changes(document, [change])
        self.assertTrue(result.outcomes[0].applied)
        self.assertEqual(result.outcomes[0].reason, "replaced_exact")
        self.assertEqual(
            result.document.experience[0].achievements,
            ["Improved performance", "Improved performance of the billing API by 30%"],
        )

    def test_fuzzy_bullet_replacement_replaces_whole_bullet(self):
        change = _change(
            before="maintained the legacy reporting jobs",
            after="Rewrote legacy reporting jobs in Airflow, cutting runtime by 40%",
        )
        result = apply_changes(_document(), [change])
        self.assertEqual(
            result.document.experience[1].achievements[0],
            "Rewrote legacy reporting jobs in Airflow, cutting runtime by 40%",
        )
        self.assertEqual(result.outcomes[0].reason, "replaced_fuzzy")

    def test_pointer_prefers_named_entry(self):
        document = _document()
        document.experience[1].achievements.append("Mentored two junior developers")
        change = _change(
            before="Mentored two junior developers",
            after="Mentored four junior developers",
            metadata={"pointer": "/experience/1/achievements/1"},
        )
        result = apply_changes(document, [change])
        self.assertEqual(result.document.experience[0].achievements[1], "Mentored two junior developers")
        self.assertEqual(result.document.experience[1].achievements[1], "Mentored four junior developers")

    def test_pointer_parsing(self):
        self.assertEqual(pointer_experience_index(_change(metadata={"pointer": "/experience/3/achievements/0"})), 3)
        self.assertEqual(pointer_experience_index(_change(metadata={"pointer": "experience[2].achievements[1]"})), 2)
        self.assertEqual(pointer_experience_index(_change(metadata={"experience_index": 1})), 1)
        self.assertIsNone(pointer_experience_index(_change(metadata={"pointer": "/summary"})))

    def test_unmatched_bullet_is_appended_when_confident(self):
        change = _change(before="Wrote Terraform modules", after="Wrote Terraform modules for 12 AWS accounts")
        result = apply_changes(_document(), [change])
        self.assertEqual(result.outcomes[0].status, "appended")
        self.assertEqual(result.document.experience[0].achievements[-1], "Wrote Terraform modules for 12 AWS accounts")

        again = apply_changes(result.document, [change])
        self.assertEqual(again.applied_count, 0)
        self.assertEqual(again.outcomes[0].reason, "already_applied")

    def test_append_is_gated_on_review_and_confidence(self):
        low = _change(id="low", confidence="low", before="Wrote docs", after="Wrote onboarding docs for 30 engineers")
        review = _change(
            id="review",
            before="Wrote docs",
            after="Wrote onboarding docs for 30 engineers",
            metadata={"requires_human_review": True},
        )
        result = apply_changes(_document(), [low, review])
        self.assertEqual(result.applied_count, 0)
        self.assertEqual([outcome.reason for outcome in result.outcomes], ["append_requires_review"] * 2)
        self.assertEqual(len(result.document.experience[0].achievements), 2)

    def test_bullet_change_without_experience(self):
        result = apply_changes(ResumeDocument(summary="x"), [_change(before="a", after="b")])
        self.assertEqual(result.outcomes[0].reason, "no_experience_entries")

    def test_style_and_layout_changes_are_forwarded(self):
        style = _change(id="s1", scope="style", after="Use a single-column layout")
        layout = _change(id="l1", scope="layout")
        result = apply_changes(_document(), [style, layout])
        self.assertEqual([change.id for change in result.forwarded], ["s1", "l1"])
        self.assertTrue(all(outcome.status == "forwarded" for outcome in result.outcomes))
        self.assertEqual(result.document, _document())

    def test_one_failing_change_does_not_block_the_batch(self):
        missing = _change(id="missing", scope="paragraph", before="Nope", after="Yes")
        good = _change(id="good", before="Mentored two", after="Mentored five")
        result = apply_changes(_document(), [missing, good])
        self.assertEqual(result.applied_count, 1)
        self.assertEqual(result.document.experience[0].achievements[1], "Mentored five junior developers")


if __name__ == "__main__":
    unittest.main()
