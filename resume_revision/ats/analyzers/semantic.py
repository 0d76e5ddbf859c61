from __future__ import annotations

from resume_revision.core.config.scoring import get_scoring_value
from resume_revision.normalize.utils import STOPWORDS
from resume_revision.schemas.resume import ResumeDocument
from resume_revision.semantic.embeddings import EmbeddingProvider, HashedEmbeddingProvider, top_k_similarities

from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer
from .keyword_exact import must_have_coverage

# Hashed bag-of-words cosine rarely exceeds ~0.6 even for strong matches.
_SIMILARITY_FLOOR = 0.05
_SIMILARITY_CEILING = 0.6


def resume_sections(resume_text: str, resume: ResumeDocument | None) -> list[str]:
    if resume is None:
        blocks = [block.strip() for block in resume_text.split("\n\n")]
        return [block for block in blocks if block]

    sections: list[str] = []
    if resume.summary.strip():
        sections.append(resume.summary)
    skills = resume.skills.technical + resume.skills.soft
    if skills:
        sections.append(", ".join(skills))
    for entry in resume.experience:
        text = " ".join([entry.title, entry.company, *entry.achievements]).strip()
        if text:
            sections.append(text)
    for project in resume.projects:
        text = " ".join([project.name, project.description, *project.technologies]).strip()
        if text:
            sections.append(text)
    return sections


class SemanticAnalyzer(BaseAnalyzer):
    name = "semantic_relevance"

    def __init__(self, embedding_provider: EmbeddingProvider | None = None) -> None:
        self.embedding_provider = embedding_provider

    def _provider(self) -> EmbeddingProvider:
        if self.embedding_provider is None:
            dimension = int(get_scoring_value("semantic.embedding_dimension", 128))
            self.embedding_provider = HashedEmbeddingProvider(dimension=dimension, stopwords=STOPWORDS)
        return self.embedding_provider

    def analyze(self, data: AnalyzerInput) -> AnalyzerResult:
        sections = resume_sections(data.resume_text, data.resume)
        if not sections or not data.job_text.strip():
            return self.create_result(0.0, {"sections": 0}, 0.3, ["Not enough text for semantic comparison."])

        top_k = int(get_scoring_value("semantic.top_k_sections", 5))
        vectors = self._provider().embed([data.job_text, *sections])
        best = top_k_similarities(vectors[0], vectors[1:], top_k)
        average = sum(best) / len(best) if best else 0.0
        score = self.lerp(average, _SIMILARITY_FLOOR, _SIMILARITY_CEILING)

        coverage, _, _ = must_have_coverage(data.resume_text, data.job_data)
        cap_threshold = float(get_scoring_value("semantic.keyword_cap_threshold", 40))
        capped_max = float(get_scoring_value("semantic.capped_semantic_max", 70))
        capped = coverage * 100 < cap_threshold and score > capped_max
        if capped:
            score = capped_max

        confidence = self.calculate_confidence(
            has_required_data=True,
            data_completeness=1.0 if len(sections) >= 3 else 0.7,
        )
        return self.create_result(
            score,
            {
                "sections": len(sections),
                "top_similarities": [round(value, 4) for value in best],
                "average_similarity": round(average, 4),
                "keyword_coverage": round(coverage * 100, 1),
                "capped": capped,
            },
            confidence,
        )
