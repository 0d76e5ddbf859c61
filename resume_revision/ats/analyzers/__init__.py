from .base import AnalyzerInput, AnalyzerResult, BaseAnalyzer
from .format_parseability import FormatAnalyzer
from .keyword_exact import KeywordExactAnalyzer
from .keyword_phrase import KeywordPhraseAnalyzer
from .metrics_presence import MetricsAnalyzer
from .recency_fit import RecencyAnalyzer
from .section_completeness import SectionCompletenessAnalyzer
from .semantic import SemanticAnalyzer
from .title_alignment import TitleAlignmentAnalyzer


def default_analyzers() -> list[BaseAnalyzer]:
    return [
        KeywordExactAnalyzer(),
        KeywordPhraseAnalyzer(),
        SemanticAnalyzer(),
        TitleAlignmentAnalyzer(),
        MetricsAnalyzer(),
        SectionCompletenessAnalyzer(),
        FormatAnalyzer(),
        RecencyAnalyzer(),
    ]


__all__ = [
    "AnalyzerInput",
    "AnalyzerResult",
    "BaseAnalyzer",
    "FormatAnalyzer",
    "KeywordExactAnalyzer",
    "KeywordPhraseAnalyzer",
    "MetricsAnalyzer",
    "RecencyAnalyzer",
    "SectionCompletenessAnalyzer",
    "SemanticAnalyzer",
    "TitleAlignmentAnalyzer",
    "default_analyzers",
]
