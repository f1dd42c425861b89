from __future__ import annotations

from typing import Callable

from app.core.config import get_settings
from app.core.errors import ErrorKind, InvalidInput, TooShort
from app.core.logging import get_logger
from app.schemas.detection import AnalyzerResult, DetectionReport
from app.services.aggregator import ScoreAggregator
from app.services.analyzers.contextual import analyze_consistency, analyze_depth
from app.services.analyzers.document import Document
from app.services.analyzers.linguistic import (
    analyze_ai_phrases,
    analyze_punctuation,
    analyze_structure,
    analyze_vocabulary,
)
from app.services.analyzers.statistical import (
    analyze_burstiness,
    analyze_coherence,
    analyze_perplexity,
    analyze_syntactic,
)
from app.services.text_metrics import compute_metrics
from app.utils.text import normalize_text

logger = get_logger(__name__)

Analyzer = Callable[[Document], AnalyzerResult]

ANALYZERS: tuple[tuple[str, Analyzer], ...] = (
    ("perplexity", analyze_perplexity),
    ("burstiness", analyze_burstiness),
    ("syntactic", analyze_syntactic),
    ("coherence", analyze_coherence),
    ("ai_phrases", analyze_ai_phrases),
    ("structural", analyze_structure),
    ("vocabulary", analyze_vocabulary),
    ("punctuation", analyze_punctuation),
    ("consistency", analyze_consistency),
    ("depth", analyze_depth),
)


def validate_text(text: object, *, min_chars: int, max_chars: int) -> str:
    if not isinstance(text, str) or not text.strip():
        raise InvalidInput("Text is required")
    if len(text) > max_chars:
        raise InvalidInput(f"Text exceeds the {max_chars} character limit")
    if len(text.strip()) < min_chars:
        raise TooShort(f"Text must be at least {min_chars} characters")
    return text


class DetectorService:
    def __init__(
        self,
        aggregator: ScoreAggregator | None = None,
        analyzers: tuple[tuple[str, Analyzer], ...] = ANALYZERS,
    ) -> None:
        self.settings = get_settings()
        self.aggregator = aggregator or ScoreAggregator()
        self.analyzers = analyzers

    def validate(self, text: object) -> str:
        return validate_text(text, min_chars=self.settings.text_min_chars, max_chars=self.settings.text_max_chars)

    def _run(self, name: str, analyzer: Analyzer, doc: Document) -> AnalyzerResult:
        try:
            return analyzer(doc)
        except Exception:
            logger.exception("detector_analyzer_degraded", analyzer=name, kind=ErrorKind.ANALYSIS_DEGRADED.value)
            return AnalyzerResult.neutral(name, degraded=True)

    def evaluate(self, text: str) -> DetectionReport:
        """Score text without the length gate; used for humanizer candidates and edge cases."""
        normalized = normalize_text(text)
        doc = Document.from_text(normalized)
        results = {name: self._run(name, analyzer, doc) for name, analyzer in self.analyzers}
        return self.aggregator.aggregate(results, text_metrics=compute_metrics(normalized).as_dict())

    def analyze(self, text: str) -> DetectionReport:
        self.validate(text)
        report = self.evaluate(text)
        logger.info(
            "detector_analysis_complete",
            overall_score=report.overall_score,
            risk_level=report.risk_level.value,
            degraded=report.degraded_analyzers,
        )
        return report


detector_service = DetectorService()
