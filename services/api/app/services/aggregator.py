from __future__ import annotations

import math
from typing import Any, Mapping

from app.schemas.detection import AnalyzerResult, DetectionReport, RiskLevel

DEFAULT_WEIGHTS: dict[str, float] = {
    "perplexity": 0.15,
    "burstiness": 0.15,
    "syntactic": 0.10,
    "coherence": 0.08,
    "ai_phrases": 0.12,
    "structural": 0.12,
    "vocabulary": 0.10,
    "punctuation": 0.05,
    "consistency": 0.05,
    "depth": 0.08,
}

# Upper bound (inclusive) of overall score for each level, checked in order.
RISK_LEVEL_BOUNDS: tuple[tuple[int, RiskLevel], ...] = (
    (25, RiskLevel.HUMAN),
    (45, RiskLevel.LIKELY_HUMAN),
    (55, RiskLevel.UNCERTAIN),
    (75, RiskLevel.LIKELY_AI),
)

CONFIDENCE_BASE = 50
CONFIDENCE_STEPS: tuple[tuple[int, int], ...] = ((8, 95), (5, 85), (3, 75))
AGREEMENT_ANALYZERS = ("perplexity", "burstiness", "ai_phrases", "structural")
AGREEMENT_THRESHOLD = 60
AGREEMENT_MIN_METHODS = 3
AGREEMENT_BOOST = 15
CONFIDENCE_CAP = 98
MAX_EVIDENCE_HIGHLIGHTS = 5

# Patterns that point toward human authorship; never counted as evidence.
HUMAN_SIGNAL_PATTERNS = frozenset({"Personal anecdotes found"})


def risk_level_for(score: float) -> RiskLevel:
    for upper, level in RISK_LEVEL_BOUNDS:
        if score <= upper:
            return level
    return RiskLevel.AI


def confidence_for(pattern_count: int, agreeing_methods: int) -> int:
    confidence = CONFIDENCE_BASE
    for minimum, value in CONFIDENCE_STEPS:
        if pattern_count >= minimum:
            confidence = value
            break
    if agreeing_methods >= AGREEMENT_MIN_METHODS:
        confidence = min(CONFIDENCE_CAP, confidence + AGREEMENT_BOOST)
    return confidence


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


class ScoreAggregator:
    def __init__(self, weights: Mapping[str, float] | None = None) -> None:
        resolved = dict(DEFAULT_WEIGHTS if weights is None else weights)
        unknown = set(resolved) - set(DEFAULT_WEIGHTS)
        if unknown:
            raise ValueError(f"Unknown analyzer weights: {', '.join(sorted(unknown))}")
        if not math.isclose(sum(resolved.values()), 1.0, abs_tol=1e-6):
            raise ValueError("Analyzer weights must sum to 1.0")
        self.weights = resolved

    def aggregate(
        self,
        results: Mapping[str, AnalyzerResult],
        *,
        text_metrics: dict[str, Any] | None = None,
    ) -> DetectionReport:
        # Fixed key order regardless of how results were produced.
        analyzers = {name: results.get(name) or AnalyzerResult.neutral(name, degraded=True) for name in DEFAULT_WEIGHTS}

        weighted = {
            name: round(_finite(analyzers[name].risk_score) * self.weights.get(name, 0.0), 4) for name in analyzers
        }
        total = _finite(sum(weighted.values()))
        overall = int(round(max(0.0, min(100.0, total))))

        evidence: list[str] = []
        for result in analyzers.values():
            for pattern in result.patterns:
                if pattern not in HUMAN_SIGNAL_PATTERNS and pattern not in evidence:
                    evidence.append(pattern)

        agreeing = sum(1 for name in AGREEMENT_ANALYZERS if analyzers[name].risk_score > AGREEMENT_THRESHOLD)

        return DetectionReport(
            overall_score=overall,
            confidence=confidence_for(len(evidence), agreeing),
            risk_level=risk_level_for(overall),
            analyzers=analyzers,
            weighted_scores=weighted,
            evidence_highlights=evidence[:MAX_EVIDENCE_HIGHLIGHTS],
            recommendations=self.recommendations(analyzers),
            degraded_analyzers=[name for name, result in analyzers.items() if result.degraded],
            text_metrics=text_metrics or {},
        )

    @staticmethod
    def recommendations(analyzers: Mapping[str, AnalyzerResult]) -> list[str]:
        out: list[str] = []
        if analyzers["perplexity"].risk_score > 70:
            out.append("Sentences show unnaturally predictable word patterns")
        if analyzers["burstiness"].risk_score > 70:
            out.append("Text lacks natural variation in sentence structure")
        if analyzers["ai_phrases"].risk_score > 60:
            count = analyzers["ai_phrases"].details.get("total_phrase_count", 0)
            out.append(f"Found {count} common AI phrases")
        if analyzers["vocabulary"].risk_score > 60:
            out.append("Vocabulary diversity appears artificially high")
        if analyzers["structural"].risk_score > 50:
            out.append("Text follows rigid structural patterns")
        if analyzers["coherence"].risk_score > 40:
            out.append("Sentence-to-sentence transitions are unusually smooth")
        depth = analyzers["depth"]
        if not depth.degraded and depth.details.get("has_anecdotes") is False:
            out.append("Consider adding first-hand detail or personal perspective")
        return out
