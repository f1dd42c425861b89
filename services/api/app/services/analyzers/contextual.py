"""Cross-sentence consistency and content depth heuristics."""

from __future__ import annotations

import re

from app.schemas.detection import AnalyzerResult
from app.services.analyzers.document import Document

_TENSE_MARKERS = {
    "past": re.compile(r"\b(was|were|had|did|went|said|told)\b", re.IGNORECASE),
    "present": re.compile(r"\b(is|are|have|do|goes|says|tells)\b", re.IGNORECASE),
    "future": re.compile(r"\b(will|shall|going to)\b", re.IGNORECASE),
}
_PASSIVE_RE = re.compile(r"\b(was|were|is|are|be|been)\s+\w+ed\b", re.IGNORECASE)
_POV_MARKERS = (
    re.compile(r"\b(I|we|me|us|my|our)\b", re.IGNORECASE),
    re.compile(r"\b(you|your)\b", re.IGNORECASE),
    re.compile(r"\b(he|she|it|they|his|her|their)\b", re.IGNORECASE),
)
_AMBIGUOUS_OPENER_RE = re.compile(r"^(it|this|that|they|these)\b", re.IGNORECASE)

_SPECIFIC_RE = re.compile(r"\b(specifically|concretely|for example|for instance|such as|including|like)\b", re.IGNORECASE)
_ABSTRACT_RE = re.compile(r"\b(generally|typically|usually|often|might|could|may)\b", re.IGNORECASE)
_EXAMPLE_RE = re.compile(r"for example|for instance|such as|like|specifically|case study|instance|example", re.IGNORECASE)
_ANECDOTE_RE = re.compile(
    r"\b(i remember|when i|i think|i believe|in my experience|personally|from my|my experience)\b",
    re.IGNORECASE,
)
_STRONG_OPINION_RE = re.compile(r"\b(obviously|clearly|undeniably|definitely|certainly|absolutely)\b", re.IGNORECASE)
_HEDGE_RE = re.compile(r"\b(seems|appears|might|could|possibly|arguably|perhaps)\b", re.IGNORECASE)
_BALANCE_RE = re.compile(r"\b(on the other hand|however|conversely|alternatively|in contrast)\b", re.IGNORECASE)


def _ratio(part: int, whole: int) -> int:
    return round(part / (whole or 1) * 100)


def analyze_consistency(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("consistency", tense_maintenance=0, pov_count=0)

    count = doc.sentence_count
    patterns: list[str] = []
    risk = 0

    tense_counts = {name: len(pattern.findall(doc.text)) for name, pattern in _TENSE_MARKERS.items()}
    tense_total = sum(tense_counts.values())
    dominant = max(tense_counts, key=tense_counts.get)
    tense_maintenance = round(tense_counts[dominant] / tense_total * 100) if tense_total else 0
    if tense_maintenance > 95:
        patterns.append("Perfect tense consistency (suspiciously rigid)")
        risk += 10

    passive = len(_PASSIVE_RE.findall(doc.text))
    active = max(0, count - passive)
    voice_consistency = _ratio(max(passive, active), count)
    if voice_consistency > 90:
        patterns.append("Suspiciously consistent voice")
        risk += 8

    pov_count = sum(1 for pattern in _POV_MARKERS if pattern.search(doc.text))
    if pov_count == 1:
        patterns.append("Rigid POV consistency")
        risk += 5
    elif pov_count > 2:
        patterns.append("Multiple POV shifts")
        risk += 8

    ambiguous = sum(1 for s in doc.sentences if _AMBIGUOUS_OPENER_RE.match(s.text))

    return AnalyzerResult(
        name="consistency",
        risk_score=risk,
        patterns=patterns,
        details={
            "tense_counts": tense_counts,
            "tense_maintenance": tense_maintenance,
            "voice_consistency": voice_consistency,
            "pov_count": pov_count,
            "pronoun_ambiguity": _ratio(ambiguous, count),
        },
    )


def analyze_depth(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("depth", example_count=0, has_anecdotes=None)

    text = doc.text
    patterns: list[str] = []
    risk = 0

    specific = len(_SPECIFIC_RE.findall(text))
    abstract = len(_ABSTRACT_RE.findall(text))
    example_count = len(_EXAMPLE_RE.findall(text))

    anecdotes = len(_ANECDOTE_RE.findall(text))
    if anecdotes:
        patterns.append("Personal anecdotes found")
        risk -= 15
    else:
        patterns.append("No personal anecdotes (AI trait)")
        risk += 10

    strong = len(_STRONG_OPINION_RE.findall(text))
    hedges = len(_HEDGE_RE.findall(text))
    opinion_strength = _ratio(strong, strong + hedges)
    if opinion_strength < 30:
        patterns.append("Excessive hedging (typical AI behavior)")
        risk += 12

    balance = _ratio(len(_BALANCE_RE.findall(text)), doc.sentence_count)
    if balance > 30:
        patterns.append("Excessive balance (presenting both sides equally)")
        risk += 10

    return AnalyzerResult(
        name="depth",
        risk_score=risk,
        patterns=patterns,
        details={
            "specificity_ratio": _ratio(specific, specific + abstract),
            "example_count": example_count,
            "has_anecdotes": bool(anecdotes),
            "opinion_strength": opinion_strength,
            "balance_score": balance,
        },
    )
