"""Linguistic pattern detection: phrase dictionary, structure, vocabulary, punctuation."""

from __future__ import annotations

import re

from app.schemas.detection import AnalyzerResult
from app.services.analyzers.document import Document
from app.services.analyzers.lexicon import (
    AI_PHRASE_CATEGORIES,
    CONTRACTIONS_RE,
    FORMAL_WORDS,
    TOPIC_STARTER_RE,
    phrase_pattern,
)
from app.utils.text import mean, split_sentences

PHRASE_DENSITY_STEPS: tuple[tuple[float, int], ...] = ((20, 85), (15, 75), (10, 60), (5, 40), (2, 20))
MAX_PHRASE_EXAMPLES = 2

_COMPILED_PHRASES = {
    category: tuple((phrase, phrase_pattern(phrase)) for phrase in phrases)
    for category, phrases in AI_PHRASE_CATEGORIES.items()
}
_FORMAL_WORD_RES = tuple(re.compile(rf"\b{re.escape(word)}\b") for word in FORMAL_WORDS)
_BULLET_RE = re.compile(r"^\s*[-*•]\s+\S")
_HEADER_RE = re.compile(r"^#+\s.+$", re.MULTILINE)
_HEADER_PREFIX_RE = re.compile(r"^#+\s")
_ALL_CAPS_RE = re.compile(r"\b[A-Z]{2,}\b")


def phrase_density_risk(density_percent: float) -> int:
    for lower, risk in PHRASE_DENSITY_STEPS:
        if density_percent > lower:
            return risk
    return 0


def count_ai_phrases(text: str) -> dict[str, dict]:
    by_category: dict[str, dict] = {}
    for category, entries in _COMPILED_PHRASES.items():
        count = 0
        examples: list[str] = []
        for _, pattern in entries:
            matches = pattern.findall(text)
            if not matches:
                continue
            count += len(matches)
            if len(examples) < MAX_PHRASE_EXAMPLES:
                examples.append(matches[0])
        by_category[category] = {"count": count, "examples": examples}
    return by_category


def analyze_ai_phrases(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("ai_phrases", total_phrase_count=0, by_category={})

    by_category = count_ai_phrases(doc.text)
    total = sum(entry["count"] for entry in by_category.values())
    density = total / doc.sentence_count * 100

    patterns = [
        f"{category.replace('_', ' ').capitalize()}: {entry['count']} match(es), e.g. \"{entry['examples'][0]}\""
        for category, entry in by_category.items()
        if entry["count"]
    ]

    return AnalyzerResult(
        name="ai_phrases",
        risk_score=phrase_density_risk(density),
        patterns=patterns,
        details={
            "total_phrase_count": total,
            "phrase_density": round(density, 2),
            "by_category": by_category,
        },
    )


def _triple_list_count(text: str) -> int:
    runs: list[int] = []
    current = 0
    for line in text.splitlines():
        if _BULLET_RE.match(line):
            current += 1
            continue
        if current:
            runs.append(current)
        current = 0
    if current:
        runs.append(current)
    return sum(1 for run in runs if run == 3)


def _parallel_headers(text: str) -> bool:
    headers = _HEADER_RE.findall(text)
    if len(headers) <= 2:
        return False
    leads = [re.split(r"[\s\W]", _HEADER_PREFIX_RE.sub("", h, count=1))[0] for h in headers]
    return all(lead == leads[0] for lead in leads)


def analyze_structure(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("structural", severity="low")

    paragraphs = doc.paragraphs
    counts = doc.paragraph_sentence_counts()
    patterns: list[str] = []
    risk = 0

    if len(paragraphs) == 5 and all(c >= 3 for c in counts):
        patterns.append("Classic 5-paragraph essay structure")
        risk += 15

    topic_openers = 0
    for paragraph in paragraphs:
        first = split_sentences(paragraph)
        if first and TOPIC_STARTER_RE.match(first[0].text):
            topic_openers += 1
    if topic_openers > len(paragraphs) * 0.8:
        patterns.append("Every paragraph starts with a topic sentence")
        risk += 10

    average = mean(counts)
    if len(paragraphs) > 3 and all(abs(c - average) <= 1 for c in counts):
        patterns.append("Suspiciously consistent paragraph lengths")
        risk += 12

    if _triple_list_count(doc.text):
        patterns.append("Lists with exactly 3 items")
        risk += 8

    if len(paragraphs) > 3 and not any(c < 2 or c > 8 for c in counts):
        patterns.append("No very short or very long paragraphs")
        risk += 8

    if _parallel_headers(doc.text):
        patterns.append("Perfectly parallel header structure")
        risk += 10

    severity = "high" if risk > 40 else "medium" if risk > 20 else "low"

    return AnalyzerResult(
        name="structural",
        risk_score=risk,
        patterns=patterns,
        details={
            "severity": severity,
            "paragraph_count": len(paragraphs),
            "sentences_per_paragraph": counts,
        },
    )


def analyze_vocabulary(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("vocabulary", type_token_ratio=0)

    tokens = doc.tokens
    ttr = len(set(tokens)) / len(tokens) * 100
    lowered = doc.text.lower()
    formal_count = sum(len(pattern.findall(lowered)) for pattern in _FORMAL_WORD_RES)
    contraction_ratio = len(CONTRACTIONS_RE.findall(doc.text)) / doc.sentence_count * 100

    patterns: list[str] = []
    risk = 0

    if ttr > 85:
        patterns.append("Unnaturally high vocabulary diversity (possible thesaurus use)")
        risk += 20
    elif ttr > 75:
        patterns.append("High vocabulary diversity")
        risk += 10

    if formal_count > 5:
        patterns.append("Excessive formal vocabulary")
        risk += 15

    if contraction_ratio < 10 and ttr > 70:
        patterns.append("Few contractions despite formal tone")
        risk += 12

    formality = round(formal_count / len(tokens) * 100)
    return AnalyzerResult(
        name="vocabulary",
        risk_score=risk,
        patterns=patterns,
        details={
            "type_token_ratio": round(ttr),
            "formal_word_count": formal_count,
            "formality_score": formality,
            "thesaurus_ratio": min(100, formality),
            "contraction_ratio": round(contraction_ratio, 1),
        },
    )


def analyze_punctuation(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("punctuation")

    count = doc.sentence_count
    text = doc.text
    exclamation_ratio = text.count("!") / count * 100
    em_dash_ratio = text.count("—") / count * 100
    semicolon_ratio = text.count(";") / count * 100
    ellipsis_ratio = text.count("...") / count * 100
    caps_words = len(_ALL_CAPS_RE.findall(text))

    patterns: list[str] = []
    risk = 0

    if exclamation_ratio < 2:
        patterns.append("No or very few exclamation marks")
        risk += 5
    if em_dash_ratio < 1:
        patterns.append("No em-dashes")
        risk += 3
    if semicolon_ratio > 5:
        patterns.append("Excessive semicolons")
        risk += 8
    if ellipsis_ratio < 0.5:
        patterns.append("No ellipses")
        risk += 3
    if caps_words == 0:
        patterns.append("No ALL CAPS for emphasis")
        risk += 2
    else:
        risk -= 3

    return AnalyzerResult(
        name="punctuation",
        risk_score=risk,
        patterns=patterns,
        details={
            "exclamation_ratio": round(exclamation_ratio, 1),
            "em_dash_ratio": round(em_dash_ratio, 1),
            "semicolon_ratio": round(semicolon_ratio, 1),
            "ellipsis_ratio": round(ellipsis_ratio, 1),
            "all_caps_words": caps_words,
        },
    )
