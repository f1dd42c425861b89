"""Statistical fingerprinting: perplexity, burstiness, syntactic depth, coherence."""

from __future__ import annotations

import math
from collections import Counter, defaultdict

from app.schemas.detection import AnalyzerResult
from app.services.analyzers.document import Document
from app.services.analyzers.lexicon import PARAGRAPH_TRANSITION_RE, PARALLELISM_RE, STOPWORDS, SUBORDINATE_RE
from app.utils.text import jaccard_similarity, mean, population_std, population_variance

PERPLEXITY_TOKEN_LIMIT = 500
PERPLEXITY_SMOOTHING = 0.001
SUSPICIOUS_PERPLEXITY = 40.0
DEFAULT_SENTENCE_PERPLEXITY = 100.0
PERPLEXITY_RISK_STEPS: tuple[tuple[float, int], ...] = ((40, 90), (60, 75), (100, 50), (150, 30))
PERPLEXITY_RISK_FLOOR = 10

MAX_PROXY_DEPTH = 5
SMOOTH_TRANSITION_SIMILARITY = 0.65

NGramTable = dict[tuple[str, ...], Counter]


def build_ngram_table(tokens: list[str] | tuple[str, ...], n: int) -> NGramTable:
    """Map each n-gram to a Counter of the token that follows it ('' at the end)."""
    table: NGramTable = defaultdict(Counter)
    for i in range(len(tokens) - n + 1):
        key = tuple(tokens[i : i + n])
        follower = tokens[i + n] if i + n < len(tokens) else ""
        table[key][follower] += 1
    return dict(table)


def sentence_perplexity(tokens: list[str], table: NGramTable) -> float:
    if len(tokens) < 3:
        return DEFAULT_SENTENCE_PERPLEXITY

    total_log_prob = 0.0
    counted = 0
    for i in range(len(tokens) - 2):
        followers = table.get(tuple(tokens[i : i + 3]))
        if not followers:
            continue
        follower = tokens[i + 3] if i + 3 < len(tokens) else ""
        total = sum(followers.values())
        prob = followers[follower] / total if total else 0.01
        total_log_prob += math.log(prob + PERPLEXITY_SMOOTHING)
        counted += 1

    if not counted:
        return DEFAULT_SENTENCE_PERPLEXITY
    return math.exp(-total_log_prob / counted)


def perplexity_risk(overall: float) -> int:
    for upper, risk in PERPLEXITY_RISK_STEPS:
        if overall < upper:
            return risk
    return PERPLEXITY_RISK_FLOOR


def analyze_perplexity(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("perplexity", overall_perplexity=0.0, suspicious_sentence_count=0)

    window = doc.tokens[:PERPLEXITY_TOKEN_LIMIT]
    trigrams = build_ngram_table(window, 3)
    fourgrams = build_ngram_table(window, 4)

    scores = []
    suspicious = 0
    for sentence in doc.sentences:
        value = sentence_perplexity(sentence.tokens, trigrams)
        flagged = value < SUSPICIOUS_PERPLEXITY
        suspicious += int(flagged)
        scores.append({"sentence": sentence.text[:100], "perplexity": round(value, 2), "flag": flagged})

    overall = round(mean(s["perplexity"] for s in scores), 2)
    repeated = sum(1 for followers in fourgrams.values() if sum(followers.values()) > 1)

    patterns = []
    if suspicious:
        patterns.append(f"{suspicious} of {len(scores)} sentences are highly predictable (perplexity < 40)")

    return AnalyzerResult(
        name="perplexity",
        risk_score=perplexity_risk(overall),
        patterns=patterns,
        details={
            "overall_perplexity": overall,
            "suspicious_sentence_count": suspicious,
            "sentence_scores": scores,
            "distinct_fourgrams": len(fourgrams),
            "repeated_fourgram_ratio": round(repeated / max(1, len(fourgrams)), 4),
        },
    )


def analyze_burstiness(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("burstiness", coefficient_of_variation=0.0)

    lengths = [s.word_count for s in doc.sentences]
    complexities = [s.word_count * (1 + s.clause_count * 0.2) for s in doc.sentences]
    paragraph_lengths = [len(p.split()) for p in doc.paragraphs]

    complexity_mean = mean(complexities)
    complexity_std = population_std(complexities)
    cv = round(complexity_std / complexity_mean * 100, 2) if complexity_mean else 0.0

    patterns: list[str] = []
    risk = 0

    per_paragraph = doc.paragraph_sentence_counts()
    if per_paragraph and all(3 <= count <= 5 for count in per_paragraph):
        patterns.append("Perfect paragraph structure (3-5 sentences each)")
        risk += 15

    if len(lengths) > 5 and all(15 <= n <= 25 for n in lengths):
        patterns.append("Every sentence falls within 15-25 words")
        risk += 20

    if cv < 25:
        patterns.append("Uniform sentence length (unnaturally consistent structure)")
        risk += 15
    elif cv > 40:
        risk -= 10

    with_transition = sum(1 for p in doc.paragraphs if PARAGRAPH_TRANSITION_RE.match(p))
    if doc.paragraphs and with_transition > len(doc.paragraphs) * 0.7:
        patterns.append("Stock transitions open most paragraphs")
        risk += 10

    return AnalyzerResult(
        name="burstiness",
        risk_score=risk,
        patterns=patterns,
        details={
            "coefficient_of_variation": cv,
            "mean_sentence_length": round(mean(lengths), 2),
            "sentence_length_std": round(population_std(lengths), 2),
            "paragraph_length_std": round(population_std(paragraph_lengths), 2),
            "complexity_std": round(complexity_std, 2),
        },
    )


def proxy_tree_depth(sentence: str) -> int:
    depth = 1
    open_brackets = 0
    for ch in sentence:
        if ch in "([{":
            open_brackets += 1
        elif ch in ")]}":
            open_brackets -= 1
        depth = max(depth, open_brackets + 1)
    depth += sentence.count(",") // 3
    return min(depth, MAX_PROXY_DEPTH)


def analyze_syntactic(doc: Document) -> AnalyzerResult:
    if doc.is_empty:
        return AnalyzerResult.neutral("syntactic", average_tree_depth=0.0)

    count = doc.sentence_count
    depths = [proxy_tree_depth(s.text) for s in doc.sentences]
    depth_variance = population_variance(depths)

    subordinate_ratio = len(SUBORDINATE_RE.findall(doc.text)) / count
    parallelism_score = round(len(PARALLELISM_RE.findall(doc.text)) / count * 10)
    fragments = sum(1 for s in doc.sentences if not s.is_terminated or s.word_count < 3)
    fragment_ratio = round(fragments / count * 100)

    patterns: list[str] = []
    risk = 0

    if parallelism_score > 5:
        patterns.append("Excessive parallelism (X, Y, and Z structures)")
        risk += 12

    if subordinate_ratio > 0.5:
        patterns.append("High subordinate clause usage")
        risk += 8

    if depth_variance < 0.3:
        patterns.append("Unnaturally consistent sentence complexity")
        risk += 15
    elif depth_variance > 1.5:
        risk -= 5

    if fragment_ratio < 5:
        patterns.append("No sentence fragments (unnatural)")
        risk += 10

    return AnalyzerResult(
        name="syntactic",
        risk_score=risk,
        patterns=patterns,
        details={
            "average_tree_depth": round(mean(depths), 2),
            "tree_depth_variance": round(depth_variance, 2),
            "subordinate_clause_ratio": round(subordinate_ratio, 2),
            "parallelism_score": parallelism_score,
            "fragment_ratio": fragment_ratio,
        },
    )


def _content_words(tokens: list[str]) -> set[str]:
    return {t for t in tokens if t not in STOPWORDS}


def analyze_coherence(doc: Document) -> AnalyzerResult:
    if doc.sentence_count < 2:
        return AnalyzerResult.neutral("coherence", average_coherence=0.0, pair_count=0)

    token_sets = [_content_words(s.tokens) for s in doc.sentences]
    similarities = [jaccard_similarity(a, b) for a, b in zip(token_sets, token_sets[1:])]

    average = mean(similarities)
    variance = population_variance(similarities)
    smooth_ratio = round(sum(1 for s in similarities if s > SMOOTH_TRANSITION_SIMILARITY) / len(similarities) * 100)

    patterns: list[str] = []
    risk = 0

    if average > 0.75:
        patterns.append("Unnaturally high semantic coherence")
        risk += 20
    elif average > 0.65:
        patterns.append("Higher than average semantic coherence")
        risk += 10

    if variance < 0.05:
        patterns.append("Perfect coherence consistency (every sentence connects identically)")
        risk += 15

    if smooth_ratio > 80:
        patterns.append("Nearly perfect transitions between all sentences")
        risk += 12

    return AnalyzerResult(
        name="coherence",
        risk_score=risk,
        patterns=patterns,
        details={
            "average_coherence": round(average, 2),
            "coherence_variance": round(variance, 4),
            "smooth_transition_ratio": smooth_ratio,
            "pair_count": len(similarities),
        },
    )
