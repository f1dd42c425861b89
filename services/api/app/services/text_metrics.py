from __future__ import annotations

import math
from dataclasses import asdict, dataclass

from app.utils.text import clamp, mean, population_std, split_sentences, words

WORDS_PER_MINUTE = 230.0
MTLD_THRESHOLD = 0.72


@dataclass(frozen=True)
class TextMetrics:
    readability: dict[str, float]
    sentence_uniformity: float
    burstiness: float
    vocab_diversity: float
    type_token_ratio: float
    mtld: float
    word_count: int
    sentence_count: int
    paragraph_count: int
    estimated_read_time: float

    def as_dict(self) -> dict:
        return asdict(self)


def syllable_count(word: str) -> int:
    w = word.lower().strip()
    if not w:
        return 1
    count = 0
    prev_vowel = False
    for ch in w:
        is_vowel = ch in "aeiouy"
        if is_vowel and not prev_vowel:
            count += 1
        prev_vowel = is_vowel
    if w.endswith("e") and count > 1:
        count -= 1
    return max(1, count)


def mtld(tokens: list[str], threshold: float = MTLD_THRESHOLD) -> float:
    """Measure of textual lexical diversity (forward pass only)."""
    if not tokens:
        return 0.0
    factors = 0.0
    segment_start = 0
    seen: set[str] = set()

    for idx, tok in enumerate(tokens, start=1):
        seen.add(tok)
        if len(seen) / (idx - segment_start) <= threshold:
            factors += 1
            segment_start = idx
            seen = set()

    remainder = len(tokens) - segment_start
    if remainder and seen:
        factors += (1 - len(seen) / remainder) / (1 - threshold)

    return len(tokens) / max(1e-6, factors)


def readability(tokens: list[str], sentence_count: int) -> dict[str, float]:
    sc = max(1, sentence_count)
    wc = max(1, len(tokens))
    syllables = [syllable_count(t) for t in tokens]
    words_per_sentence = len(tokens) / sc
    syllables_per_word = sum(syllables) / wc
    polysyllables = sum(1 for s in syllables if s >= 3)

    flesch = 206.835 - 1.015 * words_per_sentence - 84.6 * syllables_per_word
    grade = 0.39 * words_per_sentence + 11.8 * syllables_per_word - 15.59
    smog = 1.0430 * math.sqrt(polysyllables * (30 / sc)) + 3.1291

    return {
        "flesch_reading_ease": round(clamp(flesch, -20.0, 120.0), 3),
        "flesch_kincaid_grade": round(clamp(grade, -3.0, 18.0), 3),
        "smog_index": round(clamp(smog, 0.0, 18.0), 3),
    }


def compute_metrics(text: str) -> TextMetrics:
    sents = split_sentences(text)
    tokens = words(text)
    lengths = [s.word_count for s in sents]

    avg_len = mean(lengths)
    spread = population_std(lengths)
    cv = spread / avg_len if avg_len else 0.0
    # 100 = every sentence the same length, 0 = variation at or above the mean length.
    uniformity = clamp(100.0 - cv * 100.0, 0.0, 100.0) if lengths else 0.0

    ttr = len(set(tokens)) / len(tokens) if tokens else 0.0
    lexical = mtld(tokens)

    return TextMetrics(
        readability=readability(tokens, len(sents)),
        sentence_uniformity=round(uniformity, 2),
        burstiness=round(clamp(spread / max(1.0, avg_len), 0.0, 1.0), 4),
        vocab_diversity=round(clamp(ttr * 0.55 + min(lexical, 120) / 120 * 0.45, 0.0, 1.0), 4),
        type_token_ratio=round(ttr, 4),
        mtld=round(lexical, 2),
        word_count=len(tokens),
        sentence_count=len(sents),
        paragraph_count=len([p for p in text.split("\n\n") if p.strip()]),
        estimated_read_time=round(len(tokens) / WORDS_PER_MINUTE, 2),
    )
