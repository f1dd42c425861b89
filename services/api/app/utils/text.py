from __future__ import annotations

import math
import re
from collections import Counter
from dataclasses import dataclass
from typing import Iterable

_WORD_RE = re.compile(r"\b[\w']+\b", flags=re.UNICODE)
_BOUNDARY_RE = re.compile(r"[.!?]+[\"')\]]*(?=\s|$)")
_LAST_TOKEN_RE = re.compile(r"([A-Za-z][\w.]*)$")
_ABBREVIATIONS = frozenset(
    {"e.g", "i.e", "cf", "vs", "mr", "mrs", "ms", "dr", "prof", "st", "jr", "sr", "approx", "fig", "al"}
)
_PARAGRAPH_BREAK_RE = re.compile(r"\n[ \t]*\n\s*")
_INLINE_SPACE_RE = re.compile(r"[ \t\f\v]+")
_HAS_WORD_RE = re.compile(r"\w")
_CLAUSE_RE = re.compile(r"[,;:]")

PUNCTUATION_MARKS = ",;:!?-—"


@dataclass(frozen=True)
class Sentence:
    """A sentence with its [start, end) offsets in the text it was split from."""

    text: str
    start: int
    end: int

    @property
    def word_count(self) -> int:
        return len(self.text.split())

    @property
    def clause_count(self) -> int:
        return len(_CLAUSE_RE.findall(self.text)) + 1

    @property
    def punctuation_counts(self) -> dict[str, int]:
        counts = Counter(ch for ch in self.text if ch in PUNCTUATION_MARKS)
        return dict(counts)

    @property
    def tokens(self) -> list[str]:
        return words(self.text)

    @property
    def is_terminated(self) -> bool:
        return self.text.rstrip("\"')]").endswith((".", "!", "?"))


def normalize_text(text: str) -> str:
    """Collapse inline whitespace while keeping paragraph breaks."""
    unified = text.replace("\r\n", "\n").replace("\r", "\n")
    lines = [_INLINE_SPACE_RE.sub(" ", line).strip() for line in unified.split("\n")]
    joined = "\n".join(lines).strip()
    return re.sub(r"\n{3,}", "\n\n", joined)


def words(text: str) -> list[str]:
    return _WORD_RE.findall(text.lower())


def paragraph_spans(text: str) -> list[tuple[int, int]]:
    spans: list[tuple[int, int]] = []
    cursor = 0
    for brk in _PARAGRAPH_BREAK_RE.finditer(text):
        spans.append((cursor, brk.start()))
        cursor = brk.end()
    spans.append((cursor, len(text)))
    return [(s, e) for s, e in spans if text[s:e].strip()]


def paragraphs(text: str) -> list[str]:
    return [text[s:e].strip() for s, e in paragraph_spans(text)]


def _is_abbreviation(block: str, boundary: re.Match[str]) -> bool:
    if boundary.group(0) != ".":
        return False
    token = _LAST_TOKEN_RE.search(block, max(0, boundary.start() - 32), boundary.start())
    if token is None:
        return False
    word = token.group(1)
    if word.lower() == "etc":
        following = block[boundary.end() :].lstrip()[:1]
        return following.islower()
    return word.lower() in _ABBREVIATIONS


def _sentence_spans(block: str) -> list[tuple[int, int]]:
    """Terminal punctuation ends a sentence only when whitespace or the end of text follows it."""
    spans: list[tuple[int, int]] = []
    cursor = 0
    for boundary in _BOUNDARY_RE.finditer(block):
        if _is_abbreviation(block, boundary):
            continue
        spans.append((cursor, boundary.end()))
        cursor = boundary.end()
    if cursor < len(block):
        spans.append((cursor, len(block)))
    return spans


def split_sentences(text: str) -> list[Sentence]:
    """Regex-level sentence splitting; never spans a blank-line paragraph break."""
    out: list[Sentence] = []
    for para_start, para_end in paragraph_spans(text):
        block = text[para_start:para_end]
        for span_start, span_end in _sentence_spans(block):
            raw = block[span_start:span_end]
            stripped = raw.strip()
            if not stripped or not _HAS_WORD_RE.search(stripped):
                continue
            start = para_start + span_start + (len(raw) - len(raw.lstrip()))
            out.append(Sentence(text=stripped, start=start, end=start + len(stripped)))
    return out


def sentences(text: str) -> list[str]:
    return [s.text for s in split_sentences(text)]


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def mean(values: Iterable[float]) -> float:
    items = list(values)
    return sum(items) / len(items) if items else 0.0


def population_variance(values: Iterable[float]) -> float:
    items = list(values)
    if not items:
        return 0.0
    mu = mean(items)
    return sum((x - mu) ** 2 for x in items) / len(items)


def population_std(values: Iterable[float]) -> float:
    return math.sqrt(population_variance(values))


def jaccard_similarity(left: set[str], right: set[str]) -> float:
    union = left | right
    if not union:
        return 0.0
    return len(left & right) / len(union)


def word_set_similarity(original: str, candidate: str) -> float:
    return jaccard_similarity(set(words(original)), set(words(candidate)))


def preview(text: str, limit: int = 160) -> str:
    flat = " ".join(text.split())
    return flat if len(flat) <= limit else f"{flat[: limit - 3]}..."
