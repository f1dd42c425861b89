from __future__ import annotations

from dataclasses import dataclass

from app.utils.text import Sentence, paragraphs, split_sentences, words


@dataclass(frozen=True)
class Document:
    """Segmented, immutable view of one text, shared by every analyzer of a run."""

    text: str
    sentences: tuple[Sentence, ...]
    paragraphs: tuple[str, ...]
    tokens: tuple[str, ...]

    @classmethod
    def from_text(cls, text: str) -> "Document":
        return cls(
            text=text,
            sentences=tuple(split_sentences(text)),
            paragraphs=tuple(paragraphs(text)),
            tokens=tuple(words(text)),
        )

    @property
    def sentence_count(self) -> int:
        return len(self.sentences)

    @property
    def is_empty(self) -> bool:
        return not self.sentences or not self.tokens

    def paragraph_sentence_counts(self) -> list[int]:
        return [len(split_sentences(p)) for p in self.paragraphs]
