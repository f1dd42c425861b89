"""Word and phrase lists shared by the analyzers and the humanizer."""

from __future__ import annotations

import re

AI_PHRASE_CATEGORIES: dict[str, tuple[str, ...]] = {
    "hedging_phrases": (
        "it's important to note that",
        "it is important to note that",
        "it's worth noting",
        "it is worth noting",
        "it should be noted",
        "one might argue that",
        "some might say that",
        "it could be argued that",
        "it is worth considering",
        "it should be emphasized",
    ),
    "transition_overuse": (
        "furthermore,",
        "moreover,",
        "additionally,",
        "in addition to this,",
        "building upon this,",
        "on the other hand,",
        "conversely,",
        "subsequently,",
        "in consequence,",
        "as a result,",
    ),
    "metacognitive_phrases": (
        "delve into",
        "dive deep into",
        "explore the intricacies",
        "unpack this concept",
        "shed light on",
        "paint a picture",
        "illuminate",
        "elucidate",
        "expound upon",
        "elaborate on",
    ),
    "abstract_overuse": (
        "realm",
        "landscape",
        "tapestry",
        "multifaceted",
        "nuanced",
        "paradigm shift",
        "quintessential",
        "seminal",
        "proverbial",
        "apotheosis",
    ),
    "conclusion_markers": (
        "in conclusion,",
        "in summary,",
        "to summarize,",
        "in essence,",
        "ultimately,",
        "in the final analysis,",
        "to conclude,",
        "in closing,",
    ),
    "emphasis_patterns": (
        "cannot be overstated",
        "plays a crucial role",
        "of paramount importance",
        "vital to understand",
        "essential to recognize",
        "cannot understate",
        "of utmost importance",
        "extraordinarily significant",
    ),
}

# Phrases tracked when reporting what a rewrite removed.
REMOVABLE_PATTERNS: tuple[str, ...] = (
    "it's important to note",
    "it is important to note",
    "delve into",
    "furthermore",
    "moreover",
    "additionally",
    "in today's digital age",
    "in conclusion",
    "it's worth noting",
    "the realm of",
    "the landscape of",
    "tapestry",
    "myriad",
    "plethora",
    "navigate the complexities",
    "shed light on",
    "paramount importance",
)

FORMAL_WORDS: tuple[str, ...] = (
    "utilize",
    "commence",
    "endeavor",
    "peruse",
    "pursuant",
    "aforementioned",
    "herein",
    "therein",
)

CONTRACTIONS_RE = re.compile(r"\b(don't|can't|won't|it's|we're|they're|i'm|we've)\b", re.IGNORECASE)

PARAGRAPH_TRANSITION_RE = re.compile(
    r"^(Furthermore|Moreover|Additionally|However|Meanwhile|In addition|On the other hand|As a result)\b",
    re.IGNORECASE,
)

TOPIC_STARTER_RE = re.compile(r"^(This|The|A|An|In|These|Students)\b")

SUBORDINATE_RE = re.compile(r"\b(because|although|while|since|if|when|unless|as|whereas)\b", re.IGNORECASE)

PARALLELISM_RE = re.compile(r"(\w+),\s(\w+),\s(?:and|or)\s(\w+)", re.IGNORECASE)

STOPWORDS = frozenset(
    {"the", "a", "an", "and", "or", "but", "in", "on", "at", "to", "for", "of", "with", "is", "are", "be"}
)


def phrase_pattern(phrase: str) -> re.Pattern[str]:
    """Case-insensitive whole-phrase matcher; tolerates phrases ending in punctuation."""
    return re.compile(rf"(?<!\w){re.escape(phrase)}(?!\w)", re.IGNORECASE)
