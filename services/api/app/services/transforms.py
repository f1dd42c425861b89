"""Local rewrite steps. Every randomized step draws from the caller's ``random.Random``."""

from __future__ import annotations

import random
import re
from typing import Callable

from app.schemas.humanize import HumanizationOptions, Intensity, Tone
from app.services.analyzers.lexicon import REMOVABLE_PATTERNS, phrase_pattern
from app.utils.text import paragraphs, split_sentences

RESTRUCTURE_RATE = 0.4
CLAUSE_REORDER_RATE = 0.5
OPENER_VARIATION_RATE = 0.6
QUALIFIER_PREFIX_RATE = 0.3
AGGRESSIVE_VOICE_RATE = 0.75
PERPLEXITY_SWAP_RATE = 0.4
MIN_RESTRUCTURE_WORDS = 5

AI_PATTERN_REPLACEMENTS: dict[str, str] = {
    "it's important to note that": "importantly,",
    "it is important to note that": "importantly,",
    "it is worth noting that": "",
    "it's worth noting that": "",
    "in today's digital age": "today",
    "in this digital age": "now",
    "in this day and age": "these days",
    "in conclusion,": "so,",
    "to conclude,": "ultimately,",
    "in summary,": "simply put,",
    "delves into": "explores",
    "delve into": "understand",
    "moreover,": "also,",
    "furthermore,": "and",
    "additionally,": "plus,",
    "in addition to this,": "also,",
    "the realm of": "the world of",
    "the landscape of": "the field of",
    "a multifaceted issue": "a complex problem",
    "multifaceted": "complex",
    "nuanced approach": "careful approach",
    "plays a crucial role": "matters",
    "plays a vital role": "is important",
    "of paramount importance": "very important",
    "paramount importance": "key",
    "cannot be overstated": "is really important",
    "shed light upon": "reveal",
    "shed light on": "show",
    "elucidate": "explain",
    "navigate the complexities": "deal with the complexity",
    "first and foremost": "first",
    "when all is said and done": "ultimately",
    "at the end of the day": "ultimately",
    "one must consider": "consider",
    "it is crucial to": "you need to",
}

FORMAL_TO_CASUAL: dict[str, str] = {
    "utilize": "use",
    "utilise": "use",
    "commence": "start",
    "endeavor": "try",
    "peruse": "read",
    "pursuant": "following",
    "aforementioned": "mentioned",
    "herein": "here",
    "therein": "there",
    "ascertain": "find out",
    "facilitate": "help",
    "demonstrate": "show",
    "illustrate": "show",
    "expound": "explain",
    "propound": "suggest",
    "advocate": "support",
    "ubiquitous": "everywhere",
    "ameliorate": "improve",
    "exacerbate": "make worse",
    "obfuscate": "confuse",
    "obfuscation": "confusion",
    "efficacious": "effective",
    "innocuous": "harmless",
    "egregious": "terrible",
    "ephemeral": "temporary",
    "esoteric": "specialized",
    "exiguous": "small",
    "felicitous": "lucky",
    "fortuitous": "lucky",
}

CONTRACTIONS: dict[str, str] = {
    "is not": "isn't",
    "can not": "can't",
    "cannot": "can't",
    "will not": "won't",
    "do not": "don't",
    "does not": "doesn't",
    "would not": "wouldn't",
    "should not": "shouldn't",
    "I am": "I'm",
    "you are": "you're",
    "we are": "we're",
    "they are": "they're",
    "it is": "it's",
    "let us": "let's",
}
CONTRACTION_TONES = frozenset({Tone.CASUAL, Tone.PROFESSIONAL})

OPENER_VARIATIONS: dict[str, str] = {
    "However,": "But",
    "Therefore,": "So",
    "Thus,": "So",
    "Consequently,": "So",
    "Nevertheless,": "Still,",
    "Additionally,": "Also,",
    "In addition,": "Also,",
    "Furthermore,": "And",
    "Moreover,": "Plus,",
    "Subsequently,": "Then",
}
SUBORDINATORS = ("although", "because", "if", "when", "while", "since", "though")
# Capitalized only because they open a sentence.
COMMON_OPENERS = frozenset(
    "the a an this that these those it its they their there we our you your he she his her my some many most "
    "all each every one no not and but or so then also still plus yet in on at for with by as to of from after "
    "before even what how why who which where".split()
) | frozenset(SUBORDINATORS)
RESTRUCTURE_QUALIFIERS = ("Honestly,", "Really,", "Truthfully,", "Look,", "Basically,", "Simply put,")

PERSONAL_QUALIFIERS = (
    "Honestly,",
    "In my view,",
    "From what I've seen,",
    "In my experience,",
    "I think",
    "I believe",
    "The way I see it,",
    "Truthfully,",
    "From my perspective,",
)
NEUTRAL_BRIDGES = (
    "Look,",
    "Actually,",
    "The thing is,",
    "Now,",
    "So,",
    "But here's the thing:",
    "The point is,",
    "Here's what matters:",
    "And frankly,",
    "The reality is,",
)
RHETORICAL_TAGS = ("Right?", "You know?", "Make sense?", "See?")

PERPLEXITY_SYNONYMS: dict[str, tuple[str, ...]] = {
    "good": ("solid", "sound", "compelling", "strong"),
    "bad": ("problematic", "flawed", "concerning", "troubling"),
    "thing": ("matter", "element", "aspect", "factor"),
    "very": ("quite", "remarkably", "exceptionally", "particularly"),
    "really": ("genuinely", "actually", "truly", "certainly"),
    "also": ("equally", "likewise", "similarly", "as well"),
    "great": ("significant", "substantial", "considerable", "noteworthy"),
    "big": ("substantial", "considerable", "major", "significant"),
    "said": ("noted", "observed", "remarked", "indicated"),
    "showed": ("demonstrated", "indicated", "revealed", "illustrated"),
}

_TECHNICAL_RE = re.compile(
    r"`[^`\n]+`"
    r"|\b[A-Za-z_]\w*(?:\.[A-Za-z_]\w+)+(?:\(\))?"
    r"|\b[A-Za-z]*\d+(?:\.\d+)+[A-Za-z]*\b"
    r"|\b\w*\d\w*\b"
    r"|\b\w+_\w+\b"
    r"|\b[a-z]+[A-Z]\w*\b"
    r"|\b[A-Z]{2,}s?\b"
)
_PLACEHOLDER = "__KEEP_TERM_{}__"

_COMPILED_REPLACEMENTS = tuple((phrase_pattern(src), dst) for src, dst in AI_PATTERN_REPLACEMENTS.items())
_FORMAL_RES = tuple((re.compile(rf"\b{src}\b", re.IGNORECASE), dst) for src, dst in FORMAL_TO_CASUAL.items())
_CONTRACTION_RES = tuple((re.compile(rf"\b{src}\b", re.IGNORECASE), dst) for src, dst in CONTRACTIONS.items())
_SYNONYM_RE = re.compile(rf"\b({'|'.join(PERPLEXITY_SYNONYMS)})\b", re.IGNORECASE)
_REMOVABLE_RES = tuple((phrase, phrase_pattern(phrase)) for phrase in REMOVABLE_PATTERNS)

_INLINE_SPACE_RE = re.compile(r"[ \t]+")
_SPACE_BEFORE_PUNCT_RE = re.compile(r"\s+([,.!?;:])")
_DOUBLE_COMMA_RE = re.compile(r",\s*,")
_LEADING_COMMA_RE = re.compile(r"(^|[.!?]\s+),\s*")
_TERMINAL_RE = re.compile(r"[.!?]+$")
_LOWER_WORD_RE = re.compile(r"\b[a-z][\w']*")


def match_case(source: str, replacement: str) -> str:
    if replacement and source[:1].isupper():
        return replacement[0].upper() + replacement[1:]
    return replacement


def lowercase_vocabulary(text: str) -> frozenset[str]:
    return frozenset(_LOWER_WORD_RE.findall(text))


def _lower_first(sentence: str, known_lower: frozenset[str] = frozenset()) -> str:
    """Lowercase the opening word unless it looks like a name or acronym."""
    first = sentence.split(" ", 1)[0].strip(",.;:")
    if first.lower() not in COMMON_OPENERS and first.lower() not in known_lower:
        return sentence
    return sentence[:1].lower() + sentence[1:]


def _upper_first(sentence: str) -> str:
    return sentence[:1].upper() + sentence[1:]


def protect_technical_terms(text: str) -> tuple[str, dict[str, str]]:
    mapping: dict[str, str] = {}
    by_term: dict[str, str] = {}

    def swap(match: re.Match[str]) -> str:
        term = match.group(0)
        if term not in by_term:
            key = _PLACEHOLDER.format(len(by_term))
            by_term[term] = key
            mapping[key] = term
        return by_term[term]

    return _TECHNICAL_RE.sub(swap, text), mapping


def restore_terms(text: str, mapping: dict[str, str]) -> str:
    out = text
    for key, term in mapping.items():
        out = out.replace(key, term)
    return out


def tidy(text: str) -> str:
    """Whitespace and capitalization cleanup that keeps paragraph breaks."""
    cleaned: list[str] = []
    for block in paragraphs(text):
        lines = [_tidy_line(line) for line in block.split("\n")]
        joined = "\n".join(line for line in lines if line)
        if joined:
            cleaned.append(_capitalize_sentences(joined))
    return "\n\n".join(cleaned)


def _tidy_line(line: str) -> str:
    out = _INLINE_SPACE_RE.sub(" ", line).strip()
    out = _SPACE_BEFORE_PUNCT_RE.sub(r"\1", out)
    out = _DOUBLE_COMMA_RE.sub(",", out)
    return _LEADING_COMMA_RE.sub(r"\1", out)


def _capitalize_sentences(block: str) -> str:
    chars = list(block)
    for sentence in split_sentences(block):
        if chars[sentence.start].islower():
            chars[sentence.start] = chars[sentence.start].upper()
    return "".join(chars)


def map_sentences(text: str, rewrite: Callable[[list[str]], list[str]]) -> str:
    """Apply a whole-document sentence rewrite, then regroup into the original paragraphs.

    Line breaks between sentences survive; any other gap becomes a single space.
    """
    blocks = paragraphs(text)
    groups = [split_sentences(block) for block in blocks]
    updated = rewrite([s.text for group in groups for s in group])
    out: list[str] = []
    cursor = 0
    for block, group in zip(blocks, groups):
        pieces: list[str] = []
        previous_end = 0
        for offset, sentence in enumerate(group):
            if offset:
                pieces.append("\n" if "\n" in block[previous_end : sentence.start] else " ")
            pieces.append(updated[cursor + offset])
            previous_end = sentence.end
        cursor += len(group)
        out.append("".join(pieces))
    return "\n\n".join(block for block in out if block.strip())


def remove_ai_patterns(text: str) -> str:
    out = text
    for pattern, replacement in _COMPILED_REPLACEMENTS:
        out = pattern.sub(lambda m, r=replacement: match_case(m.group(0), r), out)
    return tidy(out)


def naturalize_vocabulary(text: str, tone: Tone) -> str:
    out = text
    for pattern, replacement in _FORMAL_RES:
        out = pattern.sub(lambda m, r=replacement: match_case(m.group(0), r), out)
    if tone in CONTRACTION_TONES:
        for pattern, replacement in _CONTRACTION_RES:
            out = pattern.sub(lambda m, r=replacement: match_case(m.group(0), r), out)
    return out


def _reorder_clause(sentence: str, known_lower: frozenset[str] = frozenset()) -> str | None:
    parts = sentence.split(",")
    if len(parts) != 2:
        return None
    head, tail = parts[0].strip(), parts[1].strip()
    if not head or not tail.lower().startswith(SUBORDINATORS):
        return None
    terminal = _TERMINAL_RE.search(tail)
    ending = terminal.group(0) if terminal else "."
    tail = _TERMINAL_RE.sub("", tail)
    return f"{_upper_first(tail)}, {_lower_first(head, known_lower)}{ending}"


def _restructure_one(sentence: str, rng: random.Random, known_lower: frozenset[str] = frozenset()) -> str:
    result = sentence
    if "," in result and rng.random() < CLAUSE_REORDER_RATE:
        result = _reorder_clause(result, known_lower) or result

    for opener, variant in OPENER_VARIATIONS.items():
        if result.startswith(opener + " "):
            if rng.random() < OPENER_VARIATION_RATE:
                remainder = result[len(opener) + 1 :]
                result = f"{variant} {_lower_first(remainder, known_lower)}"
            break

    if rng.random() < QUALIFIER_PREFIX_RATE:
        result = f"{rng.choice(RESTRUCTURE_QUALIFIERS)} {_lower_first(result, known_lower)}"
    return result


def restructure_sentences(text: str, rng: random.Random) -> str:
    known_lower = lowercase_vocabulary(text)

    def rewrite(sentences: list[str]) -> list[str]:
        out = []
        for sentence in sentences:
            if len(sentence.split()) < MIN_RESTRUCTURE_WORDS or rng.random() >= RESTRUCTURE_RATE:
                out.append(sentence)
            else:
                out.append(_restructure_one(sentence, rng, known_lower))
        return out

    return map_sentences(text, rewrite)


def _has_voice_marker(sentence: str) -> bool:
    return sentence.startswith(PERSONAL_QUALIFIERS + NEUTRAL_BRIDGES + RESTRUCTURE_QUALIFIERS)


def _prefix(sentence: str, qualifier: str, known_lower: frozenset[str]) -> str:
    return f"{qualifier} {_lower_first(sentence, known_lower)}"


def inject_voice(text: str, intensity: Intensity, rng: random.Random, *, personal: bool = False) -> str:
    qualifiers = PERSONAL_QUALIFIERS + NEUTRAL_BRIDGES if personal else NEUTRAL_BRIDGES
    known_lower = lowercase_vocabulary(text)

    def qualify(sentences: list[str], idx: int) -> None:
        if not _has_voice_marker(sentences[idx]):
            sentences[idx] = _prefix(sentences[idx], rng.choice(qualifiers), known_lower)

    def rewrite(sentences: list[str]) -> list[str]:
        n = len(sentences)
        if not n:
            return sentences

        if intensity is Intensity.LIGHT:
            qualify(sentences, n // 2)
        elif intensity is Intensity.MEDIUM:
            count = min(n, 2 if n < 6 else 3)
            for idx in sorted(rng.sample(range(n), count)):
                qualify(sentences, idx)
            target = n - 2 if n >= 3 else n - 1
            sentences[target] = f"{sentences[target]} {RHETORICAL_TAGS[0]}"
        else:
            eligible = range(1, n - 1) if n > 2 else range(n)
            for idx in eligible:
                if rng.random() >= AGGRESSIVE_VOICE_RATE:
                    continue
                if rng.random() < 0.6:
                    qualify(sentences, idx)
                else:
                    sentences[idx] = f"{sentences[idx]} {rng.choice(RHETORICAL_TAGS)}"
        return sentences

    return map_sentences(text, rewrite)


def boost_perplexity(text: str, rng: random.Random) -> str:
    def swap(match: re.Match[str]) -> str:
        word = match.group(0)
        if rng.random() >= PERPLEXITY_SWAP_RATE:
            return word
        return match_case(word, rng.choice(PERPLEXITY_SYNONYMS[word.lower()]))

    return _SYNONYM_RE.sub(swap, text)


def run_local_pipeline(text: str, options: HumanizationOptions, rng: random.Random) -> str:
    working, mapping = protect_technical_terms(text) if options.preserve_technical else (text, {})
    working = remove_ai_patterns(working)
    working = naturalize_vocabulary(working, options.tone)
    working = restructure_sentences(working, rng)
    working = inject_voice(working, options.intensity, rng, personal=options.add_personal_touches)
    working = boost_perplexity(working, rng)
    return restore_terms(tidy(working), mapping)


def polish_service_output(text: str, options: HumanizationOptions, rng: random.Random) -> str:
    working, mapping = protect_technical_terms(text) if options.preserve_technical else (text, {})
    working = naturalize_vocabulary(working, options.tone)
    working = inject_voice(working, options.intensity, rng, personal=options.add_personal_touches)
    return restore_terms(tidy(working), mapping)


def removed_patterns(before: str, after: str) -> list[str]:
    return [phrase for phrase, pattern in _REMOVABLE_RES if pattern.search(before) and not pattern.search(after)]
