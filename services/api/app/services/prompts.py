from __future__ import annotations

from app.schemas.humanize import HumanizationOptions, Intensity, Tone

SYSTEM_PROMPT = (
    "You rewrite text so it reads as if a person wrote it by hand, keeping every fact and claim intact. "
    "Return only the rewritten text: no preamble, no explanation, no quotation marks."
)

_INTENSITY_GUIDANCE = {
    Intensity.LIGHT: (
        "Rewrite level: subtle (about 30% of the wording changes).\n"
        "Keep the structure mostly as is. Focus on word choice and contractions."
    ),
    Intensity.MEDIUM: (
        "Rewrite level: moderate (about 50% of the wording changes).\n"
        "Mix structural changes across sentences and paragraphs with vocabulary updates."
    ),
    Intensity.AGGRESSIVE: (
        "Rewrite level: aggressive (70% or more of the wording changes).\n"
        "Apply every technique fully. A clear personal voice matters more than keeping the original structure."
    ),
}

_TONE_MARKERS = {
    Tone.CASUAL: 'Casual interjections are welcome: "literally", "like", "for real".',
    Tone.PROFESSIONAL: 'Use personable professional markers: "in my work", "I\'ve found", "based on my experience".',
    Tone.ACADEMIC: 'Use a scholarly first person: "I argue that", "my reading suggests", "it seems to me".',
    Tone.CREATIVE: "Use vivid, concrete images and an unexpected comparison or two.",
}

_TECHNIQUES = """Techniques:
1. Word choice: use contractions throughout (don't, won't, it's, we're). Replace stiff words
   ("utilize" -> "use", "commence" -> "start", "endeavor" -> "try"). Avoid predictable synonyms.
2. Sentence rhythm: vary sentence length sharply. Mix 2-4 word sentences with long ones that carry
   several ideas. Starting with "And" or "But" is fine. Fragments are fine for emphasis.
3. Remove stock phrasing entirely: "delve into", "it's important to note", "moreover", "furthermore",
   "in today's digital age", "landscape", "realm", "tapestry", "multifaceted", "nuanced",
   "plays a crucial role", "paradigm shift". State the point directly instead.
4. Natural texture: the occasional parenthetical aside, an em-dash for an interrupted thought,
   a qualifier like "honestly" or "from what I've seen".
5. Structure: uneven paragraph lengths, no topic sentence on every paragraph, drop some transitions.
6. Stance: take a position instead of weighing both sides equally every time."""


def build_rewrite_prompt(text: str, options: HumanizationOptions) -> str:
    sections = [
        "Rewrite the text below so AI-detection heuristics cannot flag it, while preserving its meaning.",
        _TECHNIQUES,
        f"Tone: {options.tone.value}. {_TONE_MARKERS[options.tone]}",
        f"Intensity: {options.intensity.value.upper()}\n{_INTENSITY_GUIDANCE[options.intensity]}",
    ]
    if options.add_personal_touches:
        sections.append("Add one brief relatable comment or first-hand observation (a single sentence is enough).")
    else:
        sections.append("Do not invent personal stories or experiences.")
    if options.preserve_technical:
        sections.append(
            "Preserve technical terms, identifiers, numbers and jargon exactly as written. "
            "Only rewrite the surrounding language."
        )
    sections.append(
        "Final check: no two consecutive sentences share a structure, no stock phrases remain, "
        "and the meaning is fully preserved."
    )
    sections.append(f"Text to rewrite:\n{text}")
    sections.append("Rewritten text:")
    return "\n\n".join(sections)
