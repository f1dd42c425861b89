from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Callable

from app.core.config import Settings, get_settings
from app.core.errors import ErrorKind
from app.core.logging import get_logger
from app.schemas.humanize import HumanizationConfidence, HumanizationOptions, HumanizationReport, Intensity
from app.services.detector import DetectorService, detector_service
from app.services.humanizer import MODE_LOCAL, HumanizerService
from app.utils.text import word_set_similarity

logger = get_logger(__name__)

UNDETECTABLE_MAX_SCORE = 25
LOW_RISK_MAX_SCORE = 55
QUICK_ESTIMATE_FLOOR = 35

_CONTRACTION_RE = re.compile(
    r"\b(don't|can't|won't|it's|we're|they're|i'm|haven't|doesn't|isn't|aren't|wasn't|weren't|"
    r"wouldn't|shouldn't|couldn't)\b",
    re.IGNORECASE,
)
_CASUAL_MARKER_RE = re.compile(
    r"\b(honestly|look|basically|you know|right|really|actually|the thing is|seriously|literally)\b",
    re.IGNORECASE,
)
_RESIDUAL_PHRASE_RE = re.compile(
    r"\b(moreover|furthermore|delve into|in today's digital age|it is important to note|plays a crucial role)\b",
    re.IGNORECASE,
)

OUTCOME_ACCEPTED = "accepted"
OUTCOME_ACCEPTED_BEST = "accepted_best"
OUTCOME_EXHAUSTED = "max_iterations"


def quick_ai_estimate(text: str) -> int:
    """Cheap AI-likelihood estimate from surface markers, independent of the full detector."""
    score = 100
    if _CONTRACTION_RE.search(text):
        score -= 20
    if _CASUAL_MARKER_RE.search(text):
        score -= 20
    score -= 10 * len(_RESIDUAL_PHRASE_RE.findall(text))
    return max(0, score)


@dataclass(frozen=True)
class Candidate:
    text: str
    score: int
    similarity: float
    mode: str


class RefinementLoop:
    def __init__(
        self,
        humanizer: HumanizerService,
        detector: DetectorService,
        *,
        settings: Settings | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.humanizer = humanizer
        self.detector = detector
        self.settings = settings or get_settings()
        self.clock = clock

    async def run(
        self,
        text: str,
        options: HumanizationOptions,
        *,
        max_iterations: int | None = None,
    ) -> HumanizationReport:
        budget = max_iterations or self.settings.humanizer_max_iterations
        threshold = self.settings.humanizer_meaning_threshold
        deadline = self.clock() + self.settings.rewrite_session_timeout_seconds

        initial_score = self.detector.evaluate(text).overall_score
        current = options
        source = text
        best: Candidate | None = None
        previous_score: int | None = None
        mode = MODE_LOCAL
        changes: list[str] = []
        trail: list[Intensity] = []

        for iteration in range(1, budget + 1):
            rewrite = await self.humanizer.transform(source, current, timeout=deadline - self.clock())
            mode = rewrite.mode
            score = self.detector.evaluate(rewrite.text).overall_score
            similarity = word_set_similarity(text, rewrite.text)
            estimate = quick_ai_estimate(rewrite.text)
            meaning_preserved = similarity >= threshold
            candidate = Candidate(rewrite.text, score, similarity, rewrite.mode)

            trail.append(current.intensity)
            changes.append(f"Iteration {iteration}: applied {current.intensity.value} humanization ({rewrite.mode})")
            logger.info(
                "humanizer_iteration",
                iteration=iteration,
                intensity=current.intensity.value,
                mode=rewrite.mode,
                score=score,
                similarity=round(similarity, 4),
                estimate=estimate,
            )

            if not meaning_preserved:
                logger.info(
                    "humanizer_candidate_rejected",
                    kind=ErrorKind.VALIDATION_FAILED.value,
                    iteration=iteration,
                    similarity=round(similarity, 4),
                )
            else:
                if best is None or score < best.score:
                    best = candidate

                if score < self.settings.humanizer_accept_score:
                    confidence = (
                        HumanizationConfidence.UNDETECTABLE
                        if score <= UNDETECTABLE_MAX_SCORE
                        else HumanizationConfidence.LOW_RISK
                    )
                    return self._report(text, candidate, initial_score, iteration, changes, trail, confidence, OUTCOME_ACCEPTED)

                stalled = (
                    current.intensity is Intensity.AGGRESSIVE and previous_score is not None and score >= previous_score
                )
                if estimate <= QUICK_ESTIMATE_FLOOR or stalled:
                    confidence = (
                        HumanizationConfidence.LOW_RISK
                        if score <= LOW_RISK_MAX_SCORE
                        else HumanizationConfidence.MODERATE_RISK
                    )
                    return self._report(
                        text, candidate, initial_score, iteration, changes, trail, confidence, OUTCOME_ACCEPTED_BEST
                    )
                previous_score = score

            # Chain from a candidate only while it still carries the original meaning.
            source = rewrite.text if meaning_preserved else text
            current = current.escalated()

        chosen = best or Candidate(text, initial_score, 1.0, mode)
        return self._report(
            text,
            chosen,
            initial_score,
            budget,
            changes,
            trail,
            HumanizationConfidence.MODERATE_RISK,
            OUTCOME_EXHAUSTED,
        )

    def _report(
        self,
        original: str,
        chosen: Candidate,
        initial_score: int,
        iterations: int,
        changes: list[str],
        trail: list[Intensity],
        confidence: HumanizationConfidence,
        outcome: str,
    ) -> HumanizationReport:
        summary = self.humanizer.summarize(original, chosen.text, mode=chosen.mode)
        logger.info(
            "humanizer_complete",
            outcome=outcome,
            iterations=iterations,
            initial_score=initial_score,
            final_score=chosen.score,
            mode=chosen.mode,
        )
        return HumanizationReport(
            final_text=chosen.text,
            iterations=iterations,
            initial_score=initial_score,
            final_score=chosen.score,
            changes_applied=changes,
            confidence=confidence,
            outcome=outcome,
            mode=chosen.mode,
            meaning_similarity=summary.meaning_similarity,
            intensity_trail=trail,
            patterns_removed=summary.patterns_removed,
            diff_stats=summary.diff_stats,
            readability_delta=summary.readability_delta,
            quality_flags=summary.quality_flags,
        )


async def humanize(
    text: str,
    options: HumanizationOptions | dict[str, Any] | None = None,
    *,
    max_iterations: int | None = None,
    humanizer: HumanizerService | None = None,
    detector: DetectorService | None = None,
) -> HumanizationReport:
    """Validate input and options, then run the refinement loop."""
    detector = detector or detector_service
    detector.validate(text)
    resolved = HumanizationOptions.coerce(options)
    loop = RefinementLoop(humanizer or HumanizerService(), detector)
    return await loop.run(text, resolved, max_iterations=max_iterations)
