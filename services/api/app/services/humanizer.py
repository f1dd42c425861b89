from __future__ import annotations

import difflib
import random
from dataclasses import dataclass, field

from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError
from app.core.logging import get_logger
from app.schemas.humanize import DiffStats, HumanizationOptions
from app.services.prompts import build_rewrite_prompt
from app.services.rewrite_client import RewriteClient, RewriteServiceConfig
from app.services.text_metrics import compute_metrics
from app.services.transforms import polish_service_output, removed_patterns, run_local_pipeline
from app.utils.text import word_set_similarity

logger = get_logger(__name__)

MODE_SERVICE = "service"
MODE_LOCAL = "local"

READABILITY_SHIFT_GRADES = 4.5
MINIMAL_CHANGE_RATIO = 0.95


@dataclass(frozen=True)
class RewritePass:
    text: str
    mode: str
    degraded_reason: str | None = None


@dataclass(frozen=True)
class ChangeSummary:
    diff_stats: DiffStats
    readability_delta: float
    meaning_similarity: float
    patterns_removed: list[str] = field(default_factory=list)
    quality_flags: list[str] = field(default_factory=list)


class HumanizerService:
    """One rewrite pass: the external service when configured, the local pipeline otherwise."""

    def __init__(
        self,
        client: RewriteClient | None = None,
        *,
        rng: random.Random | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.client = client or RewriteClient(RewriteServiceConfig.from_settings(self.settings))
        self.rng = rng or random.Random()

    @property
    def service_available(self) -> bool:
        return self.client.available

    async def transform(
        self,
        text: str,
        options: HumanizationOptions,
        *,
        timeout: float | None = None,
    ) -> RewritePass:
        reason: str | None = None
        if not self.client.available:
            logger.debug("humanizer_local_mode", reason="service_not_configured")
        elif len(text) > self.client.config.max_input_chars:
            reason = "input_too_long"
            logger.info("humanizer_service_skipped", reason=reason, chars=len(text))
        else:
            try:
                rewritten = await self.client.rewrite(build_rewrite_prompt(text, options), timeout=timeout)
            except ExternalServiceError as exc:
                reason = exc.reason
                logger.warning("humanizer_service_degraded", reason=exc.reason, kind=exc.kind.value, detail=exc.detail)
            else:
                return RewritePass(polish_service_output(rewritten, options, self.rng) or rewritten, MODE_SERVICE)

        local = run_local_pipeline(text, options, self.rng)
        return RewritePass(local or text, MODE_LOCAL, reason)

    def summarize(self, original: str, rewritten: str, *, mode: str) -> ChangeSummary:
        source_tokens = original.split()
        output_tokens = rewritten.split()
        ratio = difflib.SequenceMatcher(None, source_tokens, output_tokens).ratio()
        changed = int((1 - ratio) * max(len(source_tokens), len(output_tokens)))

        before = compute_metrics(original).readability["flesch_kincaid_grade"]
        after = compute_metrics(rewritten).readability["flesch_kincaid_grade"]
        similarity = word_set_similarity(original, rewritten)

        flags: list[str] = []
        if ratio > MINIMAL_CHANGE_RATIO:
            flags.append("minimal_change")
        if len(output_tokens) < max(1, len(source_tokens) // 3):
            flags.append("over_compression")
        if abs(after - before) > READABILITY_SHIFT_GRADES:
            flags.append("readability_shift")
        if mode == MODE_LOCAL:
            flags.append("local_fallback")
        if similarity < self.settings.humanizer_meaning_threshold:
            flags.append("meaning_drift")

        return ChangeSummary(
            diff_stats=DiffStats(changed_tokens=changed, change_ratio=round(1 - ratio, 4)),
            readability_delta=round(after - before, 3),
            meaning_similarity=round(similarity, 4),
            patterns_removed=removed_patterns(original, rewritten),
            quality_flags=flags,
        )
