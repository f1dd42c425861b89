from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from app.core.errors import InvalidOptions


class Tone(str, Enum):
    CASUAL = "casual"
    PROFESSIONAL = "professional"
    ACADEMIC = "academic"
    CREATIVE = "creative"


class Intensity(str, Enum):
    LIGHT = "light"
    MEDIUM = "medium"
    AGGRESSIVE = "aggressive"

    @property
    def rank(self) -> int:
        return _INTENSITY_ORDER.index(self)

    def escalate(self) -> "Intensity":
        return _INTENSITY_ORDER[min(self.rank + 1, len(_INTENSITY_ORDER) - 1)]


_INTENSITY_ORDER = (Intensity.LIGHT, Intensity.MEDIUM, Intensity.AGGRESSIVE)


class HumanizationConfidence(str, Enum):
    UNDETECTABLE = "UNDETECTABLE"
    LOW_RISK = "LOW_RISK"
    MODERATE_RISK = "MODERATE_RISK"


class HumanizationOptions(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    tone: Tone = Tone.PROFESSIONAL
    intensity: Intensity = Intensity.MEDIUM
    preserve_technical: bool = Field(default=True, alias="preserveTechnical")
    add_personal_touches: bool = Field(default=False, alias="addPersonalTouches")

    @classmethod
    def coerce(cls, raw: "HumanizationOptions | dict[str, Any] | None") -> "HumanizationOptions":
        """Validate caller-supplied options once; anything outside the enums is InvalidOptions."""
        if isinstance(raw, HumanizationOptions):
            return raw
        if raw is None:
            return cls()
        if not isinstance(raw, dict):
            raise InvalidOptions("options must be an object")
        try:
            return cls.model_validate(raw)
        except ValidationError as exc:
            fields = sorted({".".join(str(p) for p in err["loc"]) for err in exc.errors()})
            raise InvalidOptions(f"Invalid humanization options: {', '.join(fields)}") from exc

    def escalated(self) -> "HumanizationOptions":
        return self.model_copy(update={"intensity": self.intensity.escalate()})


class DiffStats(BaseModel):
    changed_tokens: int
    change_ratio: float


class HumanizationReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    final_text: str
    iterations: int
    initial_score: int
    final_score: int
    changes_applied: list[str]
    confidence: HumanizationConfidence
    outcome: str
    mode: str
    meaning_similarity: float
    intensity_trail: list[Intensity]
    patterns_removed: list[str] = Field(default_factory=list)
    diff_stats: DiffStats
    readability_delta: float = 0.0
    quality_flags: list[str] = Field(default_factory=list)


class HumanizeRequest(BaseModel):
    text: str
    options: dict[str, Any] | None = None
    max_iterations: int | None = Field(default=None, ge=1, le=5)


class HumanizeResponse(HumanizationReport):
    humanize_id: str
    latency_ms: float
