from __future__ import annotations

import math
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class RiskLevel(str, Enum):
    HUMAN = "HUMAN"
    LIKELY_HUMAN = "LIKELY_HUMAN"
    UNCERTAIN = "UNCERTAIN"
    LIKELY_AI = "LIKELY_AI"
    AI = "AI"


def _bounded_score(value: object) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    numeric = float(value)
    if not math.isfinite(numeric):
        return 0.0
    return max(0.0, min(100.0, numeric))


class AnalyzerResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    risk_score: float = 0.0
    patterns: list[str] = Field(default_factory=list)
    details: dict[str, Any] = Field(default_factory=dict)
    degraded: bool = False

    @field_validator("risk_score", mode="before")
    @classmethod
    def clamp_risk(cls, value: object) -> float:
        return _bounded_score(value)

    @classmethod
    def neutral(cls, name: str, *, degraded: bool = False, **details: Any) -> "AnalyzerResult":
        return cls(name=name, risk_score=0.0, patterns=[], details=details, degraded=degraded)


class DetectionReport(BaseModel):
    model_config = ConfigDict(frozen=True)

    overall_score: int
    confidence: int
    risk_level: RiskLevel
    analyzers: dict[str, AnalyzerResult]
    weighted_scores: dict[str, float]
    evidence_highlights: list[str] = Field(default_factory=list)
    recommendations: list[str] = Field(default_factory=list)
    degraded_analyzers: list[str] = Field(default_factory=list)
    text_metrics: dict[str, Any] = Field(default_factory=dict)

    @field_validator("overall_score", "confidence", mode="before")
    @classmethod
    def clamp_int_score(cls, value: object) -> int:
        return int(round(_bounded_score(value)))
