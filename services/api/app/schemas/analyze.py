from __future__ import annotations

from pydantic import BaseModel, Field

from app.schemas.detection import DetectionReport
from app.schemas.history import SourceType


class AnalyzeRequest(BaseModel):
    text: str | None = None
    source: SourceType = SourceType.PASTE


class ExtractionInfo(BaseModel):
    file_name: str | None = None
    page_count: int
    confidence: float


class AnalyzeResponse(DetectionReport):
    analysis_id: str
    cached: bool = False
    latency_ms: float
    extraction: ExtractionInfo | None = None


class BatchAnalyzeRequest(BaseModel):
    texts: list[str] = Field(min_length=1)


class BatchItem(BaseModel):
    index: int
    analysis_id: str | None = None
    report: DetectionReport | None = None
    error_code: str | None = None
    error_detail: str | None = None


class BatchAnalyzeResponse(BaseModel):
    items: list[BatchItem]
    succeeded: int
    failed: int
    latency_ms: float
