from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class RecordKind(str, Enum):
    ANALYSIS = "analysis"
    HUMANIZATION = "humanization"


class SourceType(str, Enum):
    PASTE = "paste"
    UPLOAD = "upload"


class HistoryRecord(BaseModel):
    id: str
    kind: RecordKind
    source: SourceType = SourceType.PASTE
    created_at: datetime
    duration_ms: float
    text_preview: str
    file_name: str | None = None
    report: dict[str, Any] = Field(default_factory=dict)


class HistorySummary(BaseModel):
    id: str
    kind: RecordKind
    source: SourceType
    created_at: datetime
    duration_ms: float
    text_preview: str
    overall_score: int | None = None


class HistoryListResponse(BaseModel):
    items: list[HistorySummary]
    total: int
    limit: int
    offset: int


class HistoryStatistics(BaseModel):
    total_records: int
    by_kind: dict[str, int]
    by_source: dict[str, int]
    average_duration_ms: float
    oldest: datetime | None = None
    newest: datetime | None = None


class DeleteResponse(BaseModel):
    id: str
    deleted: bool
