from __future__ import annotations

import uuid
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, Protocol

from app.core.logging import get_logger
from app.schemas.history import HistoryRecord, HistoryStatistics, RecordKind, SourceType
from app.utils.text import preview

logger = get_logger(__name__)


class HistoryStore(Protocol):
    def save(
        self,
        *,
        kind: RecordKind,
        text: str,
        report: dict[str, Any],
        duration_ms: float,
        source: SourceType = SourceType.PASTE,
        file_name: str | None = None,
    ) -> HistoryRecord: ...

    def get(self, record_id: str) -> HistoryRecord | None: ...

    def list(self, *, limit: int = 50, offset: int = 0) -> list[HistoryRecord]: ...

    def delete(self, record_id: str) -> bool: ...


class InMemoryHistoryStore:
    """Newest-first bounded record list; the oldest record is evicted past ``max_records``."""

    def __init__(self, max_records: int = 1000) -> None:
        self.max_records = max_records
        self._records: list[HistoryRecord] = []

    def __len__(self) -> int:
        return len(self._records)

    def save(
        self,
        *,
        kind: RecordKind,
        text: str,
        report: dict[str, Any],
        duration_ms: float,
        source: SourceType = SourceType.PASTE,
        file_name: str | None = None,
        created_at: datetime | None = None,
    ) -> HistoryRecord:
        record = HistoryRecord(
            id=uuid.uuid4().hex,
            kind=kind,
            source=source,
            created_at=created_at or datetime.now(timezone.utc),
            duration_ms=round(duration_ms, 3),
            text_preview=preview(text),
            file_name=file_name,
            report=report,
        )
        self._records.insert(0, record)
        if len(self._records) > self.max_records:
            evicted = len(self._records) - self.max_records
            del self._records[self.max_records :]
            logger.info("history_records_evicted", count=evicted)
        return record

    def get(self, record_id: str) -> HistoryRecord | None:
        return next((r for r in self._records if r.id == record_id), None)

    def list(self, *, limit: int = 50, offset: int = 0) -> list[HistoryRecord]:
        return self._records[offset : offset + limit]

    def delete(self, record_id: str) -> bool:
        before = len(self._records)
        self._records = [r for r in self._records if r.id != record_id]
        return len(self._records) < before

    def statistics(self) -> HistoryStatistics:
        records = self._records
        kinds = Counter(r.kind.value for r in records)
        sources = Counter(r.source.value for r in records)
        average = sum(r.duration_ms for r in records) / len(records) if records else 0.0
        return HistoryStatistics(
            total_records=len(records),
            by_kind={kind.value: kinds.get(kind.value, 0) for kind in RecordKind},
            by_source={source.value: sources.get(source.value, 0) for source in SourceType},
            average_duration_ms=round(average, 3),
            oldest=records[-1].created_at if records else None,
            newest=records[0].created_at if records else None,
        )

    def clear_older_than(self, days: int, *, now: datetime | None = None) -> int:
        cutoff = (now or datetime.now(timezone.utc)) - timedelta(days=days)
        kept = [r for r in self._records if r.created_at > cutoff]
        removed = len(self._records) - len(kept)
        self._records = kept
        if removed:
            logger.info("history_records_cleared", count=removed, older_than_days=days)
        return removed
