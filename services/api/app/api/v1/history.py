from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Response, status

from app.api.deps import get_history_store
from app.schemas.history import (
    DeleteResponse,
    HistoryListResponse,
    HistoryRecord,
    HistoryStatistics,
    HistorySummary,
)
from app.services.history import InMemoryHistoryStore
from app.services.report_renderer import render_json, render_pdf

router = APIRouter()


def _require(history: InMemoryHistoryStore, record_id: str) -> HistoryRecord:
    record = history.get(record_id)
    if record is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    return record


def _summary(record: HistoryRecord) -> HistorySummary:
    score = record.report.get("overall_score", record.report.get("final_score"))
    return HistorySummary(
        id=record.id,
        kind=record.kind,
        source=record.source,
        created_at=record.created_at,
        duration_ms=record.duration_ms,
        text_preview=record.text_preview,
        overall_score=score if isinstance(score, int) else None,
    )


@router.get("/history", response_model=HistoryListResponse)
async def list_history(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    history: InMemoryHistoryStore = Depends(get_history_store),
):
    records = history.list(limit=limit, offset=offset)
    return HistoryListResponse(
        items=[_summary(r) for r in records],
        total=len(history),
        limit=limit,
        offset=offset,
    )


@router.get("/history/stats", response_model=HistoryStatistics)
async def history_stats(history: InMemoryHistoryStore = Depends(get_history_store)):
    return history.statistics()


@router.get("/history/{record_id}", response_model=HistoryRecord)
async def get_history_record(record_id: str, history: InMemoryHistoryStore = Depends(get_history_store)):
    return _require(history, record_id)


@router.delete("/history/{record_id}", response_model=DeleteResponse)
async def delete_history_record(record_id: str, history: InMemoryHistoryStore = Depends(get_history_store)):
    if not history.delete(record_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Record not found")
    return DeleteResponse(id=record_id, deleted=True)


@router.get("/history/{record_id}/report.pdf")
async def history_report_pdf(record_id: str, history: InMemoryHistoryStore = Depends(get_history_store)):
    record = _require(history, record_id)
    return Response(
        content=render_pdf(record),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="report-{record.id}.pdf"'},
    )


@router.get("/history/{record_id}/report.json")
async def history_report_json(record_id: str, history: InMemoryHistoryStore = Depends(get_history_store)):
    record = _require(history, record_id)
    return Response(
        content=render_json(record),
        media_type="application/json",
        headers={"Content-Disposition": f'attachment; filename="report-{record.id}.json"'},
    )
