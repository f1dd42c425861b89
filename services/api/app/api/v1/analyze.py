from __future__ import annotations

import asyncio
import time

from fastapi import APIRouter, Depends, File, Form, Request, UploadFile

from app.api.deps import get_detector, get_history_store, get_result_cache
from app.core.config import get_settings
from app.core.errors import AppError, InvalidInput
from app.core.logging import get_logger
from app.schemas.analyze import (
    AnalyzeResponse,
    BatchAnalyzeRequest,
    BatchAnalyzeResponse,
    BatchItem,
    ExtractionInfo,
)
from app.schemas.detection import DetectionReport
from app.schemas.history import RecordKind, SourceType
from app.services.cache import ResultCache
from app.services.detector import DetectorService
from app.services.history import InMemoryHistoryStore
from app.utils.files import extract_text_from_upload
from app.utils.hashing import analysis_cache_key
from app.utils.request_body import read_json_body
from app.utils.text import normalize_text

router = APIRouter()
logger = get_logger(__name__)


def _source(value: object) -> SourceType:
    try:
        return SourceType(value)
    except ValueError:
        return SourceType.PASTE


@router.post("/analyze", response_model=AnalyzeResponse)
async def analyze_content(
    request: Request,
    file: UploadFile | None = File(default=None),
    text_form: str | None = Form(default=None, alias="text"),
    source_form: str | None = Form(default="paste", alias="source"),
    detector: DetectorService = Depends(get_detector),
    cache: ResultCache = Depends(get_result_cache),
    history: InMemoryHistoryStore = Depends(get_history_store),
):
    settings = get_settings()
    start = time.perf_counter()
    text: object = None
    source = SourceType.PASTE
    extraction: ExtractionInfo | None = None

    content_type = (request.headers.get("content-type") or "").lower()
    if "application/json" in content_type:
        payload = await read_json_body(request)
        text = payload.get("text")
        source = _source(payload.get("source", "paste"))
    elif "multipart/form-data" in content_type:
        if file is not None:
            extracted = await extract_text_from_upload(file, settings.max_upload_bytes)
            text = extracted.text
            source = SourceType.UPLOAD
            extraction = ExtractionInfo(
                file_name=file.filename,
                page_count=extracted.page_count,
                confidence=extracted.confidence,
            )
        elif text_form:
            text = text_form
            source = _source(source_form or "paste")
    else:
        text = text_form

    if not text:
        raise InvalidInput("text or file is required")

    valid_text = detector.validate(text)
    normalized = normalize_text(valid_text)
    cache_key = analysis_cache_key(normalized)

    cached_payload = await cache.get(cache_key)
    if cached_payload is not None:
        report = DetectionReport.model_validate(cached_payload)
    else:
        report = detector.evaluate(normalized)
        await cache.set(cache_key, report.model_dump(mode="json"))

    latency_ms = round((time.perf_counter() - start) * 1000, 3)
    record = history.save(
        kind=RecordKind.ANALYSIS,
        text=valid_text,
        report=report.model_dump(mode="json"),
        duration_ms=latency_ms,
        source=source,
        file_name=extraction.file_name if extraction else None,
    )
    logger.info(
        "analysis_served",
        analysis_id=record.id,
        cached=cached_payload is not None,
        overall_score=report.overall_score,
        source=source.value,
    )

    return AnalyzeResponse(
        **report.model_dump(),
        analysis_id=record.id,
        cached=cached_payload is not None,
        latency_ms=latency_ms,
        extraction=extraction,
    )


@router.post("/analyze/batch", response_model=BatchAnalyzeResponse)
async def analyze_batch(
    body: BatchAnalyzeRequest,
    detector: DetectorService = Depends(get_detector),
    history: InMemoryHistoryStore = Depends(get_history_store),
):
    settings = get_settings()
    if len(body.texts) > settings.batch_max_texts:
        raise InvalidInput(f"At most {settings.batch_max_texts} texts per batch")

    start = time.perf_counter()

    async def run_one(index: int, text: str) -> BatchItem:
        item_start = time.perf_counter()
        try:
            report = await asyncio.to_thread(detector.analyze, text)
        except AppError as exc:
            return BatchItem(index=index, error_code=exc.kind.value, error_detail=exc.detail)
        except Exception:
            # One text must never sink the rest of the batch.
            logger.exception("batch_item_failed", index=index)
            return BatchItem(index=index, error_code="internal_error", error_detail="Analysis failed")
        record = history.save(
            kind=RecordKind.ANALYSIS,
            text=text,
            report=report.model_dump(mode="json"),
            duration_ms=(time.perf_counter() - item_start) * 1000,
        )
        return BatchItem(index=index, analysis_id=record.id, report=report)

    items = await asyncio.gather(*(run_one(i, t) for i, t in enumerate(body.texts)))
    failed = sum(1 for item in items if item.error_code)
    return BatchAnalyzeResponse(
        items=list(items),
        succeeded=len(items) - failed,
        failed=failed,
        latency_ms=round((time.perf_counter() - start) * 1000, 3),
    )
