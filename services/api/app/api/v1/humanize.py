from __future__ import annotations

import time

from fastapi import APIRouter, Depends

from app.api.deps import get_detector, get_history_store, get_humanizer
from app.core.logging import get_logger
from app.schemas.history import RecordKind
from app.schemas.humanize import HumanizeRequest, HumanizeResponse
from app.services.detector import DetectorService
from app.services.history import InMemoryHistoryStore
from app.services.humanizer import HumanizerService
from app.services.refinement import humanize

router = APIRouter()
logger = get_logger(__name__)


@router.post("/humanize", response_model=HumanizeResponse)
async def humanize_content(
    body: HumanizeRequest,
    detector: DetectorService = Depends(get_detector),
    humanizer: HumanizerService = Depends(get_humanizer),
    history: InMemoryHistoryStore = Depends(get_history_store),
):
    start = time.perf_counter()
    report = await humanize(
        body.text,
        body.options,
        max_iterations=body.max_iterations,
        humanizer=humanizer,
        detector=detector,
    )
    latency_ms = round((time.perf_counter() - start) * 1000, 3)

    record = history.save(
        kind=RecordKind.HUMANIZATION,
        text=body.text,
        report=report.model_dump(mode="json"),
        duration_ms=latency_ms,
    )
    logger.info(
        "humanize_served",
        humanize_id=record.id,
        iterations=report.iterations,
        mode=report.mode,
        final_score=report.final_score,
    )

    return HumanizeResponse(**report.model_dump(), humanize_id=record.id, latency_ms=latency_ms)
