from __future__ import annotations

from datetime import datetime, timezone

import sentry_sdk
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse
from prometheus_fastapi_instrumentator import Instrumentator
from redis.exceptions import RedisError

from app.api.v1.router import router as v1_router
from app.core.config import get_settings
from app.core.errors import AppError
from app.core.logging import configure_logging, get_logger
from app.core.redis import close_redis, get_redis
from app.schemas.common import ErrorResponse, HealthResponse
from app.services.detector import detector_service
from app.services.history import InMemoryHistoryStore
from app.services.humanizer import HumanizerService
from app.utils.trace import get_trace_id, trace_context_middleware

settings = get_settings()
configure_logging()
logger = get_logger(__name__)

if settings.sentry_dsn:
    sentry_sdk.init(dsn=settings.sentry_dsn, environment=settings.environment)


app = FastAPI(title=settings.app_name, default_response_class=ORJSONResponse)
app.middleware("http")(trace_context_middleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_origin_regex=settings.cors_origin_regex,
    allow_credentials=False,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
)

app.state.detector = detector_service
app.state.humanizer = HumanizerService()
app.state.history = InMemoryHistoryStore(settings.history_max_records)
app.state.cache = None

Instrumentator().instrument(app).expose(app, include_in_schema=False)


@app.middleware("http")
async def security_headers(request: Request, call_next):
    response = await call_next(request)
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    return response


@app.exception_handler(AppError)
async def app_error_handler(_: Request, exc: AppError):
    logger.info("request_rejected", kind=exc.kind.value, detail=exc.detail)
    return ORJSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.detail, code=exc.kind.value, trace_id=get_trace_id()).model_dump(),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(_: Request, exc: RequestValidationError):
    return ORJSONResponse(
        status_code=422,
        content=ErrorResponse(detail=str(exc), code="request_validation", trace_id=get_trace_id()).model_dump(),
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(_: Request, exc: Exception):
    logger.exception("unhandled_exception", error=str(exc), trace_id=get_trace_id())
    return ORJSONResponse(
        status_code=500,
        content=ErrorResponse(detail="Internal server error", trace_id=get_trace_id()).model_dump(),
    )


@app.on_event("startup")
async def startup_event() -> None:
    logger.info(
        "startup_complete",
        environment=settings.environment,
        rewrite_service=app.state.humanizer.service_available,
        cache="redis" if settings.redis_url else "memory",
    )


@app.on_event("shutdown")
async def shutdown_event() -> None:
    await close_redis()


@app.get("/healthz", response_model=HealthResponse)
async def healthz() -> HealthResponse:
    return HealthResponse(status="ok", rewrite_service=app.state.humanizer.service_available)


@app.get("/readyz")
async def readyz() -> dict:
    redis = await get_redis()
    cache = "memory"
    if redis is not None:
        try:
            await redis.ping()
            cache = "redis"
        except RedisError:
            logger.warning("readiness_cache_unreachable")
            cache = "degraded"
    return {
        "status": "ready",
        "cache": cache,
        "analyzers": [name for name, _ in app.state.detector.analyzers],
        "history_records": len(app.state.history),
        "time": datetime.now(timezone.utc).isoformat(),
    }


app.include_router(v1_router, prefix=settings.api_prefix)
