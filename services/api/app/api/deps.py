from fastapi import Request

from app.core.config import get_settings
from app.core.redis import get_redis
from app.services.cache import ResultCache
from app.services.detector import DetectorService
from app.services.history import InMemoryHistoryStore
from app.services.humanizer import HumanizerService


def get_detector(request: Request) -> DetectorService:
    return request.app.state.detector


def get_humanizer(request: Request) -> HumanizerService:
    return request.app.state.humanizer


def get_history_store(request: Request) -> InMemoryHistoryStore:
    return request.app.state.history


async def get_result_cache(request: Request) -> ResultCache:
    cache = getattr(request.app.state, "cache", None)
    if cache is None:
        cache = ResultCache(await get_redis(), get_settings().cache_ttl_seconds)
        request.app.state.cache = cache
    return cache
