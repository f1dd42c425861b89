from redis.asyncio import Redis

from app.core.config import get_settings

_redis: Redis | None = None


async def get_redis() -> Redis | None:
    """Shared client, or None when no REDIS_URL is configured."""
    global _redis
    if _redis is None:
        settings = get_settings()
        if not settings.redis_url:
            return None
        _redis = Redis.from_url(settings.redis_url, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
    _redis = None
