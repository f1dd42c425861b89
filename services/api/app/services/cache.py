from __future__ import annotations

import json
import time
from typing import Any, Callable

from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.core.logging import get_logger

logger = get_logger(__name__)


class ResultCache:
    """Read-through cache for analysis payloads. Redis when available, a TTL dict otherwise."""

    def __init__(
        self,
        redis: Redis | None,
        ttl_seconds: int,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.redis = redis
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._local: dict[str, tuple[float, str]] = {}

    async def get(self, key: str) -> dict[str, Any] | None:
        raw: str | None = None
        if self.redis is not None:
            try:
                raw = await self.redis.get(key)
            except RedisError:
                logger.warning("cache_read_failed", key=key)
        else:
            entry = self._local.get(key)
            if entry is not None:
                expires_at, raw = entry
                if expires_at <= self.clock():
                    self._local.pop(key, None)
                    raw = None
        if not raw:
            return None
        try:
            payload = json.loads(raw)
        except json.JSONDecodeError:
            logger.warning("cache_entry_unparseable", key=key)
            return None
        return payload if isinstance(payload, dict) else None

    async def set(self, key: str, payload: dict[str, Any]) -> None:
        raw = json.dumps(payload, ensure_ascii=True)
        if self.redis is not None:
            try:
                await self.redis.setex(key, self.ttl_seconds, raw)
            except RedisError:
                logger.warning("cache_write_failed", key=key)
            return
        self._purge_expired()
        self._local[key] = (self.clock() + self.ttl_seconds, raw)

    def _purge_expired(self) -> None:
        now = self.clock()
        for key in [k for k, (expires_at, _) in self._local.items() if expires_at <= now]:
            del self._local[key]
