from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any

import httpx

from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError
from app.core.logging import get_logger
from app.services.prompts import SYSTEM_PROMPT

logger = get_logger(__name__)


@dataclass(frozen=True)
class RewriteServiceConfig:
    """Credentials and call limits for the OpenAI-compatible rewrite endpoint, fixed at construction."""

    api_key: str = ""
    base_url: str = ""
    model: str = ""
    temperature: float = 0.95
    top_p: float = 0.95
    max_completion_tokens: int = 4000
    max_input_chars: int = 12000
    timeout_seconds: float = 30.0
    available: bool = False

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> "RewriteServiceConfig":
        settings = settings or get_settings()
        return cls(
            api_key=settings.rewrite_api_key.strip(),
            base_url=settings.rewrite_base_url,
            model=settings.rewrite_model,
            temperature=settings.rewrite_temperature,
            top_p=settings.rewrite_top_p,
            max_completion_tokens=settings.rewrite_max_completion_tokens,
            max_input_chars=settings.rewrite_max_input_chars,
            timeout_seconds=settings.rewrite_timeout_seconds,
            available=settings.rewrite_service_enabled,
        )

    @classmethod
    def disabled(cls) -> "RewriteServiceConfig":
        return cls()


def _extract_content(payload: Any) -> str | None:
    if not isinstance(payload, dict):
        return None
    choices = payload.get("choices")
    if not isinstance(choices, list) or not choices:
        return None
    first = choices[0]
    message = first.get("message") if isinstance(first, dict) else None
    content = message.get("content") if isinstance(message, dict) else None
    if not isinstance(content, str):
        return None
    cleaned = content.strip()
    if len(cleaned) > 1 and cleaned[0] == cleaned[-1] and cleaned[0] in "\"'":
        cleaned = cleaned[1:-1].strip()
    return cleaned or None


class RewriteClient:
    def __init__(self, config: RewriteServiceConfig, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self.config = config
        self._transport = transport

    @property
    def available(self) -> bool:
        return self.config.available

    async def rewrite(self, prompt: str, *, timeout: float | None = None) -> str:
        if not self.available:
            raise ExternalServiceError("Rewrite service is not configured", reason="unavailable")

        budget = self.config.timeout_seconds if timeout is None else min(timeout, self.config.timeout_seconds)
        if budget <= 0:
            raise ExternalServiceError("Rewrite session deadline exhausted", reason="timeout")
        try:
            # wait_for cancels the request on expiry, so a late response is never used.
            return await asyncio.wait_for(self._complete(prompt), timeout=budget)
        except asyncio.TimeoutError as exc:
            raise ExternalServiceError(f"Rewrite service timed out after {budget:.0f}s", reason="timeout") from exc

    async def _complete(self, prompt: str) -> str:
        request_payload = {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.config.temperature,
            "top_p": self.config.top_p,
            "max_completion_tokens": self.config.max_completion_tokens,
            "stream": False,
        }
        headers = {
            "Accept": "application/json",
            "Authorization": f"Bearer {self.config.api_key}",
        }

        try:
            async with httpx.AsyncClient(
                base_url=self.config.base_url,
                headers=headers,
                timeout=httpx.Timeout(self.config.timeout_seconds),
                transport=self._transport,
            ) as client:
                response = await client.post("/chat/completions", json=request_payload)
        except httpx.HTTPError as exc:
            logger.warning("rewrite_service_request_failed", error=type(exc).__name__)
            raise ExternalServiceError("Rewrite service request failed", reason="transport") from exc

        if response.status_code >= 400:
            logger.warning(
                "rewrite_service_http_error",
                status_code=response.status_code,
                preview=response.text[:180],
            )
            raise ExternalServiceError(f"Rewrite service returned {response.status_code}", reason="http_error")

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("rewrite_service_unparseable_response", preview=response.text[:180])
            raise ExternalServiceError("Rewrite service response was not JSON", reason="unparseable") from exc

        content = _extract_content(payload)
        if content is None:
            logger.warning("rewrite_service_empty_response", preview=str(payload)[:180])
            raise ExternalServiceError("Rewrite service returned no text", reason="empty")
        return content
