from __future__ import annotations

import json
from typing import Any

from fastapi import HTTPException, Request, status
from starlette.requests import ClientDisconnect


async def read_json_body(request: Request) -> dict[str, Any]:
    """Parse a JSON object body; analysis routes accept JSON and multipart on one path."""
    try:
        raw = await request.body()
    except ClientDisconnect as exc:
        raise HTTPException(status_code=499, detail="Client disconnected") from exc

    if not raw.strip():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Request body is empty")

    try:
        payload = json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid JSON body") from exc

    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="JSON body must be an object")

    return payload
