"""
HTTP helpers.

This module centralizes the HTTP client logic used by the IP lookup client.

Design goals:
- Small surface area (async GET JSON).
- Deterministic defaults (timeout + User-Agent).
- Raise on non-2xx so callers can decide how to fail (the IP lookup fails silently).
"""

from __future__ import annotations

from typing import Any

import httpx

from whereami import __version__

DEFAULT_USER_AGENT = f"whereami/{__version__} (+https://local)"


async def get_json(
    url: str,
    *,
    params: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
    timeout_seconds: float = 10,
) -> Any:
    """GET `url` and return the decoded JSON response.

    Raises:
        httpx.HTTPError: On transport errors or non-2xx status codes.
        ValueError: If the response body is not valid JSON.
    """
    request_headers = {"User-Agent": DEFAULT_USER_AGENT}
    if headers:
        request_headers.update(headers)

    async with httpx.AsyncClient(timeout=timeout_seconds) as client:
        resp = await client.get(url, params=params, headers=request_headers)
        resp.raise_for_status()
        return resp.json()
