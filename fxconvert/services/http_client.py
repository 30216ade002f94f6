from __future__ import annotations

"""Async HTTP GET-JSON helper with limited retries.

Wraps httpx so providers share one retry/backoff policy. Every failure mode
(transport error, non-2xx status, undecodable body) collapses into HttpError.
"""
import asyncio
import logging
from typing import Any, Dict, Mapping, Optional

import httpx

logger = logging.getLogger("fxconvert.http")


class HttpError(Exception):
    pass


async def get_json(
    url: str,
    *,
    params: Optional[Mapping[str, str]] = None,
    timeout: float = 5.0,
    retries: int = 2,
    backoff: float = 0.5,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Dict[str, Any]:
    last_err: Optional[Exception] = None
    async with httpx.AsyncClient(timeout=timeout, transport=transport) as client:
        for attempt in range(retries + 1):
            try:
                resp = await client.get(url, params=params)
                if resp.status_code >= 400:
                    raise HttpError(f"HTTP {resp.status_code} for {url}")
                data = resp.json()
                if not isinstance(data, dict):
                    raise HttpError(f"Unexpected JSON payload from {url}")
                return data
            except (httpx.HTTPError, HttpError, ValueError) as e:  # ValueError for JSON decode
                last_err = e
                logger.debug("GET %s failed (attempt %d): %s", url, attempt + 1, e)
                if attempt == retries:
                    break
                await asyncio.sleep(backoff * (2**attempt))
    raise HttpError(f"Failed to fetch JSON from {url}: {last_err}")
