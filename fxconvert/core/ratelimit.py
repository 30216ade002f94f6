from __future__ import annotations

"""Per-client fixed-window rate limiting.

Each client IP gets ``max_requests`` per ``window_seconds``; the window starts
at the client's first request and the counter resets once it elapses. State
is in-memory and per process, matching the single-process deployment.
"""
import logging
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, Iterable

from starlette import status

from .errors import ErrorKind, error_envelope

logger = logging.getLogger("fxconvert.ratelimit")


@dataclass
class _Window:
    started_at: float
    count: int


class FixedWindowRateLimiter:
    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._max = max_requests
        self._window = window_seconds
        self._clock = clock
        self._windows: Dict[str, _Window] = {}

    def _purge_expired(self, now: float) -> None:
        expired = [
            k for k, w in self._windows.items() if now - w.started_at >= self._window
        ]
        for k in expired:
            self._windows.pop(k, None)

    def hit(self, key: str) -> float | None:
        """Record one request for ``key``.

        Returns None when allowed, otherwise the seconds until the window resets.
        """
        now = self._clock()
        window = self._windows.get(key)
        if window is None or now - window.started_at >= self._window:
            if len(self._windows) > 10_000:
                self._purge_expired(now)
            self._windows[key] = _Window(started_at=now, count=1)
            return None
        if window.count >= self._max:
            return self._window - (now - window.started_at)
        window.count += 1
        return None


def client_key(request, trusted_proxies: Iterable[str] = ()) -> str:  # type: ignore
    """Key requests by peer address.

    X-Forwarded-For is honoured only when the peer is a listed proxy; the
    right-most hop not in that list is the client.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = set(trusted_proxies)
    if peer not in trusted:
        return peer
    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return peer
    hops = [h.strip() for h in forwarded.split(",") if h.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


def make_rate_limit_middleware(
    limiter: FixedWindowRateLimiter, trusted_proxies: Iterable[str] = ()
):
    proxies = frozenset(trusted_proxies)

    async def rate_limit_middleware(request, call_next):  # type: ignore
        key = client_key(request, proxies)
        retry_after = limiter.hit(key)
        if retry_after is not None:
            logger.warning("rate limit exceeded for %s", key, extra={"client": key})
            return error_envelope(
                status.HTTP_429_TOO_MANY_REQUESTS,
                "Too many requests from this IP, please try again later",
                ErrorKind.RATE_LIMITED,
                headers={"Retry-After": str(max(1, math.ceil(retry_after)))},
            )
        return await call_next(request)

    return rate_limit_middleware
