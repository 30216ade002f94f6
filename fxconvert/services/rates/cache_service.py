from __future__ import annotations

"""Single-slot currency cache with single-flight refresh.

Holds one CurrencySnapshot (currency list + rates + base + timestamp) and
refreshes it through a RateProvider:

    - cold or expired   -> fetch currencies and rates concurrently, replace all
    - fresh, other base -> fetch rates only, keep the currency list
    - fresh, same base  -> no upstream call

At most one refresh runs at a time. Callers that arrive while a refresh for
their base is running await that same task; callers for another base wait
for it to settle and then re-evaluate. A snapshot is never mutated: each
refresh builds a new one and swaps the reference, so readers see either the
old or the new snapshot, never a mix.

A failed refresh leaves the previous snapshot in place and raises the same
UpstreamFetchError to every caller awaiting it.
"""
import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Mapping, Optional, Tuple

from .base import RateProvider

logger = logging.getLogger("fxconvert.rates.cache")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CurrencySnapshot:
    currencies: Mapping[str, Mapping[str, Any]]
    rates: Mapping[str, float]
    base_currency: str
    last_updated: datetime

    @classmethod
    def build(
        cls,
        currencies: Mapping[str, Mapping[str, Any]],
        rates: Mapping[str, float],
        base_currency: str,
        last_updated: datetime,
    ) -> "CurrencySnapshot":
        # an already frozen list (rates-only refresh) is carried over as is
        if not isinstance(currencies, MappingProxyType):
            currencies = MappingProxyType(
                {code: MappingProxyType(dict(meta)) for code, meta in currencies.items()}
            )
        return cls(
            currencies=currencies,
            rates=MappingProxyType(dict(rates)),
            base_currency=base_currency,
            last_updated=last_updated,
        )

    def age(self, now: datetime) -> timedelta:
        return now - self.last_updated


class RefreshKind(str, Enum):
    NONE = "none"
    FULL = "full"
    RATES_ONLY = "rates_only"


class CurrencyCacheService:
    def __init__(
        self,
        provider: RateProvider,
        expiration_seconds: float = 300,
        clock: Callable[[], datetime] = utcnow,
    ):
        self._provider = provider
        self._expiration = timedelta(seconds=expiration_seconds)
        self._clock = clock
        self._snapshot: Optional[CurrencySnapshot] = None
        self._inflight: Optional[Tuple[str, asyncio.Task]] = None

    @property
    def expiration(self) -> timedelta:
        return self._expiration

    def peek(self) -> Optional[CurrencySnapshot]:
        return self._snapshot

    def invalidate(self) -> None:
        """Drop the snapshot; the next ensure_fresh() does a full refresh."""
        self._snapshot = None

    def _plan(self, snapshot: Optional[CurrencySnapshot], base: str) -> RefreshKind:
        if snapshot is None or snapshot.age(self._clock()) > self._expiration:
            return RefreshKind.FULL
        if snapshot.base_currency != base:
            return RefreshKind.RATES_ONLY
        return RefreshKind.NONE

    async def _refresh(
        self, kind: RefreshKind, base: str, previous: Optional[CurrencySnapshot]
    ) -> CurrencySnapshot:
        try:
            if kind is RefreshKind.FULL or previous is None:
                logger.info(
                    "full currency refresh (base=%s)",
                    base,
                    extra={"base_currency": base, "refresh": kind.value},
                )
                currencies, rates = await asyncio.gather(
                    self._provider.get_currencies(),
                    self._provider.get_latest_rates(base),
                )
            else:
                logger.info(
                    "rates refresh for base change %s -> %s",
                    previous.base_currency,
                    base,
                    extra={"base_currency": base, "refresh": RefreshKind.RATES_ONLY.value},
                )
                currencies = previous.currencies
                rates = await self._provider.get_latest_rates(base)
            snapshot = CurrencySnapshot.build(currencies, rates, base, self._clock())
            self._snapshot = snapshot
            return snapshot
        finally:
            self._inflight = None

    async def ensure_fresh(self, requested_base: str) -> CurrencySnapshot:
        base = requested_base.upper()
        while True:
            snapshot = self._snapshot
            kind = self._plan(snapshot, base)
            if kind is RefreshKind.NONE:
                assert snapshot is not None
                return snapshot

            inflight = self._inflight
            if inflight is not None and inflight[1].done():
                # cancelled before it could clear itself
                self._inflight = inflight = None
            if inflight is None:
                task = asyncio.ensure_future(self._refresh(kind, base, snapshot))
                # Marks the exception retrieved if every waiter was cancelled.
                task.add_done_callback(
                    lambda t: t.cancelled() or t.exception()
                )
                self._inflight = (base, task)
                return await asyncio.shield(task)

            inflight_base, task = inflight
            if inflight_base == base:
                logger.debug("joining in-flight refresh (base=%s)", base)
                return await asyncio.shield(task)

            # A refresh for another base is running; let it settle, then re-plan.
            await asyncio.wait({task})
