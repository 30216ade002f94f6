import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

import pytest

# fxconvert.main builds an app at import time and refuses to start without a key
os.environ.setdefault("FREE_CURRENCY_API_KEY", "test-key")

from fxconvert.core.config import Settings  # noqa: E402
from fxconvert.core.errors import UpstreamFetchError  # noqa: E402
from fxconvert.services.rates.base import RateProvider  # noqa: E402
from fxconvert.services.rates.cache_service import CurrencySnapshot  # noqa: E402

CURRENCIES = {
    "USD": {"code": "USD", "name": "US Dollar", "symbol": "$", "decimal_digits": 2},
    "EUR": {"code": "EUR", "name": "Euro", "symbol": "€", "decimal_digits": 2},
    "GBP": {"code": "GBP", "name": "British Pound Sterling", "symbol": "£", "decimal_digits": 2},
    "JPY": {"code": "JPY", "name": "Japanese Yen", "symbol": "¥", "decimal_digits": 0},
    "CAD": {"code": "CAD", "name": "Canadian Dollar", "symbol": "CA$", "decimal_digits": 2},
}

USD_RATES = {
    "USD": 1.0,
    "EUR": 0.9,
    "GBP": 0.8,
    "JPY": 150.0,
    "CAD": 1.37,
}


class FakeRateProvider(RateProvider):
    """Counts upstream calls; ``gate`` holds every call until set, ``fail`` makes calls raise."""

    def __init__(self):
        self.currency_calls = 0
        self.rate_calls = 0
        self.rate_bases = []
        self.fail = False
        self.gate: Optional[asyncio.Event] = None

    async def _wait(self) -> None:
        if self.gate is not None:
            await self.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail:
            raise UpstreamFetchError("Failed to fetch exchange rates")

    async def get_currencies(self) -> Dict[str, Dict]:
        self.currency_calls += 1
        await self._wait()
        return {k: dict(v) for k, v in CURRENCIES.items()}

    async def get_latest_rates(self, base_currency: str) -> Dict[str, float]:
        self.rate_calls += 1
        self.rate_bases.append(base_currency)
        await self._wait()
        base_rate = USD_RATES[base_currency]
        return {k: v / base_rate for k, v in USD_RATES.items()}


class FakeClock:
    def __init__(self):
        self.now = datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def provider() -> FakeRateProvider:
    return FakeRateProvider()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def snapshot() -> CurrencySnapshot:
    return CurrencySnapshot.build(
        CURRENCIES, USD_RATES, "USD", datetime(2024, 1, 1, tzinfo=timezone.utc)
    )


def make_settings(**overrides) -> Settings:
    values = dict(
        free_currency_api_key="test-key",
        rate_limit_enabled=False,
        debug=False,
    )
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()
