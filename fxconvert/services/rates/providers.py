from __future__ import annotations

"""Concrete rate providers and factory.

'freecurrencyapi' talks to api.freecurrencyapi.com (API key required).
'static' serves a fixed table so the service can run offline; its rates are
rough placeholders and must not be used for real conversions.
"""
import logging
from typing import Any, Dict, Optional, Type

import httpx

from fxconvert.core.config import Settings
from fxconvert.core.errors import UpstreamFetchError
from fxconvert.services.http_client import HttpError, get_json
from .base import RateProvider

logger = logging.getLogger("fxconvert.rates.providers")


def _meta(code: str, name: str, symbol: str, digits: int = 2) -> Dict[str, Any]:
    return {
        "code": code,
        "name": name,
        "symbol": symbol,
        "symbol_native": symbol,
        "decimal_digits": digits,
    }


_STATIC_CURRENCIES: Dict[str, Dict[str, Any]] = {
    "USD": _meta("USD", "US Dollar", "$"),
    "EUR": _meta("EUR", "Euro", "€"),
    "GBP": _meta("GBP", "British Pound Sterling", "£"),
    "JPY": _meta("JPY", "Japanese Yen", "¥", 0),
    "INR": _meta("INR", "Indian Rupee", "₹"),
    "SGD": _meta("SGD", "Singapore Dollar", "S$"),
    "MYR": _meta("MYR", "Malaysian Ringgit", "RM"),
}

# units per 1 USD
_STATIC_USD_RATES: Dict[str, float] = {
    "USD": 1.0,
    "EUR": 0.92,
    "GBP": 0.79,
    "JPY": 150.0,
    "INR": 83.0,
    "SGD": 1.34,
    "MYR": 4.7,
}


class StaticRateProvider(RateProvider):
    async def get_currencies(self) -> Dict[str, Dict[str, Any]]:  # type: ignore[override]
        return {k: dict(v) for k, v in _STATIC_CURRENCIES.items()}

    async def get_latest_rates(self, base_currency: str) -> Dict[str, float]:  # type: ignore[override]
        base_rate = _STATIC_USD_RATES.get(base_currency.upper())
        if base_rate is None:
            raise UpstreamFetchError(f"Unsupported base currency: {base_currency}")
        return {k: v / base_rate for k, v in _STATIC_USD_RATES.items()}


class FreeCurrencyApiProvider(RateProvider):
    """Client for https://freecurrencyapi.com.

    Both endpoints wrap their payload in a top-level ``data`` object.
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.freecurrencyapi.com/v1",
        *,
        timeout: float = 5.0,
        retries: int = 2,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._retries = retries
        self._backoff = backoff
        self._transport = transport

    async def _get_data(self, path: str, params: Dict[str, str], what: str) -> Dict[str, Any]:
        try:
            payload = await get_json(
                f"{self._base_url}/{path}",
                params={"apikey": self._api_key, **params},
                timeout=self._timeout,
                retries=self._retries,
                backoff=self._backoff,
                transport=self._transport,
            )
        except HttpError as e:
            logger.warning("error fetching %s: %s", what, e, extra={"upstream": path})
            raise UpstreamFetchError(f"Failed to fetch {what}") from e
        data = payload.get("data")
        if not isinstance(data, dict):
            logger.warning(
                "malformed %s payload: missing 'data' object", what, extra={"upstream": path}
            )
            raise UpstreamFetchError(f"Failed to fetch {what}")
        return data

    async def get_currencies(self) -> Dict[str, Dict[str, Any]]:  # type: ignore[override]
        return await self._get_data("currencies", {}, "currency list")

    async def get_latest_rates(self, base_currency: str) -> Dict[str, float]:  # type: ignore[override]
        data = await self._get_data(
            "latest", {"base_currency": base_currency}, "exchange rates"
        )
        try:
            return {code: float(rate) for code, rate in data.items()}
        except (TypeError, ValueError) as e:
            raise UpstreamFetchError("Failed to fetch exchange rates") from e


_PROVIDER_REGISTRY: Dict[str, Type[RateProvider]] = {
    "freecurrencyapi": FreeCurrencyApiProvider,
    "static": StaticRateProvider,
}


def make_rate_provider(settings: Settings) -> RateProvider:
    kind = settings.exchange_rate_provider
    cls = _PROVIDER_REGISTRY.get(kind)
    if not cls:
        raise ValueError(f"Unknown rate provider kind '{kind}'")
    if cls is FreeCurrencyApiProvider:
        return FreeCurrencyApiProvider(
            settings.free_currency_api_key or "",
            str(settings.exchange_api_base_url),
            timeout=settings.http_timeout_seconds,
            retries=settings.http_retries,
        )
    return cls()
