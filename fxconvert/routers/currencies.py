from __future__ import annotations

from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request

from fxconvert.core.config import Settings
from fxconvert.models.constants import CURRENCY_CODE_PATTERN, DEFAULT_BASE_CURRENCY
from fxconvert.services.rates.cache_service import CurrencyCacheService

"""Currency list and raw rate table endpoints.

Both go through the shared cache, so repeated calls inside the expiration
window never reach the upstream provider.
"""

router = APIRouter(prefix="/api", tags=["currencies"])


def get_cache_service(request: Request) -> CurrencyCacheService:
    return request.app.state.rate_cache


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


@router.get("/currencies", summary="List supported currencies")
async def list_currencies(
    svc: CurrencyCacheService = Depends(get_cache_service),
    settings: Settings = Depends(get_app_settings),
) -> Dict[str, Any]:
    snapshot = await svc.ensure_fresh(settings.pivot_currency)
    return {
        "success": True,
        "currencies": {code: dict(meta) for code, meta in snapshot.currencies.items()},
    }


@router.get("/rates", summary="Latest rates relative to a base currency")
async def list_rates(
    base: str = Query(
        DEFAULT_BASE_CURRENCY,
        pattern=CURRENCY_CODE_PATTERN,
        description="Base currency code",
        examples=["USD", "EUR"],
    ),
    svc: CurrencyCacheService = Depends(get_cache_service),
) -> Dict[str, Any]:
    snapshot = await svc.ensure_fresh(base)
    return {
        "success": True,
        "base": snapshot.base_currency,
        "rates": dict(snapshot.rates),
    }
