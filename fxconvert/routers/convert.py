from __future__ import annotations

from fastapi import APIRouter, Depends, Path, Request

from fxconvert.core.config import Settings
from fxconvert.core.errors import UpstreamFetchError
from fxconvert.models.conversion import (
    BulkConvertIn,
    BulkConvertResponse,
    ConversionOut,
    ConvertResponse,
)
from fxconvert.services.rates.cache_service import CurrencyCacheService, CurrencySnapshot
from fxconvert.services.rates.conversion import convert, convert_bulk

router = APIRouter(prefix="/api/convert", tags=["convert"])


def get_cache_service(request: Request) -> CurrencyCacheService:
    return request.app.state.rate_cache


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def _pivot_snapshot(svc: CurrencyCacheService, settings: Settings) -> CurrencySnapshot:
    # conversion routes report every failure, upstream included, as 400
    try:
        return await svc.ensure_fresh(settings.pivot_currency)
    except UpstreamFetchError as e:
        raise e.as_client_failure() from e


@router.post(
    "/bulk",
    response_model=BulkConvertResponse,
    summary="Convert one source currency into many targets",
)
async def convert_many(
    payload: BulkConvertIn,
    svc: CurrencyCacheService = Depends(get_cache_service),
    settings: Settings = Depends(get_app_settings),
):
    snapshot = await _pivot_snapshot(svc, settings)
    bulk = convert_bulk(snapshot, payload.from_currency, payload.amounts)
    return BulkConvertResponse.from_bulk(bulk)


@router.get(
    "/{from_currency}/{to_currency}/{amount}",
    response_model=ConvertResponse,
    summary="Convert an amount between two currencies",
)
async def convert_one(
    from_currency: str = Path(..., description="Source currency code", examples=["EUR"]),
    to_currency: str = Path(..., description="Target currency code", examples=["JPY"]),
    amount: str = Path(..., description="Amount in the source currency", examples=["10"]),
    svc: CurrencyCacheService = Depends(get_cache_service),
    settings: Settings = Depends(get_app_settings),
):
    snapshot = await _pivot_snapshot(svc, settings)
    res = convert(snapshot, from_currency, to_currency, amount)
    return ConvertResponse(conversion=ConversionOut.from_result(res))
