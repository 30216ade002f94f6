import httpx
import pytest

from fxconvert.core.errors import UpstreamFetchError
from fxconvert.services.rates.providers import (
    FreeCurrencyApiProvider,
    StaticRateProvider,
    make_rate_provider,
)

from conftest import make_settings

pytestmark = pytest.mark.asyncio


def _provider(handler, retries: int = 0) -> FreeCurrencyApiProvider:
    return FreeCurrencyApiProvider(
        "secret",
        "https://api.example.test/v1/",
        retries=retries,
        backoff=0,
        transport=httpx.MockTransport(handler),
    )


async def test_currencies_request_carries_api_key():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"USD": {"name": "US Dollar"}}})

    data = await _provider(handler).get_currencies()

    assert data == {"USD": {"name": "US Dollar"}}
    assert seen[0].url.path == "/v1/currencies"
    assert seen[0].url.params["apikey"] == "secret"


async def test_latest_rates_request_carries_base_and_coerces_floats():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"data": {"EUR": 1, "USD": "1.09"}})

    rates = await _provider(handler).get_latest_rates("EUR")

    assert rates == {"EUR": 1.0, "USD": 1.09}
    assert seen[0].url.path == "/v1/latest"
    assert seen[0].url.params["base_currency"] == "EUR"
    assert seen[0].url.params["apikey"] == "secret"


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"message": "boom"}),
        httpx.Response(401, json={"message": "Invalid authentication credentials"}),
        httpx.Response(200, content=b"not json"),
        httpx.Response(200, json={"errors": {}}),
        httpx.Response(200, json={"data": ["USD"]}),
        httpx.Response(200, json=["USD"]),
    ],
)
async def test_unusable_responses_raise_upstream_error(response):
    with pytest.raises(UpstreamFetchError):
        await _provider(lambda request: response).get_currencies()


async def test_non_numeric_rate_raises_upstream_error():
    def handler(request):
        return httpx.Response(200, json={"data": {"EUR": "n/a"}})

    with pytest.raises(UpstreamFetchError):
        await _provider(handler).get_latest_rates("USD")


async def test_transport_errors_are_retried_then_raised():
    calls = []

    def handler(request):
        calls.append(request)
        raise httpx.ConnectError("connection refused")

    with pytest.raises(UpstreamFetchError):
        await _provider(handler, retries=2).get_latest_rates("USD")
    assert len(calls) == 3


async def test_retry_recovers_from_transient_failure():
    calls = []

    def handler(request):
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503)
        return httpx.Response(200, json={"data": {"USD": 1.0}})

    assert await _provider(handler, retries=2).get_latest_rates("USD") == {"USD": 1.0}
    assert len(calls) == 2


async def test_static_provider_rebases_rates():
    provider = StaticRateProvider()
    rates = await provider.get_latest_rates("EUR")
    assert rates["EUR"] == pytest.approx(1.0)
    assert set(await provider.get_currencies()) == set(rates)


async def test_static_provider_rejects_unknown_base():
    with pytest.raises(UpstreamFetchError):
        await StaticRateProvider().get_latest_rates("ZZZ")


async def test_factory_builds_configured_provider():
    assert isinstance(
        make_rate_provider(make_settings(exchange_rate_provider="static")),
        StaticRateProvider,
    )
    assert isinstance(make_rate_provider(make_settings()), FreeCurrencyApiProvider)
