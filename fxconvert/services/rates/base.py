from __future__ import annotations

"""Rate provider abstraction.

Providers are stateless I/O adapters: caching and freshness live in
cache_service, pivot arithmetic in conversion.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict


class RateProvider(ABC):
    @abstractmethod
    async def get_currencies(self) -> Dict[str, Dict[str, Any]]:
        """Return supported currencies keyed by code.

        Raises UpstreamFetchError when the provider cannot answer.
        """
        raise NotImplementedError

    @abstractmethod
    async def get_latest_rates(self, base_currency: str) -> Dict[str, float]:
        """Return units of each currency per 1 unit of base_currency.

        Raises UpstreamFetchError when the provider cannot answer.
        """
        raise NotImplementedError
