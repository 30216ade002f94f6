from functools import lru_cache
from typing import List, Optional

from pydantic import AnyHttpUrl
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import ConfigurationError

ALLOWED_RATE_PROVIDERS = {"freecurrencyapi", "static"}


class Settings(BaseSettings):
    """Application settings loaded from environment with defaults.

    Environment variable mapping follows pydantic's rules (e.g., FREE_CURRENCY_API_KEY,
    CACHE_EXPIRATION_SECONDS, PIVOT_CURRENCY, RATE_LIMIT_REQUESTS).
    """

    model_config = SettingsConfigDict(
        env_file=".env", case_sensitive=False, extra="ignore"
    )

    # Basic app metadata
    app_name: str = "Currency Converter"
    debug: bool = False
    version: str = "0.1.0"

    # Upstream provider
    free_currency_api_key: Optional[str] = None
    exchange_api_base_url: AnyHttpUrl = "https://api.freecurrencyapi.com/v1"  # type: ignore[assignment]
    exchange_rate_provider: str = "freecurrencyapi"
    http_timeout_seconds: float = 5.0
    http_retries: int = 2

    # Cache / conversion
    cache_expiration_seconds: int = 300  # 5 minutes
    pivot_currency: str = "USD"

    # History
    history_limit: int = 20

    # Boundary middleware
    cors_allow_origins: List[str] = ["*"]
    rate_limit_enabled: bool = True
    rate_limit_requests: int = 100
    rate_limit_window_seconds: int = 900  # 15 minutes
    # peers allowed to set X-Forwarded-For; empty means the header is ignored
    rate_limit_trusted_proxies: List[str] = []

    def init_post_load(self) -> None:
        """Validate required credentials and normalize derived fields.

        Raises ConfigurationError; callers treat it as fatal.
        """
        if not self.free_currency_api_key or not self.free_currency_api_key.strip():
            raise ConfigurationError(
                "Missing required environment variable: FREE_CURRENCY_API_KEY"
            )
        if self.exchange_rate_provider not in ALLOWED_RATE_PROVIDERS:
            raise ConfigurationError(
                f"Unsupported exchange_rate_provider '{self.exchange_rate_provider}'. "
                f"Allowed: {sorted(ALLOWED_RATE_PROVIDERS)}"
            )
        if self.cache_expiration_seconds <= 0:
            raise ConfigurationError("cache_expiration_seconds must be positive")
        if self.history_limit <= 0:
            raise ConfigurationError("history_limit must be positive")
        self.pivot_currency = self.pivot_currency.strip().upper()


@lru_cache
def get_settings() -> Settings:
    settings = Settings()
    settings.init_post_load()
    return settings
