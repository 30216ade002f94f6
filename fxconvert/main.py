import logging

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException

from .core import errors
from .core.config import Settings, get_settings
from .core.logging import init_logging, request_context_middleware
from .core.ratelimit import FixedWindowRateLimiter, make_rate_limit_middleware
from .routers import convert, currencies, health, history
from .services.history import HistoryStore, InMemoryHistoryStore
from .services.rates.base import RateProvider
from .services.rates.cache_service import CurrencyCacheService
from .services.rates.providers import make_rate_provider


def create_app(
    settings_override: Settings | None = None,
    provider_override: RateProvider | None = None,
    history_store: HistoryStore | None = None,
) -> FastAPI:
    """Application factory.

    settings_override: pass an already constructed Settings instance for tests
    to isolate environment. Falls back to cached get_settings().
    provider_override / history_store: inject collaborators (fake providers in
    tests, a persistent history backend later).

    Raises ConfigurationError when required settings are missing; the process
    must not start serving in that case.
    """
    try:
        if settings_override is not None:
            settings_override.init_post_load()
            settings = settings_override
        else:
            settings = get_settings()
    except errors.ConfigurationError as e:
        logging.getLogger("fxconvert").critical("configuration error: %s", e.message)
        raise

    init_logging(debug=settings.debug)

    app = FastAPI(
        title=settings.app_name, debug=settings.debug, version=settings.version
    )

    provider = provider_override or make_rate_provider(settings)
    app.state.settings = settings
    app.state.rate_cache = CurrencyCacheService(
        provider, expiration_seconds=settings.cache_expiration_seconds
    )
    app.state.history_store = history_store or InMemoryHistoryStore(
        limit=settings.history_limit
    )

    # Middleware: last registered runs first
    if settings.rate_limit_enabled:
        limiter = FixedWindowRateLimiter(
            settings.rate_limit_requests, settings.rate_limit_window_seconds
        )
        app.middleware("http")(
            make_rate_limit_middleware(limiter, settings.rate_limit_trusted_proxies)
        )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_allow_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(request_context_middleware)

    # Error handlers
    app.add_exception_handler(errors.ValidationError, errors.validation_handler)
    app.add_exception_handler(errors.UpstreamFetchError, errors.upstream_handler)
    app.add_exception_handler(RequestValidationError, errors.request_validation_handler)
    app.add_exception_handler(StarletteHTTPException, errors.http_error_handler)
    app.add_exception_handler(Exception, errors.server_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(currencies.router)
    app.include_router(convert.router)
    app.include_router(history.router)

    @app.get("/")
    async def root():
        return {"message": "Currency Converter API", "version": settings.version}

    logging.getLogger("fxconvert").info(
        "app created (provider=%s, cache_expiration=%ss, pivot=%s)",
        settings.exchange_rate_provider,
        settings.cache_expiration_seconds,
        settings.pivot_currency,
    )
    return app


app = create_app()
