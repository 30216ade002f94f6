from __future__ import annotations

import logging
from enum import Enum

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette import status

logger = logging.getLogger("fxconvert.errors")


class ErrorKind(str, Enum):
    CONFIGURATION = "configuration"
    UPSTREAM_FETCH = "upstream_fetch"
    INVALID_CURRENCY = "invalid_currency"
    INVALID_AMOUNT = "invalid_amount"
    RATE_UNAVAILABLE = "rate_unavailable"
    INVALID_REQUEST = "invalid_request"
    RATE_LIMITED = "rate_limited"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


class ServiceError(Exception):
    """Base for errors the service raises on purpose.

    Carries a closed ``kind`` so the HTTP layer can pick a status code without
    parsing messages.
    """

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, kind: ErrorKind | None = None):
        super().__init__(message)
        self.message = message
        if kind is not None:
            self.kind = kind


class ConfigurationError(ServiceError):
    kind = ErrorKind.CONFIGURATION


class UpstreamFetchError(ServiceError):
    kind = ErrorKind.UPSTREAM_FETCH
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def as_client_failure(self) -> "UpstreamFetchError":
        """Same failure, reported with 400 as the conversion routes do."""
        err = UpstreamFetchError(self.message)
        err.status_code = status.HTTP_400_BAD_REQUEST
        return err


class ValidationError(ServiceError):
    kind = ErrorKind.INVALID_REQUEST


def error_envelope(
    status_code: int, message: str, kind: ErrorKind, headers: dict | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message, "kind": kind.value},
        headers=headers,
    )


def validation_handler(request: Request, exc: ValidationError):  # type: ignore
    return error_envelope(status.HTTP_400_BAD_REQUEST, exc.message, exc.kind)


def upstream_handler(request: Request, exc: UpstreamFetchError):  # type: ignore
    logger.warning("upstream fetch failed: %s", exc.message)
    return error_envelope(exc.status_code, exc.message, exc.kind)


def request_validation_handler(request: Request, exc: RequestValidationError):  # type: ignore
    details = "; ".join(
        f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg')}"
        for err in exc.errors()
    )
    return error_envelope(
        status.HTTP_400_BAD_REQUEST,
        f"Invalid request format. {details}".strip(),
        ErrorKind.INVALID_REQUEST,
    )


def http_error_handler(request: Request, exc):  # type: ignore
    if exc.status_code == status.HTTP_404_NOT_FOUND:
        return error_envelope(
            exc.status_code,
            f"No route for {request.method} {request.url.path}",
            ErrorKind.NOT_FOUND,
        )
    return error_envelope(exc.status_code, str(exc.detail), ErrorKind.INVALID_REQUEST)


def server_error_handler(request: Request, exc: Exception):  # type: ignore
    logger.exception("unhandled exception")
    return error_envelope(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Something went wrong!",
        ErrorKind.INTERNAL,
    )
