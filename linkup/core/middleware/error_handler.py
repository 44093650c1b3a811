"""
Error envelope.

Every error leaves the service in the same shape:

    {"error": {"code": "<stable code>", "message": "<human text>", ...extra},
     "request_id": "<correlation id>"}

HTTP errors (including domain exceptions and slowapi's RateLimitExceeded) are
rendered by exception handlers; anything unexpected is caught by the outer
middleware, logged with a traceback, and reported as a generic 500.
"""
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from linkup.core.middleware.request_id import get_request_id

logger = logging.getLogger(__name__)

_CODES: dict[int, str] = {
    status.HTTP_400_BAD_REQUEST: "validation_error",
    status.HTTP_401_UNAUTHORIZED: "unauthenticated",
    status.HTTP_403_FORBIDDEN: "forbidden",
    status.HTTP_404_NOT_FOUND: "not_found",
    status.HTTP_405_METHOD_NOT_ALLOWED: "method_not_allowed",
    status.HTTP_409_CONFLICT: "conflict",
    status.HTTP_429_TOO_MANY_REQUESTS: "rate_limited",
}


def _envelope(
    request: Request,
    status_code: int,
    message: str,
    *,
    extra: dict[str, Any] | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    error: dict[str, Any] = {
        "code": _CODES.get(status_code, "http_error"),
        "message": message,
    }
    if extra:
        error.update(extra)
    return JSONResponse(
        status_code=status_code,
        content={"error": error, "request_id": get_request_id(request)},
        headers=headers,
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return _envelope(
        request,
        exc.status_code,
        message,
        extra=getattr(exc, "extra", None),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    # Malformed path/query/body parameters are client errors → 400, not 422
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "Invalid request.")
    return _envelope(
        request,
        status.HTTP_400_BAD_REQUEST,
        f"{location}: {message}" if location else message,
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)


async def error_envelope_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    try:
        return await call_next(request)
    except StarletteHTTPException as exc:
        return await http_exception_handler(request, exc)
    except Exception:
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": {"code": "internal_error", "message": "An unexpected error occurred"},
                "request_id": get_request_id(request),
            },
        )
