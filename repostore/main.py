"""FastAPI application — entry point, middleware, error mapping, health endpoint.

Creates the repostore API with:
- API versioning via router prefix (/api/v1/)
- CORS middleware (origins from settings)
- Request logging middleware (raw ASGI — no response body buffering)
- Exception handlers mapping the store error taxonomy to HTTP statuses
- Health endpoint

Run with: uvicorn repostore.main:app --reload

Tier 3 orchestration module: imports from config (Tier 2), deps (Tier 2),
hooks (Tier 2), errors and schemas (Tier 1).
"""

from __future__ import annotations

import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from repostore.config import Settings, get_settings
from repostore.errors import (
    ConflictError,
    DecodeError,
    GatewayError,
    NotFoundError,
    ParseError,
    StoreError,
)
from repostore.schemas import ApiError, ApiResponse
from repostore.store import InvalidRequest

logger = logging.getLogger("repostore")


# ---------------------------------------------------------------------------
# Request logging middleware (raw ASGI)
# ---------------------------------------------------------------------------


class RequestLoggingMiddleware:
    """Logs method, path, status code, and duration for every request.

    Uses raw ASGI to avoid response body buffering. Does NOT log
    request/response bodies, query params or auth headers (uploads carry
    file bodies, and tokens must never reach the logs).
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        """Wraps the ASGI call to measure timing and capture status code."""
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        method = scope.get("method", "?")
        path = scope.get("path", "?")
        start = time.monotonic()
        status_code = 0

        async def logging_send(message: Message) -> None:
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message.get("status", 0)
            await send(message)

        try:
            await self.app(scope, receive, logging_send)
        finally:
            duration_ms = (time.monotonic() - start) * 1000
            logger.info(
                "%s %s %d %.1fms", method, path, status_code, duration_ms
            )


# ---------------------------------------------------------------------------
# Exception handlers
# ---------------------------------------------------------------------------

# Most specific first; the first isinstance match wins.
_STORE_ERROR_STATUS: list[tuple[type[StoreError], int, str]] = [
    (NotFoundError, 404, "NOT_FOUND"),
    (ConflictError, 409, "CONFLICT"),
    (ParseError, 422, "PARSE_ERROR"),
    (DecodeError, 422, "DECODE_ERROR"),
    (GatewayError, 502, "GATEWAY_ERROR"),
]


def _error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ApiResponse(
            ok=False,
            error=ApiError(code=code, message=message),
        ).model_dump(),
    )


def _store_error_response(request: Request, exc: StoreError) -> JSONResponse:
    """Maps a StoreError to its status and code.

    The reason is written for editors, so it is passed through. Gateway
    failures are logged; the rest are expected outcomes.
    """
    for error_type, status_code, code in _STORE_ERROR_STATUS:
        if isinstance(exc, error_type):
            break
    else:
        status_code, code = 500, "INTERNAL_ERROR"

    message = exc.reason
    if isinstance(exc, ConflictError):
        message = f"{exc.reason} Refresh and retry."
    if isinstance(exc, GatewayError):
        logger.error(
            "Remote store error on %s %s: %s (status %d)",
            request.method, request.url.path, exc, exc.status,
        )
    return _error_response(status_code, code, message)


def _invalid_request_response(request: Request, exc: InvalidRequest) -> JSONResponse:
    return _error_response(400, "BAD_REQUEST", str(exc))


def _http_exception_response(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Wraps HTTPException in ApiResponse envelope.

    If the detail is already an ApiResponse dict (from deps.py), returns it
    directly. Otherwise wraps in a generic error.
    """
    if isinstance(exc.detail, dict) and "ok" in exc.detail:
        return JSONResponse(status_code=exc.status_code, content=exc.detail)

    return _error_response(exc.status_code, "HTTP_ERROR", str(exc.detail))


def _validation_error_response(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Wraps Pydantic validation errors in ApiResponse envelope.

    Returns a human-readable summary without leaking internal details.
    """
    errors = exc.errors()
    if errors:
        first = errors[0]
        loc = " -> ".join(str(part) for part in first.get("loc", []))
        msg = first.get("msg", "Validation error")
        detail = f"{loc}: {msg}" if loc else msg
    else:
        detail = "Request validation failed."

    return _error_response(422, "VALIDATION_ERROR", detail)


def _unhandled_exception_response(request: Request, exc: Exception) -> JSONResponse:
    """Catches all unhandled exceptions — never leaks internals to client.

    Logs the full traceback server-side. Returns a generic 500 response.
    """
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return _error_response(500, "INTERNAL_ERROR", "An unexpected error occurred.")


# ---------------------------------------------------------------------------
# App creation
# ---------------------------------------------------------------------------


def _init_gateway(settings: Settings) -> None:
    """Creates the file gateway singleton for settings.gateway_backend.

    Uses local imports to keep httpx client construction out of module
    import time.
    """
    from repostore.api import deps

    if settings.gateway_backend == "memory":
        from repostore.hooks.memory import InMemoryFileGateway

        deps._gateway = InMemoryFileGateway()
        logger.warning("Using the in-memory file gateway; nothing is persisted.")
        return

    from repostore.hooks.github import GitHubFileGateway, create_github_client

    if not settings.github_token:
        logger.warning(
            "GITHUB_TOKEN is not set. Requests to private repositories will fail."
        )
    deps._gateway = GitHubFileGateway(
        create_github_client(settings.github_token, settings.github_api_url)
    )
    logger.info("GitHub file gateway initialized: api=%s", settings.github_api_url)


@asynccontextmanager
async def _lifespan(application: FastAPI) -> AsyncIterator[None]:
    """Closes the gateway's HTTP client on shutdown."""
    yield

    from repostore.api import deps

    aclose = getattr(deps._gateway, "aclose", None)
    if aclose is not None:
        await aclose()


def create_app() -> FastAPI:
    """Creates and configures the FastAPI application."""
    settings = get_settings()

    # Configure logging level
    logging.basicConfig(level=getattr(logging, settings.log_level.upper(), logging.INFO))

    application = FastAPI(
        title="repostore",
        description="Git-repository-backed content store for website dashboards",
        version="0.1.0",
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --

    # CORS — must be outermost to handle preflight requests
    application.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Request logging — raw ASGI
    application.add_middleware(RequestLoggingMiddleware)

    # -- Exception handlers --
    application.add_exception_handler(StoreError, _store_error_response)
    application.add_exception_handler(InvalidRequest, _invalid_request_response)
    application.add_exception_handler(StarletteHTTPException, _http_exception_response)
    application.add_exception_handler(RequestValidationError, _validation_error_response)
    application.add_exception_handler(Exception, _unhandled_exception_response)

    # -- Routers --
    _register_routes(application)

    # -- Remote store --
    _init_gateway(settings)

    return application


def _register_routes(application: FastAPI) -> None:
    """Registers all API routers on the application."""
    from fastapi import APIRouter

    v1 = APIRouter(prefix="/api/v1")

    @v1.get("/health")
    async def health() -> dict[str, Any]:
        return ApiResponse(ok=True, data={"status": "healthy"}).model_dump()

    # Sub-routers (BEFORE including v1 into the app):
    from repostore.api.documents import router as documents_router

    v1.include_router(documents_router, prefix="/documents", tags=["documents"])

    from repostore.api.products import router as products_router

    v1.include_router(products_router, prefix="/products", tags=["products"])

    from repostore.api.branding import router as branding_router

    v1.include_router(branding_router, prefix="/branding", tags=["branding"])

    from repostore.api.assets import router as assets_router

    v1.include_router(assets_router, prefix="/assets", tags=["assets"])

    application.include_router(v1)


app = create_app()
