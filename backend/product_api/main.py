"""
Product API Backend — FastAPI Application Factory
==================================================

What:  Creates and configures the FastAPI application instance.
How:   create_app(settings, gateway) wires middleware, exception handlers,
       routes and the lifespan that owns the document store connection.
Who:   uvicorn (`product_api.main:app`), the `product-api` console script and
       the test suite (which passes its own Settings and an in-memory gateway).

Application Architecture:
    ┌─────────────────────────────────────────────────────┐
    │                   FastAPI App                       │
    │                                                     │
    │  Middleware:  Request ID → Access Log → GZip → CORS │
    │                                                     │
    │  Routes:                                            │
    │  ┌─────────┐ ┌──────────────────────┐ ┌──────────┐  │
    │  │ GET /   │ │ /api/products (CRUD) │ │ /health  │  │
    │  └─────────┘ └──────────────────────┘ └──────────┘  │
    │                                                     │
    │  Exception Handlers:                                │
    │  ProductAPIError→status │ routing 404/405→404       │
    │  RequestValidationError→400 │ Exception→500         │
    └─────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config check → connect gateway (unless one was given)
    Shutdown: close the gateway this app opened
"""

import logging
import sys
import traceback
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from product_api import __version__
from product_api.config import Settings, get_settings
from product_api.database import connect_gateway
from product_api.exceptions import ProductAPIError
from product_api.middleware.logging import RequestLoggingMiddleware
from product_api.middleware.request_id import RequestIDMiddleware, request_id_var
from product_api.routes import health, products
from product_api.services.gateway_base import ProductGateway

logger = logging.getLogger(__name__)

WELCOME_TEXT = "Welcome to the Product API! Go to /api/products to see all products."
ROUTE_NOT_FOUND = "Route not found"


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging(settings: Settings) -> None:
    """
    Configure logging for the whole process.

    Format: 2024-01-15T12:00:00 [INFO] product_api.access: GET /api/products 200 ...
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every operation
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("pymongo").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    settings: Settings = app.state.settings

    # ── Startup ───────────────────────────────────────────────────────────
    setup_logging(settings)
    logger.info("=" * 60)
    logger.info("Product API starting up (environment=%s)", settings.environment)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        # Not fatal: reads keep working, writes answer 401.
        logger.error("Configuration error: %s", str(e))

    owns_gateway = app.state.gateway is None
    if owns_gateway:
        app.state.gateway = await connect_gateway(settings)

    logger.info("Server ready at http://%s:%d", settings.host, settings.port)
    logger.info("=" * 60)

    yield

    # ── Shutdown ──────────────────────────────────────────────────────────
    logger.info("Product API shutting down...")
    if owns_gateway:
        await app.state.gateway.close()
        app.state.gateway = None
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _error_body(message: str, exc: Optional[BaseException], settings: Settings) -> Dict[str, Any]:
    body: Dict[str, Any] = {"message": message}
    if exc is not None and not settings.is_production:
        body["stack"] = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    return body


def _status_of(exc: Exception) -> int:
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if isinstance(status, int) and 400 <= status <= 599:
        return status
    return 500


def register_exception_handlers(app: FastAPI, settings: Settings) -> None:
    """
    Map exceptions to `{"message": ...}` responses.

    Handler hierarchy:
        ProductAPIError         → its status_code (401/400/404/500)
        HTTPException (routing) → 404 "Route not found" for 404/405
        RequestValidationError  → 400
        Exception (fallback)    → status_code attribute or 500
    Responses for 5xx carry `stack` outside production.
    """

    @app.exception_handler(ProductAPIError)
    async def handle_app_error(request: Request, exc: ProductAPIError):
        rid = request_id_var.get("")
        if exc.status_code >= 500:
            logger.error(
                "[%s] %s %s failed: %s | Context: %s",
                rid, request.method, request.url.path, exc.message, exc.context,
                exc_info=exc,
            )
            content = _error_body(exc.message, exc, settings)
        else:
            logger.warning("[%s] %s: %s", rid, type(exc).__name__, exc.message)
            content = {"message": exc.message}
        return JSONResponse(status_code=exc.status_code, content=content)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        if exc.status_code in (404, 405):
            return JSONResponse(status_code=404, content={"message": ROUTE_NOT_FOUND})
        return JSONResponse(
            status_code=exc.status_code,
            content={"message": str(exc.detail)},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        reasons = "; ".join(
            f"{'.'.join(str(p) for p in err.get('loc', ()))}: {err.get('msg', '')}"
            for err in exc.errors()
        )
        return JSONResponse(status_code=400, content={"message": f"Validation Error: {reasons}"})

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        rid = request_id_var.get("")
        logger.error(
            "[%s] Unexpected error on %s %s: %s",
            rid, request.method, request.url.path, str(exc),
            exc_info=exc,
        )
        message = str(exc) or "Internal Server Error"
        return JSONResponse(
            status_code=_status_of(exc),
            content=_error_body(message, exc, settings),
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app(
    settings: Optional[Settings] = None,
    gateway: Optional[ProductGateway] = None,
) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        settings: configuration for this app; loaded from the environment if None
        gateway:  store gateway to use; when None the lifespan connects to
                  MongoDB from `settings` and closes it on shutdown
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Product API",
        description="CRUD API for products with filtering, pagination and statistics.",
        version=__version__,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None if settings.is_production else "/redoc",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.gateway = gateway

    # ── Register Middleware ───────────────────────────────────────────────
    # Last added runs first: RequestID → Logging → GZip → CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # ── Register Exception Handlers ───────────────────────────────────────
    register_exception_handlers(app, settings)

    # ── Register Routes ───────────────────────────────────────────────────
    @app.get("/", response_class=PlainTextResponse, include_in_schema=False)
    async def root() -> str:
        return WELCOME_TEXT

    app.include_router(products.create_router(settings))
    app.include_router(health.router)

    return app


app = create_app()


def run() -> None:
    """Console entry point: serve the module-level app with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "product_api.main:app",
        host=settings.host,
        port=settings.port,
        log_config=None,
    )


if __name__ == "__main__":
    run()
