"""
Product API Backend — Access Logging Middleware
================================================

One completion line per HTTP response on the `product_api.access` logger:

    Completed GET /api/products -> 200 in 3.1ms [a1b2c3d4] from 127.0.0.1

Level follows the status class (5xx ERROR, 4xx WARNING, otherwise INFO).
Arrival of product requests is logged by the `log_request` pipeline stage;
this line covers every route, unmatched ones included, and is the only place
status and duration are recorded. Requests to /health are not logged.

An exception escaping the app is logged as a 500 and re-raised for the
server error handler.
"""

import logging
import time

from starlette.types import ASGIApp, Message, Receive, Scope, Send

from product_api.middleware.request_id import request_id_var

logger = logging.getLogger("product_api.access")

QUIET_PATHS = frozenset({"/health"})


def level_for(status: int) -> int:
    if status >= 500:
        return logging.ERROR
    if status >= 400:
        return logging.WARNING
    return logging.INFO


class RequestLoggingMiddleware:
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["path"] in QUIET_PATHS:
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        status = 500

        async def capture_status(message: Message) -> None:
            nonlocal status
            if message["type"] == "http.response.start":
                status = message["status"]
            await send(message)

        try:
            await self.app(scope, receive, capture_status)
        finally:
            elapsed_ms = (time.perf_counter() - started) * 1000
            client = scope.get("client")
            logger.log(
                level_for(status),
                "Completed %s %s -> %d in %.1fms [%s] from %s",
                scope["method"],
                scope["path"],
                status,
                elapsed_ms,
                request_id_var.get(""),
                client[0] if client else "unknown",
                extra={"status": status, "duration_ms": round(elapsed_ms, 2)},
            )
