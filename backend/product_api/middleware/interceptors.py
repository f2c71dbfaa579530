"""
Product API Backend — Route Interceptors
=========================================

The three pipeline stages used by the product routes:

    log_request           every route; records arrival, never rejects
    ApiKeyAuthenticator   create/update/delete; 401 on missing or wrong x-api-key
    validate_payload      create/update; 400 with the first failed rule

Mutating routes compose them as logger → authenticator → validator, so an
unauthenticated request is rejected for auth before its body is looked at.
"""

import json
import logging
import secrets
from dataclasses import replace

from starlette.requests import Request

from product_api.exceptions import UNAUTHORIZED_MESSAGE, UnauthorizedError
from product_api.middleware.pipeline import ChainState, Outcome, Rejection
from product_api.middleware.request_id import request_id_var
from product_api.middleware.validation import MSG_INVALID_JSON, validate_product_payload

logger = logging.getLogger(__name__)

API_KEY_HEADER = "x-api-key"


def _full_path(request: Request) -> str:
    query = request.url.query
    return f"{request.url.path}?{query}" if query else request.url.path


async def log_request(request: Request, state: ChainState) -> Outcome:
    logger.info(
        "Received %s %s at %s [%s]",
        request.method,
        _full_path(request),
        state.received_at.isoformat(),
        request_id_var.get(""),
    )
    return state


class ApiKeyAuthenticator:
    """
    Compares the `x-api-key` header with the configured shared secret.

    The comparison is constant-time. With no secret configured every request
    is rejected, so an unset API_KEY never means "open".
    """

    def __init__(self, api_key: str):
        self._expected = api_key.encode("utf-8")

    async def __call__(self, request: Request, state: ChainState) -> Outcome:
        supplied = request.headers.get(API_KEY_HEADER)
        if (
            not self._expected
            or not supplied
            or not secrets.compare_digest(supplied.encode("utf-8"), self._expected)
        ):
            logger.warning(
                "Rejected %s %s: %s api key",
                request.method,
                request.url.path,
                "missing" if not supplied else "invalid",
            )
            return Rejection(status_code=UnauthorizedError.status_code, message=UNAUTHORIZED_MESSAGE)
        return replace(state, authenticated=True)


async def validate_payload(request: Request, state: ChainState) -> Outcome:
    raw = await request.body()
    if raw.strip():
        try:
            body = json.loads(raw)
        except (ValueError, RecursionError):
            # RecursionError: nesting deeper than the decoder can follow.
            return Rejection(status_code=400, message=MSG_INVALID_JSON)
    else:
        body = {}

    result = validate_product_payload(body)
    if not result.ok:
        logger.info("Rejected %s %s: %s", request.method, request.url.path, result.reason)
        return Rejection(status_code=400, message=result.reason)
    return replace(state, payload=result.payload)
