"""
Product API Backend — Custom Exception Hierarchy
=================================================

What:  Application-specific exceptions for the error kinds the API distinguishes.
How:   Each exception carries a client-safe message, an HTTP status code and an
       optional context dict (logged, never returned). Global exception handlers
       registered in main.py turn them into `{"message": ...}` responses.
Who:   Raised by the pipeline, the product service and the store gateway.

Exception Hierarchy:
    ProductAPIError (base)          → 500
    ├── UnauthorizedError           → 401 Unauthorized
    ├── ValidationError             → 400 Bad Request
    ├── NotFoundError               → 404 Not Found
    ├── RequestRejected             → status of the short-circuiting interceptor
    ├── DatabaseError               → 500 Internal Server Error
    └── GatewayError                   (store-level variants, never rendered)
        ├── InvalidIdentifierError     → folded into NotFoundError by the service
        └── WriteRejectedError         → reported as ValidationError by the service
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

UNAUTHORIZED_MESSAGE = "Unauthorized: Invalid or missing API key"

if TYPE_CHECKING:
    from product_api.middleware.pipeline import Rejection


class ProductAPIError(Exception):
    """
    Base exception for all Product API application errors.

    Attributes:
        message:      User-facing error description (safe to return in API response)
        status_code:  HTTP status used by the global handler
        context:      Additional debug info (logged but NOT returned to client)
    """

    status_code: int = 500

    def __init__(
        self,
        message: str = "Internal Server Error",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class UnauthorizedError(ProductAPIError):
    """Missing or incorrect `x-api-key` credential."""

    status_code = 401

    def __init__(
        self,
        message: str = UNAUTHORIZED_MESSAGE,
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class ValidationError(ProductAPIError):
    """
    Raised when client input fails validation.

    When:    Bad pagination parameters, or a document the store refused to write.
    HTTP:    400 Bad Request
    """

    status_code = 400

    def __init__(
        self,
        message: str = "Validation Error",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(ProductAPIError):
    """
    Raised when a requested resource does not exist.

    Unknown and malformed identifiers both end up here, so callers cannot
    tell "never existed" apart from "bad id format".
    """

    status_code = 404

    def __init__(
        self,
        resource: str = "Product",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=f"{resource} not found", context=ctx)


class RequestRejected(ProductAPIError):
    """Carries a short-circuit outcome of the route pipeline to the HTTP layer."""

    def __init__(self, rejection: "Rejection"):
        super().__init__(message=rejection.message)
        self.status_code = rejection.status_code
        self.rejection = rejection


class DatabaseError(ProductAPIError):
    """
    Raised when a store operation fails unexpectedly.

    When:    Connection lost, server selection timeout, command failure.
    HTTP:    500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class GatewayError(ProductAPIError):
    """Base for error variants reported by a ProductGateway implementation."""


class InvalidIdentifierError(GatewayError):
    """The identifier is not well-formed for the underlying store."""

    def __init__(self, identifier: str):
        super().__init__(
            message=f"'{identifier}' is not a valid product identifier",
            context={"identifier": identifier},
        )
        self.identifier = identifier


class WriteRejectedError(GatewayError):
    """The store refused to write a document (validation rule, duplicate key)."""

    status_code = 400

    def __init__(
        self,
        message: str = "The product could not be saved",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
