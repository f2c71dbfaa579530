"""
Product API Backend — Product Route Handlers
=============================================

What:  The six /api/products endpoints.
How:   Each route declares its pipeline as an explicit interceptor list and
       delegates to ProductService once the pipeline passes.
Who:   Mounted by create_app(); the router is built per Settings so the
       authenticator receives the shared secret as a constructor argument.

Route Inventory:
    GET    /api/products          list (category, search, page, limit)
    GET    /api/products/stats    aggregate statistics
    GET    /api/products/{id}     single product
    POST   /api/products          create   (auth + validation)
    PUT    /api/products/{id}     update   (auth + validation)
    DELETE /api/products/{id}     delete   (auth)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from product_api.config import Settings
from product_api.database import get_gateway
from product_api.middleware.interceptors import (
    ApiKeyAuthenticator,
    log_request,
    validate_payload,
)
from product_api.middleware.pipeline import ChainState, Pipeline
from product_api.schemas.product import (
    DeleteResponse,
    ErrorResponse,
    ProductListResponse,
    ProductResponse,
    ProductStatsResponse,
)
from product_api.services.gateway_base import ProductGateway
from product_api.services.product_service import product_service

logger = logging.getLogger(__name__)

API_PREFIX = "/api/products"

UNAUTHORIZED = {401: {"description": "Missing or invalid x-api-key", "model": ErrorResponse}}
INVALID = {400: {"description": "Validation failed", "model": ErrorResponse}}
NOT_FOUND = {404: {"description": "Product not found", "model": ErrorResponse}}


def create_router(settings: Settings) -> APIRouter:
    """Build the products router with pipelines bound to `settings`."""
    router = APIRouter(prefix=API_PREFIX, tags=["Products"])

    authenticate = ApiKeyAuthenticator(settings.api_key)

    read_chain = Pipeline([log_request])
    write_chain = Pipeline([log_request, authenticate, validate_payload])
    delete_chain = Pipeline([log_request, authenticate])

    # The collection answers with and without a trailing slash, no redirect.
    @router.get("/", response_model=ProductListResponse, include_in_schema=False)
    @router.get(
        "",
        response_model=ProductListResponse,
        responses=INVALID,
        summary="List products with filtering and pagination",
    )
    async def list_products(
        category: Optional[str] = Query(default=None, description="Exact category match"),
        search: Optional[str] = Query(
            default=None, description="Case-insensitive substring of the product name"
        ),
        page: Optional[str] = Query(default=None, description="Page number, default 1"),
        limit: Optional[str] = Query(default=None, description="Page size, default 10"),
        _: ChainState = Depends(read_chain),
        gateway: ProductGateway = Depends(get_gateway),
    ) -> ProductListResponse:
        return await product_service.list_products(
            gateway, category=category, search=search, page=page, limit=limit
        )

    @router.get(
        "/stats",
        response_model=ProductStatsResponse,
        summary="Product statistics by category and stock",
    )
    async def product_stats(
        _: ChainState = Depends(read_chain),
        gateway: ProductGateway = Depends(get_gateway),
    ) -> ProductStatsResponse:
        return await product_service.get_stats(gateway)

    @router.get(
        "/{product_id}",
        response_model=ProductResponse,
        responses=NOT_FOUND,
        summary="Get a product by ID",
    )
    async def get_product(
        product_id: str,
        _: ChainState = Depends(read_chain),
        gateway: ProductGateway = Depends(get_gateway),
    ) -> ProductResponse:
        return await product_service.get_product(gateway, product_id)

    @router.post(
        "/",
        status_code=201,
        response_model=ProductResponse,
        include_in_schema=False,
    )
    @router.post(
        "",
        status_code=201,
        response_model=ProductResponse,
        responses={**UNAUTHORIZED, **INVALID},
        summary="Create a product",
    )
    async def create_product(
        state: ChainState = Depends(write_chain),
        gateway: ProductGateway = Depends(get_gateway),
    ) -> ProductResponse:
        return await product_service.create_product(gateway, state.payload)

    @router.put(
        "/{product_id}",
        response_model=ProductResponse,
        responses={**UNAUTHORIZED, **INVALID, **NOT_FOUND},
        summary="Update a product",
    )
    async def update_product(
        product_id: str,
        state: ChainState = Depends(write_chain),
        gateway: ProductGateway = Depends(get_gateway),
    ) -> ProductResponse:
        return await product_service.update_product(gateway, product_id, state.payload)

    @router.delete(
        "/{product_id}",
        response_model=DeleteResponse,
        responses={**UNAUTHORIZED, **NOT_FOUND},
        summary="Delete a product",
    )
    async def delete_product(
        product_id: str,
        _: ChainState = Depends(delete_chain),
        gateway: ProductGateway = Depends(get_gateway),
    ) -> DeleteResponse:
        return await product_service.delete_product(gateway, product_id)

    return router
