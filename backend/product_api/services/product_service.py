"""
Product API Backend — Product Service (Business Logic)
=======================================================

What:  The operations behind each /api/products endpoint.
How:   Builds filters and paging from request inputs, calls the gateway, and
       folds gateway error variants into the API's error kinds.
Who:   Called by route handlers once their pipeline has passed.

Error folding:
    InvalidIdentifierError → NotFoundError   (bad id format looks like "no such id")
    WriteRejectedError     → ValidationError (the payload caused the rejection)
    DatabaseError          → propagates to the global handler (500)

ProductService is stateless. The gateway is passed into every call, so one
instance serves every request and tests can hand in any ProductGateway.
"""

import logging
import math
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from product_api.exceptions import (
    InvalidIdentifierError,
    NotFoundError,
    ValidationError,
    WriteRejectedError,
)
from product_api.models.product import Product
from product_api.schemas.product import (
    MAX_LIMIT,
    DeleteResponse,
    Pagination,
    ProductFilter,
    ProductListResponse,
    ProductPayload,
    ProductResponse,
    ProductStatsResponse,
)
from product_api.services.gateway_base import ProductGateway

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

PAGINATION_ERROR = "Validation Error: page and limit must be positive integers"
LIMIT_ERROR = f"Validation Error: limit must not exceed {MAX_LIMIT}"


def _integer(raw: Optional[str], default: int, name: str) -> int:
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValidationError(message=PAGINATION_ERROR, field=name)


def parse_pagination(page: Optional[str], limit: Optional[str]) -> Pagination:
    """
    Turn raw `page`/`limit` query values into a Pagination.

    Missing or blank values take the defaults (1 and 10). Non-integers and
    values below 1 are rejected, as are a limit above MAX_LIMIT and a page
    whose offset the store cannot represent.
    """
    try:
        return Pagination(
            page=_integer(page, DEFAULT_PAGE, "page"),
            limit=_integer(limit, DEFAULT_LIMIT, "limit"),
        )
    except PydanticValidationError as e:
        first = e.errors()[0]
        field = str(first["loc"][0]) if first["loc"] else "page"
        message = LIMIT_ERROR if first["type"] == "less_than_equal" else PAGINATION_ERROR
        raise ValidationError(message=message, field=field) from e


def _to_response(product: Product) -> ProductResponse:
    return ProductResponse.model_validate(product)


class ProductService:
    """
    Business logic layer for product operations.

    Responsibilities:
        - list_products(): filtered, paginated listing with totals
        - get_stats(): per-category and stock aggregates
        - get_product() / create_product() / update_product() / delete_product()
    """

    async def list_products(
        self,
        gateway: ProductGateway,
        category: Optional[str] = None,
        search: Optional[str] = None,
        page: Optional[str] = None,
        limit: Optional[str] = None,
    ) -> ProductListResponse:
        """
        One page of products matching the optional filters.

        Returns:
            ProductListResponse with the page, the requested page number,
            ceil(total / limit) pages and the total number of matches.
            A page past the end is empty, not an error.

        Raises:
            ValidationError: page or limit is not a positive integer
        """
        pagination = parse_pagination(page, limit)
        criteria = ProductFilter(category=category or None, search=search or None)

        products = await gateway.find(criteria, pagination)
        total = await gateway.count(criteria)

        return ProductListResponse(
            products=[_to_response(p) for p in products],
            current_page=pagination.page,
            total_pages=math.ceil(total / pagination.limit),
            total_products=total,
        )

    async def get_stats(self, gateway: ProductGateway) -> ProductStatsResponse:
        by_category = await gateway.category_breakdown()
        total = await gateway.count()
        in_stock = await gateway.count(ProductFilter(in_stock=True))

        return ProductStatsResponse(
            total_products=total,
            in_stock_count=in_stock,
            out_of_stock_count=total - in_stock,
            by_category=by_category,
        )

    async def get_product(self, gateway: ProductGateway, product_id: str) -> ProductResponse:
        """
        Raises:
            NotFoundError: no product with this id, or the id is malformed
        """
        try:
            product = await gateway.get(product_id)
        except InvalidIdentifierError:
            product = None

        if product is None:
            raise NotFoundError(resource_id=product_id)
        return _to_response(product)

    async def create_product(
        self, gateway: ProductGateway, payload: ProductPayload
    ) -> ProductResponse:
        """
        Persist a new product from an already validated payload.

        Raises:
            ValidationError: the store refused the document
        """
        try:
            product = await gateway.create(payload.to_fields(include_defaults=True))
        except WriteRejectedError as e:
            raise ValidationError(message=e.message, context=e.context)

        logger.info("Product created: %s (%s)", product.id, product.category)
        return _to_response(product)

    async def update_product(
        self, gateway: ProductGateway, product_id: str, payload: ProductPayload
    ) -> ProductResponse:
        """
        Apply a validated payload to an existing product. `inStock` is only
        changed when the payload carries it. Concurrent updates: last write wins.

        Raises:
            NotFoundError: no product with this id, or the id is malformed
            ValidationError: the store refused the change
        """
        try:
            product = await gateway.update(product_id, payload.to_fields())
        except InvalidIdentifierError:
            product = None
        except WriteRejectedError as e:
            raise ValidationError(message=e.message, context=e.context)

        if product is None:
            raise NotFoundError(resource_id=product_id)

        logger.info("Product updated: %s", product.id)
        return _to_response(product)

    async def delete_product(self, gateway: ProductGateway, product_id: str) -> DeleteResponse:
        try:
            product = await gateway.delete(product_id)
        except InvalidIdentifierError:
            product = None

        if product is None:
            raise NotFoundError(resource_id=product_id)

        logger.info("Product deleted: %s", product.id)
        return DeleteResponse(product=_to_response(product))


product_service = ProductService()
