"""
Product API Backend — Pydantic Request/Response Schemas
========================================================

What:  Pydantic models defining the API contract of /api/products.
How:   Python attributes are snake_case; JSON uses camelCase through an alias
       generator. FastAPI serializes response models by alias.
Who:   Route handlers (response models), the payload validator (ProductPayload)
       and gateways (ProductFilter, CategoryStats).
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictBool, StrictStr, model_validator
from pydantic.alias_generators import to_camel

from product_api.models import product as doc


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What the client sends
# ══════════════════════════════════════════════════════════════════════════


class ProductPayload(CamelModel):
    """
    Validated body of a create or update request.

    Types are strict: numbers are never parsed from strings, booleans are not
    numbers. Empty strings count as missing. `in_stock` stays None when the
    client omitted it.
    """

    name: StrictStr = Field(min_length=1)
    description: StrictStr = Field(min_length=1)
    price: float = Field(gt=0, strict=True, allow_inf_nan=False)
    category: StrictStr = Field(min_length=1)
    in_stock: Optional[StrictBool] = None

    def to_fields(self, include_defaults: bool = False) -> Dict[str, Any]:
        """Stored field names → values, ready for the gateway."""
        fields: Dict[str, Any] = {
            doc.NAME: self.name,
            doc.DESCRIPTION: self.description,
            doc.PRICE: self.price,
            doc.CATEGORY: self.category,
        }
        if self.in_stock is not None:
            fields[doc.IN_STOCK] = self.in_stock
        elif include_defaults:
            fields[doc.IN_STOCK] = True
        return fields


# ══════════════════════════════════════════════════════════════════════════
# Query Models — Filters and paging handed to the gateway
# ══════════════════════════════════════════════════════════════════════════


class ProductFilter(BaseModel):
    """
    Store-independent description of which products to match.

    category: exact match
    search:   case-insensitive, literal substring of `name`
    in_stock: exact match on the stock flag
    """

    model_config = ConfigDict(frozen=True)

    category: Optional[str] = None
    search: Optional[str] = None
    in_stock: Optional[bool] = None


# Stores encode skip counts as signed 64-bit integers.
MAX_OFFSET = 2**63 - 1
MAX_LIMIT = 100


class Pagination(BaseModel):
    """
    Page window over a result set.

    limit is capped at MAX_LIMIT, and page may not push the offset past
    MAX_OFFSET.
    """

    model_config = ConfigDict(frozen=True)

    page: int = Field(default=1, ge=1)
    limit: int = Field(default=10, ge=1, le=MAX_LIMIT)

    @model_validator(mode="after")
    def check_offset(self) -> "Pagination":
        if self.offset > MAX_OFFSET:
            raise ValueError(f"page {self.page} is past the largest addressable offset")
        return self

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# ══════════════════════════════════════════════════════════════════════════
# Response Models — What the API returns to clients
# ══════════════════════════════════════════════════════════════════════════


class ProductResponse(CamelModel):
    """Full representation of one product."""

    id: str = Field(description="Store-assigned identifier")
    name: str
    description: str
    price: float
    category: str
    in_stock: bool
    created_at: datetime = Field(description="Creation timestamp (UTC)")
    updated_at: datetime = Field(description="Last modification timestamp (UTC)")


class ProductListResponse(CamelModel):
    """One page of GET /api/products."""

    products: List[ProductResponse]
    current_page: int
    total_pages: int
    total_products: int


class CategoryStats(CamelModel):
    category: str
    count: int
    avg_price: float
    total_value: float


class ProductStatsResponse(CamelModel):
    total_products: int
    in_stock_count: int
    out_of_stock_count: int
    by_category: List[CategoryStats]


class DeleteResponse(CamelModel):
    message: str = "Product deleted successfully"
    product: ProductResponse


# ══════════════════════════════════════════════════════════════════════════
# Error & Health Models
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Error body returned by every failure path.

    `stack` is only present on unexpected errors outside production.
    """

    message: str
    stack: Optional[str] = None


class HealthResponse(BaseModel):
    status: str = Field(description="healthy or unhealthy")
    version: str
    database: str = Field(description="connected or disconnected")
    uptime_seconds: float
