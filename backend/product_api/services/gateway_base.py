"""
Product API Backend — Abstract Persistence Gateway
===================================================

What:  Abstract base class defining the store operations the API needs,
       scoped to the product collection.
How:   Concrete implementations inherit from ProductGateway and translate
       these calls to a specific store (MongoProductGateway for MongoDB).
Who:   Called by ProductService; one instance lives on `app.state.gateway`.

Error contract (identical for every implementation):
    - An identifier the store cannot parse  → InvalidIdentifierError
    - A well-formed identifier with no match → None return value
    - A document the store refuses to write  → WriteRejectedError
    - Any other store failure                → DatabaseError
"""

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional

from product_api.models.product import Product
from product_api.schemas.product import CategoryStats, Pagination, ProductFilter


class ProductGateway(ABC):
    """
    Interface over the product collection.

    Field mappings passed to `create` and `update` use stored field names
    (see `product_api.models.product`).
    """

    @abstractmethod
    async def find(self, criteria: ProductFilter, pagination: Pagination) -> List[Product]:
        """
        Fetch at most `pagination.limit` products matching `criteria`,
        skipping `pagination.offset`, in insertion order.
        """
        ...

    @abstractmethod
    async def count(self, criteria: Optional[ProductFilter] = None) -> int:
        """Number of products matching `criteria` (all products when None)."""
        ...

    @abstractmethod
    async def category_breakdown(self) -> List[CategoryStats]:
        """Per-category count, average price and price sum, ordered by category."""
        ...

    @abstractmethod
    async def get(self, product_id: str) -> Optional[Product]:
        ...

    @abstractmethod
    async def create(self, fields: Mapping[str, Any]) -> Product:
        """Insert a new product; the store assigns the id and timestamps."""
        ...

    @abstractmethod
    async def update(self, product_id: str, fields: Mapping[str, Any]) -> Optional[Product]:
        """Set `fields` on one product, refresh `updatedAt`, return the new state."""
        ...

    @abstractmethod
    async def delete(self, product_id: str) -> Optional[Product]:
        """Remove one product and return its last state."""
        ...

    @abstractmethod
    async def ping(self) -> bool:
        """
        Check if the store is reachable.

        Who:     Called by the health check endpoint.
        Returns: True if the store answered, False otherwise. Never raises.
        """
        ...

    async def close(self) -> None:
        """Release connections. Called once at application shutdown."""
        return None
