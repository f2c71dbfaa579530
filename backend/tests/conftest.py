"""
Product API Backend — Test Configuration (conftest.py)
=======================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped, created fresh for each test):
    ├── settings:          Settings with a known API key, development mode
    ├── gateway:           InMemoryProductGateway (no MongoDB needed)
    ├── app:               create_app(settings, gateway)
    ├── test_client:       HTTPX AsyncClient routed straight into the app
    ├── auth_headers:      {"x-api-key": <the test secret>}
    ├── sample_payload:    A valid create/update body
    ├── mock_collection:   MagicMock standing in for a motor collection
    └── make_document:     Builds a stored product document
"""

import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from bson import ObjectId
from httpx import ASGITransport, AsyncClient

# Keep tests away from any real database or secret before app modules load.
os.environ["MONGO_URI"] = "mongodb://localhost:1"
os.environ["API_KEY"] = "test-secret"
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"

from product_api.config import Settings  # noqa: E402
from product_api.exceptions import InvalidIdentifierError  # noqa: E402
from product_api.main import create_app  # noqa: E402
from product_api.models import product as doc  # noqa: E402
from product_api.models.product import (  # noqa: E402
    Product,
    new_document,
    update_document,
)
from product_api.schemas.product import (  # noqa: E402
    CategoryStats,
    Pagination,
    ProductFilter,
)
from product_api.services.gateway_base import ProductGateway  # noqa: E402

TEST_API_KEY = "test-secret"


# ══════════════════════════════════════════════════════════════════════════
# In-memory gateway
# ══════════════════════════════════════════════════════════════════════════

class InMemoryProductGateway(ProductGateway):
    """
    ProductGateway backed by a dict, honoring the same error contract as
    MongoProductGateway: ObjectId-shaped ids, InvalidIdentifierError for
    malformed ones, insertion order for listing.
    """

    def __init__(self):
        self.documents: Dict[ObjectId, Dict[str, Any]] = {}
        self.available = True

    @staticmethod
    def _oid(product_id: str) -> ObjectId:
        if not isinstance(product_id, str) or not ObjectId.is_valid(product_id):
            raise InvalidIdentifierError(product_id)
        return ObjectId(product_id)

    @staticmethod
    def _matches(document: Mapping[str, Any], criteria: Optional[ProductFilter]) -> bool:
        if criteria is None:
            return True
        if criteria.category and document[doc.CATEGORY] != criteria.category:
            return False
        if criteria.search and criteria.search.lower() not in document[doc.NAME].lower():
            return False
        if criteria.in_stock is not None and document[doc.IN_STOCK] != criteria.in_stock:
            return False
        return True

    def _ordered(self, criteria: Optional[ProductFilter]) -> List[Dict[str, Any]]:
        return [d for _, d in sorted(self.documents.items()) if self._matches(d, criteria)]

    async def find(self, criteria: ProductFilter, pagination: Pagination) -> List[Product]:
        matching = self._ordered(criteria)
        window = matching[pagination.offset:pagination.offset + pagination.limit]
        return [Product.from_document(d) for d in window]

    async def count(self, criteria: Optional[ProductFilter] = None) -> int:
        return len(self._ordered(criteria))

    async def category_breakdown(self) -> List[CategoryStats]:
        groups: Dict[str, List[float]] = {}
        for document in self._ordered(None):
            groups.setdefault(document[doc.CATEGORY], []).append(document[doc.PRICE])
        return [
            CategoryStats(
                category=category,
                count=len(prices),
                avg_price=sum(prices) / len(prices),
                total_value=sum(prices),
            )
            for category, prices in sorted(groups.items())
        ]

    async def get(self, product_id: str) -> Optional[Product]:
        found = self.documents.get(self._oid(product_id))
        return Product.from_document(found) if found else None

    async def create(self, fields: Mapping[str, Any]) -> Product:
        document = new_document(fields)
        document[doc.ID] = ObjectId()
        self.documents[document[doc.ID]] = document
        return Product.from_document(document)

    async def update(self, product_id: str, fields: Mapping[str, Any]) -> Optional[Product]:
        oid = self._oid(product_id)
        if oid not in self.documents:
            return None
        self.documents[oid].update(update_document(fields))
        return Product.from_document(self.documents[oid])

    async def delete(self, product_id: str) -> Optional[Product]:
        removed = self.documents.pop(self._oid(product_id), None)
        return Product.from_document(removed) if removed else None

    async def ping(self) -> bool:
        return self.available


# ══════════════════════════════════════════════════════════════════════════
# Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def settings():
    return Settings(api_key=TEST_API_KEY, environment="development", log_level="WARNING")


@pytest.fixture
def gateway():
    return InMemoryProductGateway()


@pytest.fixture
def app(settings, gateway):
    return create_app(settings=settings, gateway=gateway)


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app through ASGITransport.

    The lifespan does not run, so the in-memory gateway is never replaced.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def auth_headers():
    return {"x-api-key": TEST_API_KEY}


@pytest.fixture
def sample_payload():
    return {
        "name": "Desk Lamp",
        "description": "Adjustable LED desk lamp",
        "price": 39.99,
        "category": "lighting",
    }


@pytest.fixture
def mock_collection():
    """
    A MagicMock shaped like a motor collection.

    find() returns a chainable cursor (sort/skip/limit return the cursor
    itself) whose to_list is awaitable; aggregate() returns a cursor with an
    awaitable to_list.
    """
    collection = MagicMock()

    cursor = MagicMock()
    cursor.sort.return_value = cursor
    cursor.skip.return_value = cursor
    cursor.limit.return_value = cursor
    cursor.to_list = AsyncMock(return_value=[])
    collection.find.return_value = cursor

    agg_cursor = MagicMock()
    agg_cursor.to_list = AsyncMock(return_value=[])
    collection.aggregate.return_value = agg_cursor

    collection.count_documents = AsyncMock(return_value=0)
    collection.find_one = AsyncMock(return_value=None)
    collection.insert_one = AsyncMock()
    collection.find_one_and_update = AsyncMock(return_value=None)
    collection.find_one_and_delete = AsyncMock(return_value=None)
    collection.create_index = AsyncMock()
    collection.database.command = AsyncMock(return_value={"ok": 1})
    return collection


def _stored_document(**overrides) -> Dict[str, Any]:
    """A product document as the store would return it."""
    now = datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)
    document = {
        "_id": ObjectId(),
        "name": "Desk Lamp",
        "description": "Adjustable LED desk lamp",
        "price": 39.99,
        "category": "lighting",
        "inStock": True,
        "createdAt": now,
        "updatedAt": now,
    }
    document.update(overrides)
    return document


@pytest.fixture
def make_document():
    return _stored_document
