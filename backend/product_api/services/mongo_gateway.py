"""
Product API Backend — MongoDB Persistence Gateway
==================================================

What:  ProductGateway implementation over one MongoDB collection (motor).
How:   Translates ProductFilter/Pagination into find/count queries, groups by
       category with an aggregation pipeline, and maps driver errors onto the
       gateway error contract.
Who:   Built in the application lifespan from Settings; used by ProductService.

Query shapes:
    list:   find({category?, name: {$regex: <escaped>, $options: "i"}?})
              .sort(_id ASC).skip(offset).limit(limit)
    count:  count_documents(<same filter>)
    stats:  [$group by $category → count, avgPrice, totalValue] + [$sort _id ASC]

Error mapping:
    bson InvalidId / TypeError       → InvalidIdentifierError
    WriteError (incl. DuplicateKey)  → WriteRejectedError
    any other PyMongoError           → DatabaseError
"""

import logging
import re
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Mapping, Optional

from bson import ObjectId
from bson.errors import InvalidId
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorCollection
from pymongo import ASCENDING, ReturnDocument
from pymongo.errors import PyMongoError, WriteError

from product_api.exceptions import DatabaseError, InvalidIdentifierError, WriteRejectedError
from product_api.models import product as doc
from product_api.models.product import Product, new_document, update_document
from product_api.schemas.product import CategoryStats, Pagination, ProductFilter
from product_api.services.gateway_base import ProductGateway

logger = logging.getLogger(__name__)


def build_query(criteria: Optional[ProductFilter]) -> Dict[str, Any]:
    """Translate a ProductFilter into a MongoDB filter document."""
    query: Dict[str, Any] = {}
    if criteria is None:
        return query
    if criteria.category:
        query[doc.CATEGORY] = criteria.category
    if criteria.search:
        # Substring match, so user input is matched literally.
        query[doc.NAME] = {"$regex": re.escape(criteria.search), "$options": "i"}
    if criteria.in_stock is not None:
        query[doc.IN_STOCK] = criteria.in_stock
    return query


STATS_PIPELINE: List[Dict[str, Any]] = [
    {
        "$group": {
            "_id": f"${doc.CATEGORY}",
            "count": {"$sum": 1},
            "avgPrice": {"$avg": f"${doc.PRICE}"},
            "totalValue": {"$sum": f"${doc.PRICE}"},
        }
    },
    {"$sort": {"_id": ASCENDING}},
]


def to_object_id(product_id: str) -> ObjectId:
    try:
        return ObjectId(product_id)
    except (InvalidId, TypeError):
        raise InvalidIdentifierError(product_id)


@contextmanager
def _store_errors(operation: str, **context: Any) -> Iterator[None]:
    try:
        yield
    except WriteError as e:
        detail = (e.details or {}).get("errmsg", str(e))
        logger.warning("Store rejected %s: %s", operation, detail)
        raise WriteRejectedError(
            message=f"Product validation failed: {detail}",
            context={"operation": operation, **context},
        ) from e
    except PyMongoError as e:
        logger.error("Store error during %s: %s", operation, str(e))
        raise DatabaseError(
            context={"operation": operation, "error_type": type(e).__name__, **context},
        ) from e


class MongoProductGateway(ProductGateway):
    """
    Gateway over the configured products collection.

    Args:
        collection: motor collection holding product documents
        client:     owning client, closed by `close()` when given
    """

    def __init__(
        self,
        collection: AsyncIOMotorCollection,
        client: Optional[AsyncIOMotorClient] = None,
    ):
        self.collection = collection
        self.client = client

    async def ensure_indexes(self) -> None:
        """Index the exact-match filter and grouping key."""
        with _store_errors("ensure_indexes"):
            await self.collection.create_index([(doc.CATEGORY, ASCENDING)])

    async def find(self, criteria: ProductFilter, pagination: Pagination) -> List[Product]:
        query = build_query(criteria)
        with _store_errors("find", query=query):
            cursor = (
                self.collection.find(query)
                .sort(doc.ID, ASCENDING)
                .skip(pagination.offset)
                .limit(pagination.limit)
            )
            documents = await cursor.to_list(length=pagination.limit)
        return [Product.from_document(d) for d in documents]

    async def count(self, criteria: Optional[ProductFilter] = None) -> int:
        query = build_query(criteria)
        with _store_errors("count", query=query):
            return await self.collection.count_documents(query)

    async def category_breakdown(self) -> List[CategoryStats]:
        with _store_errors("category_breakdown"):
            rows = await self.collection.aggregate(STATS_PIPELINE).to_list(length=None)
        return [
            CategoryStats(
                category="" if row["_id"] is None else str(row["_id"]),
                count=row["count"],
                avg_price=row["avgPrice"] or 0.0,
                total_value=row["totalValue"] or 0.0,
            )
            for row in rows
        ]

    async def get(self, product_id: str) -> Optional[Product]:
        oid = to_object_id(product_id)
        with _store_errors("get", product_id=product_id):
            found = await self.collection.find_one({doc.ID: oid})
        return Product.from_document(found) if found else None

    async def create(self, fields: Mapping[str, Any]) -> Product:
        document = new_document(fields)
        with _store_errors("create"):
            result = await self.collection.insert_one(document)
        document[doc.ID] = result.inserted_id
        logger.info("Inserted product %s", result.inserted_id)
        return Product.from_document(document)

    async def update(self, product_id: str, fields: Mapping[str, Any]) -> Optional[Product]:
        oid = to_object_id(product_id)
        with _store_errors("update", product_id=product_id):
            updated = await self.collection.find_one_and_update(
                {doc.ID: oid},
                {"$set": update_document(fields)},
                return_document=ReturnDocument.AFTER,
            )
        return Product.from_document(updated) if updated else None

    async def delete(self, product_id: str) -> Optional[Product]:
        oid = to_object_id(product_id)
        with _store_errors("delete", product_id=product_id):
            removed = await self.collection.find_one_and_delete({doc.ID: oid})
        return Product.from_document(removed) if removed else None

    async def ping(self) -> bool:
        try:
            await self.collection.database.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("Store ping failed: %s", str(e))
            return False

    async def close(self) -> None:
        if self.client is not None:
            self.client.close()
