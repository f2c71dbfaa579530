"""
Product API Backend — Product Document Model
=============================================

What:  The shape of one product document in the `products` collection, and the
       conversions between stored documents and the in-process `Product` record.
How:   Stored documents use MongoDB's `_id` (ObjectId) plus camelCase field names;
       `Product` is a plain dataclass with snake_case attributes and a string id.
Who:   Built by gateway implementations; read by the service and schemas.

Document layout:
    {
        "_id":         ObjectId,          # assigned by the store on insert
        "name":        str,
        "description": str,
        "price":       float | int,       # > 0 when written through the API
        "category":    str,               # grouping key for stats
        "inStock":     bool,              # defaults to True
        "createdAt":   datetime (UTC),
        "updatedAt":   datetime (UTC)     # refreshed on every update
    }

Constraints are enforced by the API pipeline before a write; the collection
itself carries no validator.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Mapping

# Field names as stored
ID = "_id"
NAME = "name"
DESCRIPTION = "description"
PRICE = "price"
CATEGORY = "category"
IN_STOCK = "inStock"
CREATED_AT = "createdAt"
UPDATED_AT = "updatedAt"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_utc(value: datetime) -> datetime:
    # The driver hands back naive datetimes unless the client is tz-aware.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@dataclass
class Product:
    """One persisted product."""

    id: str
    name: str
    description: str
    price: float
    category: str
    in_stock: bool
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_document(cls, doc: Mapping[str, Any]) -> "Product":
        return cls(
            id=str(doc[ID]),
            name=doc[NAME],
            description=doc[DESCRIPTION],
            price=doc[PRICE],
            category=doc[CATEGORY],
            in_stock=doc.get(IN_STOCK, True),
            created_at=_as_utc(doc[CREATED_AT]),
            updated_at=_as_utc(doc[UPDATED_AT]),
        )

    def __repr__(self) -> str:
        return f"<Product(id={self.id}, name='{self.name}', category='{self.category}')>"


def new_document(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Builds the document to insert for a create.

    `fields` uses stored field names. `inStock` falls back to True and both
    timestamps are set to the same instant.
    """
    now = utcnow()
    return {
        NAME: fields[NAME],
        DESCRIPTION: fields[DESCRIPTION],
        PRICE: fields[PRICE],
        CATEGORY: fields[CATEGORY],
        IN_STOCK: fields.get(IN_STOCK, True),
        CREATED_AT: now,
        UPDATED_AT: now,
    }


def update_document(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """The `$set` body for an update: the given fields plus a fresh `updatedAt`."""
    changes = {k: v for k, v in fields.items() if k not in (ID, CREATED_AT, UPDATED_AT)}
    changes[UPDATED_AT] = utcnow()
    return changes
