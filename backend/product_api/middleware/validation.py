"""
Product API Backend — Product Payload Validation
=================================================

Pure validation of create/update bodies. `validate_product_payload()` never
raises: it returns a ValidationResult that either carries the typed
ProductPayload or a human-readable reason.

The field constraints live on ProductPayload. This module only decides which
message a failed validation reports, in this order:
    1. the body is a JSON object
    2. name, description, price and category are present (not null, not "")
    3. name, description and category are strings
    4. price is a finite number (booleans excluded) strictly greater than zero
    5. inStock, when given, is a boolean
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from product_api.schemas.product import ProductPayload

REQUIRED_FIELDS = ("name", "description", "price", "category")

MSG_NOT_OBJECT = "Validation Error: request body must be a JSON object"
MSG_INVALID_JSON = "Validation Error: request body must be valid JSON"
MSG_REQUIRED = "Validation Error: name, description, price, and category are required"
MSG_TEXT = "Validation Error: name, description, and category must be text"
MSG_PRICE = "Validation Error: price must be a positive number"
MSG_IN_STOCK = "Validation Error: inStock must be a boolean"

# Reported message per failing field, lowest rank wins.
FIELD_MESSAGES: Dict[str, str] = {
    "name": MSG_TEXT,
    "description": MSG_TEXT,
    "category": MSG_TEXT,
    "price": MSG_PRICE,
    "inStock": MSG_IN_STOCK,
    "in_stock": MSG_IN_STOCK,
}
MESSAGE_RANK = (MSG_NOT_OBJECT, MSG_REQUIRED, MSG_TEXT, MSG_PRICE, MSG_IN_STOCK)


@dataclass(frozen=True)
class ValidationResult:
    payload: Optional[ProductPayload] = None
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.payload is not None

    @classmethod
    def success(cls, payload: ProductPayload) -> "ValidationResult":
        return cls(payload=payload)

    @classmethod
    def failure(cls, reason: str) -> "ValidationResult":
        return cls(reason=reason)


def _message_for(error: Dict[str, Any]) -> str:
    loc = error.get("loc") or ()
    if not loc:
        return MSG_NOT_OBJECT
    field = str(loc[0])
    # Absent, null and "" all read as "not supplied" for a required field.
    if field in REQUIRED_FIELDS and (
        error["type"] == "missing" or error.get("input") is None or error.get("input") == ""
    ):
        return MSG_REQUIRED
    return FIELD_MESSAGES.get(field, MSG_NOT_OBJECT)


def first_failure(errors: List[Dict[str, Any]]) -> str:
    """The highest-priority message among pydantic validation errors."""
    return min((_message_for(e) for e in errors), key=MESSAGE_RANK.index)


def validate_product_payload(body: Any) -> ValidationResult:
    if not isinstance(body, dict):
        return ValidationResult.failure(MSG_NOT_OBJECT)
    try:
        payload = ProductPayload.model_validate(body)
    except PydanticValidationError as e:
        return ValidationResult.failure(first_failure(e.errors()))
    return ValidationResult.success(payload)
