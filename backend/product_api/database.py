"""
Product API Backend — Document Store Connection
================================================

What:  Creates the motor client and the product gateway from Settings.
How:   One AsyncIOMotorClient per process; the driver pools connections
       internally. The client is tz-aware so timestamps come back as UTC.
Who:   Called by the application lifespan at startup; the gateway's
       `close()` releases the client at shutdown.
When:  Startup only. Requests reach the store through `app.state.gateway`.

Connection behaviour:
    serverSelectionTimeoutMS: bounded by MONGO_TIMEOUT_MS; this layer adds
    no timeout, retry or cancellation of its own.
"""

import logging

from motor.motor_asyncio import AsyncIOMotorClient
from starlette.requests import Request

from product_api.config import Settings
from product_api.exceptions import DatabaseError
from product_api.services.gateway_base import ProductGateway
from product_api.services.mongo_gateway import MongoProductGateway

logger = logging.getLogger(__name__)


def create_mongo_client(settings: Settings) -> AsyncIOMotorClient:
    return AsyncIOMotorClient(
        settings.mongo_uri,
        tz_aware=True,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
    )


async def connect_gateway(settings: Settings) -> MongoProductGateway:
    """
    Open the store connection and return a gateway over the products collection.

    Index creation failure is logged, not raised, so the API can still start
    and report the store as disconnected on /health.
    """
    client = create_mongo_client(settings)
    collection = client[settings.mongo_database][settings.mongo_collection]
    gateway = MongoProductGateway(collection, client=client)
    try:
        await gateway.ensure_indexes()
    except DatabaseError as e:
        logger.error("Could not prepare collection %s: %s", settings.mongo_collection, e.context)
        return gateway
    logger.info(
        "Document store ready: database=%s collection=%s",
        settings.mongo_database,
        settings.mongo_collection,
    )
    return gateway


def get_gateway(request: Request) -> ProductGateway:
    """
    FastAPI dependency returning the gateway attached to the running app.

    Example usage in a route:
        @router.get("/api/products/{product_id}")
        async def get_product(product_id: str, gateway=Depends(get_gateway)):
            return await gateway.get(product_id)
    """
    return request.app.state.gateway
