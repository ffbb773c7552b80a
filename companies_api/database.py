"""
MongoDB connection handling.

The Motor client is opened by the application lifespan and kept on
``app.state``; request handlers reach the collection through the
``get_company_repository`` dependency so tests can swap in another repository.
"""
import logging
from typing import Any, Dict, Optional

from fastapi import Request
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from pymongo import DESCENDING, TEXT
from pymongo.errors import PyMongoError

from .config import Settings
from .repositories.company_repository import CompanyRepository, MongoCompanyRepository

logger = logging.getLogger(__name__)


def convert_id(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Replace MongoDB's ``_id`` with a string ``id``."""
    if document is None:
        return None
    document = dict(document)
    if "_id" in document:
        document["id"] = str(document.pop("_id"))
    return document


def connect(settings: Settings) -> AsyncIOMotorClient:
    logger.info(f"Connecting to MongoDB database '{settings.db_name}'")
    return AsyncIOMotorClient(
        settings.mongo_url,
        serverSelectionTimeoutMS=settings.mongo_timeout_ms,
        tz_aware=True,
    )


async def ensure_indexes(db: AsyncIOMotorDatabase, settings: Settings) -> None:
    """Create the text index used by search and the default sort index."""
    collection = db[settings.companies_collection]
    try:
        await collection.create_index(
            [("name", TEXT), ("industry", TEXT), ("location", TEXT)],
            name="company_text",
        )
        await collection.create_index([("createdAt", DESCENDING)], name="created_at_desc")
    except PyMongoError as e:
        # The API still serves requests; only text search depends on the index
        logger.error(f"Could not create indexes on '{settings.companies_collection}': {e}")


def get_company_repository(request: Request) -> CompanyRepository:
    settings: Settings = request.app.state.settings
    db: AsyncIOMotorDatabase = request.app.state.db
    return MongoCompanyRepository(db[settings.companies_collection])
