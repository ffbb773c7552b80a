"""
Record store access for companies.

``CompanyRepository`` is the contract the core depends on. ``MongoCompanyRepository``
implements it on top of a Motor collection; tests substitute an in-memory
implementation through FastAPI's dependency overrides.

Every ``pymongo`` error is re-raised as ``StoreFailure`` with the driver's
message. Identifiers that are not valid ObjectIds never reach the store and
resolve as "absent".
"""
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pymongo import ASCENDING, DESCENDING, ReturnDocument
from pymongo.errors import PyMongoError

from ..errors import StoreFailure
from ..services.filter_builder import Predicate

logger = logging.getLogger(__name__)

# (field, descending) pairs, most significant first
SortKeys = Sequence[Tuple[str, bool]]


class CompanyRepository(ABC):
    """Single-document CRUD plus predicate scans over the companies collection."""

    @abstractmethod
    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        """Persist ``document`` and return it as stored (with ``_id``)."""

    @abstractmethod
    async def find_by_id(self, company_id: str) -> Optional[Dict[str, Any]]:
        ...

    @abstractmethod
    async def update_by_id(self, company_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Apply ``changes`` and return the post-update document, or None if absent."""

    @abstractmethod
    async def delete_by_id(self, company_id: str) -> bool:
        """Return True if a document was removed."""

    @abstractmethod
    async def find(
        self,
        predicate: Predicate,
        sort: SortKeys,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        """Return matching documents ordered by ``sort``; ``limit=0`` means no limit."""

    @abstractmethod
    async def count(self, predicate: Predicate) -> int:
        ...

    @abstractmethod
    async def group_counts(self, field: str) -> List[Tuple[Any, int]]:
        """Return ``(value, count)`` for every distinct value of ``field``."""


def to_object_id(company_id: str) -> Optional[ObjectId]:
    if not isinstance(company_id, str) or not ObjectId.is_valid(company_id):
        return None
    return ObjectId(company_id)


class MongoCompanyRepository(CompanyRepository):
    """CompanyRepository backed by a Motor collection."""

    def __init__(self, collection: AsyncIOMotorCollection):
        self.collection = collection

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = await self.collection.insert_one(document)
            return await self.collection.find_one({"_id": result.inserted_id})
        except PyMongoError as e:
            logger.error(f"Error inserting company: {e}")
            raise StoreFailure(str(e)) from e

    async def find_by_id(self, company_id: str) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(company_id)
        if object_id is None:
            return None
        try:
            return await self.collection.find_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Error fetching company {company_id}: {e}")
            raise StoreFailure(str(e)) from e

    async def update_by_id(self, company_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(company_id)
        if object_id is None:
            return None
        try:
            return await self.collection.find_one_and_update(
                {"_id": object_id},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except PyMongoError as e:
            logger.error(f"Error updating company {company_id}: {e}")
            raise StoreFailure(str(e)) from e

    async def delete_by_id(self, company_id: str) -> bool:
        object_id = to_object_id(company_id)
        if object_id is None:
            return False
        try:
            result = await self.collection.delete_one({"_id": object_id})
        except PyMongoError as e:
            logger.error(f"Error deleting company {company_id}: {e}")
            raise StoreFailure(str(e)) from e
        return result.deleted_count > 0

    async def find(
        self,
        predicate: Predicate,
        sort: SortKeys,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        sort_spec = [(name, DESCENDING if descending else ASCENDING) for name, descending in sort]
        try:
            cursor = self.collection.find(predicate.to_mongo())
            if sort_spec:
                cursor = cursor.sort(sort_spec)
            cursor = cursor.skip(skip).limit(limit)
            return await cursor.to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Error querying companies: {e}")
            raise StoreFailure(str(e)) from e

    async def count(self, predicate: Predicate) -> int:
        try:
            return await self.collection.count_documents(predicate.to_mongo())
        except PyMongoError as e:
            logger.error(f"Error counting companies: {e}")
            raise StoreFailure(str(e)) from e

    async def group_counts(self, field: str) -> List[Tuple[Any, int]]:
        pipeline = [
            {"$group": {"_id": f"${field}", "count": {"$sum": 1}}},
            {"$sort": {"count": -1, "_id": 1}},
        ]
        try:
            groups = await self.collection.aggregate(pipeline).to_list(length=None)
        except PyMongoError as e:
            logger.error(f"Error aggregating companies by {field}: {e}")
            raise StoreFailure(str(e)) from e
        return [(group["_id"], group["count"]) for group in groups]
