"""
Shared fixtures.

Tests run against ``InMemoryCompanyRepository``, injected into the app through
``app.dependency_overrides``. No MongoDB instance is required: the lifespan
(which opens the Motor client) is not triggered by ``ASGITransport``.
"""
import os
from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncGenerator, Dict, List, Optional, Tuple

import pytest
from bson import ObjectId
from httpx import AsyncClient, ASGITransport

# Configure environment BEFORE importing the app
os.environ.setdefault("MONGO_URL", "mongodb://localhost:27017")
os.environ.setdefault("DB_NAME", "companies_test_db")
os.environ.setdefault("SEARCH_MODE", "substring")

from companies_api.database import get_company_repository
from companies_api.repositories.company_repository import CompanyRepository, to_object_id
from companies_api.services.filter_builder import Predicate


SAMPLE_COMPANIES: List[Dict[str, Any]] = [
    {"name": "TechCorp", "industry": "Technology", "location": "San Francisco",
     "employeeCount": 500, "founded": 2010, "revenue": 100, "website": "techcorp.com"},
    {"name": "HealthInc", "industry": "Healthcare", "location": "New York",
     "employeeCount": 1200, "founded": 2005, "revenue": 250},
    {"name": "EduTech", "industry": "Education", "location": "Boston",
     "employeeCount": 300, "founded": 2015, "revenue": 50},
    {"name": "FinanceFlow", "industry": "Finance", "location": "Chicago",
     "employeeCount": 800, "founded": 2008, "revenue": 180},
    {"name": "RetailMax", "industry": "Retail", "location": "Los Angeles",
     "employeeCount": 2000, "founded": 2000, "revenue": 300},
]


def rollup(records, field: str) -> List[Tuple[Any, int]]:
    """Count records per distinct value of ``field`` (absent values group under None)."""
    counter = Counter(record.get(field) for record in records)
    return list(counter.items())


def _sort_value(value: Any) -> Tuple[int, Any]:
    # MongoDB orders null/missing before any number or string
    if value is None:
        return (0, 0)
    if isinstance(value, (int, float)):
        return (1, value)
    if isinstance(value, datetime):
        return (3, value)
    if isinstance(value, ObjectId):
        return (4, value)
    return (2, str(value))


class InMemoryCompanyRepository(CompanyRepository):
    """CompanyRepository keeping documents in a dict, keyed by ObjectId."""

    def __init__(self):
        self.documents: Dict[ObjectId, Dict[str, Any]] = {}

    async def insert(self, document: Dict[str, Any]) -> Dict[str, Any]:
        stored = dict(document)
        stored.setdefault("_id", ObjectId())
        self.documents[stored["_id"]] = stored
        return dict(stored)

    async def find_by_id(self, company_id: str) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(company_id)
        if object_id is None or object_id not in self.documents:
            return None
        return dict(self.documents[object_id])

    async def update_by_id(self, company_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        object_id = to_object_id(company_id)
        if object_id is None or object_id not in self.documents:
            return None
        self.documents[object_id].update(changes)
        return dict(self.documents[object_id])

    async def delete_by_id(self, company_id: str) -> bool:
        object_id = to_object_id(company_id)
        if object_id is None:
            return False
        return self.documents.pop(object_id, None) is not None

    async def find(self, predicate: Predicate, sort, skip: int = 0, limit: int = 0) -> List[Dict[str, Any]]:
        matched = [dict(doc) for doc in self.documents.values() if predicate.matches(doc)]
        # Stable sorts applied from the least significant key
        for field, descending in reversed(list(sort)):
            matched.sort(key=lambda doc: _sort_value(doc.get(field)), reverse=descending)
        matched = matched[skip:]
        if limit:
            matched = matched[:limit]
        return matched

    async def count(self, predicate: Predicate) -> int:
        return sum(1 for doc in self.documents.values() if predicate.matches(doc))

    async def group_counts(self, field: str):
        return rollup(self.documents.values(), field)


async def seed(repository: InMemoryCompanyRepository, companies: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Insert companies with strictly increasing createdAt (first inserted is oldest)."""
    base = datetime(2024, 1, 1, tzinfo=timezone.utc)
    created = []
    for offset, company in enumerate(companies):
        timestamp = base + timedelta(minutes=offset)
        created.append(await repository.insert(
            dict(company, createdAt=timestamp, updatedAt=timestamp)
        ))
    return created


@pytest.fixture
def sample_companies() -> List[Dict[str, Any]]:
    return [dict(company) for company in SAMPLE_COMPANIES]


@pytest.fixture
def repository() -> InMemoryCompanyRepository:
    return InMemoryCompanyRepository()


@pytest.fixture
async def seeded_repository(repository: InMemoryCompanyRepository) -> InMemoryCompanyRepository:
    await seed(repository, SAMPLE_COMPANIES)
    return repository


@pytest.fixture
def app(repository: InMemoryCompanyRepository):
    from companies_api.main import app

    app.dependency_overrides[get_company_repository] = lambda: repository
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
async def async_client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTP client bound to the ASGI app, no server needed.
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
