"""
CompanyService - record lifecycle and query orchestration for companies.

Validation and not-found outcomes are decided here before any write reaches
the store. Store errors travel up unchanged as ``StoreFailure``.
"""
import logging
from datetime import datetime, timezone as dt_timezone
from typing import Any, Dict, Mapping, Optional

from ..errors import NotFound, ValidationFailure
from ..models.companies import CompanyStats
from ..repositories.company_repository import CompanyRepository
from .aggregation_service import AggregationEngine
from .company_validator import CompanyValidator
from .filter_builder import SEARCH_MODE_SUBSTRING, build_filter
from .params import clean_param
from .query_executor import PageRequest, PageResult, QueryExecutor, SortSpec

logger = logging.getLogger(__name__)


def ensure_utc_aware(dt: Optional[datetime]) -> Optional[datetime]:
    """Return a UTC-aware datetime. Naive datetimes (as read from MongoDB) are assumed UTC."""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=dt_timezone.utc)
    return dt


def convert_timestamps(document: Dict[str, Any]) -> Dict[str, Any]:
    for key in ("createdAt", "updatedAt"):
        if isinstance(document.get(key), datetime):
            document[key] = ensure_utc_aware(document[key])
    return document


class CompanyService:
    """Operations behind the /companies endpoints."""

    def __init__(
        self,
        repository: CompanyRepository,
        search_mode: str = SEARCH_MODE_SUBSTRING,
        validator: Optional[CompanyValidator] = None,
    ):
        self.repository = repository
        self.search_mode = search_mode
        self.validator = validator or CompanyValidator()

    # ---------------------------------------------------------------------------
    # Queries
    # ---------------------------------------------------------------------------

    async def list_companies(self, params: Mapping[str, Any]) -> PageResult:
        """Filter, sort and paginate from raw query parameters."""
        predicate = build_filter(params, search_mode=self.search_mode)
        sort = SortSpec.parse(clean_param(params, "sort"))
        page = PageRequest.from_params(params)

        logger.info(
            f"Listing companies: filter={predicate.to_mongo()} sort={sort} "
            f"page={page.page} limit={page.limit}"
        )
        result = await QueryExecutor(self.repository).execute(predicate, sort=sort, page=page)
        result.items = [convert_timestamps(item) for item in result.items]
        return result

    async def stats_overview(self) -> CompanyStats:
        return await AggregationEngine(self.repository).overview()

    async def get_company(self, company_id: str) -> Dict[str, Any]:
        company = await self.repository.find_by_id(company_id)
        if not company:
            logger.warning(f"Company {company_id} not found")
            raise NotFound(company_id)
        return convert_timestamps(company)

    # ---------------------------------------------------------------------------
    # Mutations
    # ---------------------------------------------------------------------------

    async def create_company(self, payload: Any) -> Dict[str, Any]:
        result = self.validator.validate_create(payload)
        if not result.is_valid:
            logger.warning(f"Rejected company creation: {result.errors}")
            raise ValidationFailure(result.errors)

        document = result.company.model_dump(by_alias=True, exclude_none=True)
        now = datetime.now(dt_timezone.utc)
        document["createdAt"] = now
        document["updatedAt"] = now

        created = await self.repository.insert(document)
        logger.info(f"Company created: {created['_id']}")
        return convert_timestamps(created)

    async def update_company(self, company_id: str, payload: Any) -> Dict[str, Any]:
        existing = await self.repository.find_by_id(company_id)
        if not existing:
            logger.warning(f"Cannot update company {company_id}: not found")
            raise NotFound(company_id)

        result = self.validator.validate_update(existing, payload)
        if not result.is_valid:
            logger.warning(f"Rejected update of company {company_id}: {result.errors}")
            raise ValidationFailure(result.errors)

        changes = dict(result.changes)
        changes["updatedAt"] = datetime.now(dt_timezone.utc)

        updated = await self.repository.update_by_id(company_id, changes)
        if not updated:
            # Deleted between the read and the write
            raise NotFound(company_id)
        logger.info(f"Company updated: {company_id} fields={sorted(result.changes)}")
        return convert_timestamps(updated)

    async def delete_company(self, company_id: str) -> None:
        deleted = await self.repository.delete_by_id(company_id)
        if not deleted:
            logger.warning(f"Cannot delete company {company_id}: not found")
            raise NotFound(company_id)
        logger.info(f"Company deleted: {company_id}")
