"""
QueryExecutor - runs a predicate against the store with sorting and pagination.

The total is always counted over the full predicate match, independent of the
page window. Pages use ``skip = (page - 1) * limit``; a window past the end of
the result set is an empty page, not an error.
"""
import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..repositories.company_repository import CompanyRepository
from .filter_builder import Predicate
from .params import clean_param, parse_int

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10

SORTABLE_FIELDS = frozenset({
    "name",
    "industry",
    "location",
    "employeeCount",
    "founded",
    "revenue",
    "createdAt",
    "updatedAt",
})

# Appended to every sort so that equal primary keys still have a total order
TIEBREAK_FIELD = "_id"


@dataclass(frozen=True)
class SortSpec:
    field: str = "createdAt"
    descending: bool = True

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SortSpec":
        """
        Parse ``"field"`` (ascending) or ``"-field"`` (descending).

        Blank input or a field outside ``SORTABLE_FIELDS`` gives the default
        (newest first).
        """
        if not raw:
            return DEFAULT_SORT
        raw = raw.strip()
        descending = raw.startswith("-")
        name = raw.lstrip("+-")
        if name not in SORTABLE_FIELDS:
            return DEFAULT_SORT
        return cls(name, descending)

    def keys(self) -> List[Tuple[str, bool]]:
        return [(self.field, self.descending), (TIEBREAK_FIELD, self.descending)]


DEFAULT_SORT = SortSpec()


@dataclass(frozen=True)
class PageRequest:
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> "PageRequest":
        """Coerce ``page``/``limit``; missing or non-numeric values use the defaults."""
        return cls.of(
            parse_int(clean_param(params, "page")),
            parse_int(clean_param(params, "limit")),
        )

    @classmethod
    def of(cls, page: Optional[int], limit: Optional[int]) -> "PageRequest":
        page = DEFAULT_PAGE if page is None else max(1, page)
        limit = DEFAULT_LIMIT if limit is None else max(1, limit)
        return cls(page, limit)

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.limit


@dataclass
class PageResult:
    items: List[Dict[str, Any]] = field(default_factory=list)
    total: int = 0
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def pages(self) -> int:
        return math.ceil(self.total / self.limit)


class QueryExecutor:
    """Applies predicate, sort and page window against a CompanyRepository."""

    def __init__(self, repository: CompanyRepository):
        self.repository = repository

    async def execute(
        self,
        predicate: Predicate,
        sort: SortSpec = DEFAULT_SORT,
        page: PageRequest = PageRequest(),
    ) -> PageResult:
        total = await self.repository.count(predicate)

        if page.skip >= total:
            logger.debug(f"Page {page.page} (limit {page.limit}) is past the end of {total} matches")
            return PageResult(items=[], total=total, page=page.page, limit=page.limit)

        items = await self.repository.find(
            predicate,
            sort=sort.keys(),
            skip=page.skip,
            limit=page.limit,
        )
        return PageResult(items=items, total=total, page=page.page, limit=page.limit)
