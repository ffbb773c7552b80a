"""
AggregationEngine - rollup statistics over the whole companies collection.

Groups are ordered by count descending. Equal counts are ordered by the group
key so repeated calls over unchanged data always return the same sequence,
whichever repository produced the raw groups.
"""
import logging
from typing import Any, Iterable, List, Tuple

from ..models.companies import CompanyStats, GroupCount
from ..repositories.company_repository import CompanyRepository
from .filter_builder import MATCH_ALL

logger = logging.getLogger(__name__)


def _group_sort_key(group: Tuple[Any, int]) -> Tuple[int, bool, str]:
    key, count = group
    # Missing keys sort after every present key with the same count
    return (-count, key is None, "" if key is None else str(key))


def order_groups(groups: Iterable[Tuple[Any, int]]) -> List[GroupCount]:
    """Sort raw ``(key, count)`` pairs deterministically and wrap them."""
    return [
        GroupCount(key=None if key is None else str(key), count=count)
        for key, count in sorted(groups, key=_group_sort_key)
    ]


class AggregationEngine:
    """Computes total count and per-industry / per-location group counts."""

    def __init__(self, repository: CompanyRepository):
        self.repository = repository

    async def overview(self) -> CompanyStats:
        total = await self.repository.count(MATCH_ALL)
        by_industry = order_groups(await self.repository.group_counts("industry"))
        by_location = order_groups(await self.repository.group_counts("location"))

        logger.info(
            f"Stats overview: total={total} industries={len(by_industry)} locations={len(by_location)}"
        )
        return CompanyStats(
            total_companies=total,
            by_industry=by_industry,
            by_location=by_location,
        )
