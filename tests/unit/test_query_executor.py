"""
Unit tests for QueryExecutor, SortSpec and PageRequest.
"""
import math
from unittest.mock import AsyncMock

import pytest

from companies_api.services.filter_builder import MATCH_ALL, build_filter
from companies_api.services.params import parse_float, parse_int
from companies_api.services.query_executor import (
    DEFAULT_SORT,
    PageRequest,
    PageResult,
    QueryExecutor,
    SortSpec,
)


class TestParams:
    @pytest.mark.parametrize("raw, expected", [
        ("3", 3), (" 42 ", 42), ("-1", -1), ("2.7", 2), ("1e3", 1000),
        ("", None), ("abc", None), ("nan", None), (None, None), (True, None),
        (str(2**63 - 1), 2**63 - 1), (str(2**63), None), (str(-(2**63) - 1), None),
        ("9" * 25, None), ("1e300", None),
    ])
    def test_parse_int(self, raw, expected):
        assert parse_int(raw) == expected

    def test_parse_float(self):
        assert parse_float("12.5") == 12.5
        assert parse_float("-inf") is None
        assert parse_float("12abc") is None


class TestPageRequest:
    def test_defaults(self):
        page = PageRequest.from_params({})
        assert (page.page, page.limit, page.skip) == (1, 10, 0)

    def test_parses_strings(self):
        page = PageRequest.from_params({"page": "3", "limit": "4"})
        assert (page.page, page.limit, page.skip) == (3, 4, 8)

    @pytest.mark.parametrize("page, limit", [("abc", "xyz"), ("", ""), ("NaN", "inf")])
    def test_non_numeric_falls_back_to_defaults(self, page, limit):
        request = PageRequest.from_params({"page": page, "limit": limit})
        assert (request.page, request.limit) == (1, 10)

    @pytest.mark.parametrize("page, limit", [("0", "0"), ("-5", "-2")])
    def test_minimums(self, page, limit):
        request = PageRequest.from_params({"page": page, "limit": limit})
        assert (request.page, request.limit) == (1, 1)

    @pytest.mark.parametrize("limit", ["1e300", "9" * 25])
    def test_out_of_range_limit_uses_default(self, limit):
        request = PageRequest.from_params({"page": "2", "limit": limit})
        assert (request.page, request.limit) == (2, 10)


class TestSortSpec:
    def test_default_is_newest_first(self):
        assert SortSpec.parse(None) == DEFAULT_SORT
        assert DEFAULT_SORT.keys() == [("createdAt", True), ("_id", True)]

    def test_ascending_and_descending(self):
        assert SortSpec.parse("name") == SortSpec("name", False)
        assert SortSpec.parse("-employeeCount") == SortSpec("employeeCount", True)

    def test_unknown_field_falls_back(self):
        assert SortSpec.parse("-password") == DEFAULT_SORT
        assert SortSpec.parse("$where") == DEFAULT_SORT


class TestPageResult:
    def test_pages(self):
        assert PageResult(total=5, limit=2).pages == 3
        assert PageResult(total=4, limit=2).pages == 2
        assert PageResult(total=0, limit=10).pages == 0


class TestQueryExecutor:
    @pytest.mark.asyncio
    async def test_default_sort_returns_newest_first(self, seeded_repository):
        result = await QueryExecutor(seeded_repository).execute(MATCH_ALL, page=PageRequest(1, 2))
        assert [c["name"] for c in result.items] == ["RetailMax", "FinanceFlow"]
        assert result.total == 5
        assert result.pages == 3

    @pytest.mark.asyncio
    async def test_total_is_independent_of_window(self, seeded_repository):
        executor = QueryExecutor(seeded_repository)
        predicate = build_filter({"minEmployees": "600"})
        totals = set()
        for page in (1, 2, 3, 9):
            result = await executor.execute(predicate, page=PageRequest(page, 1))
            totals.add(result.total)
        assert totals == {3}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("limit", [1, 2, 3, 5, 7])
    async def test_pages_partition_the_sorted_result(self, seeded_repository, limit):
        executor = QueryExecutor(seeded_repository)
        full = await executor.execute(MATCH_ALL, page=PageRequest(1, 100))
        expected = [c["_id"] for c in full.items]

        collected = []
        for page in range(1, math.ceil(full.total / limit) + 1):
            result = await executor.execute(MATCH_ALL, page=PageRequest(page, limit))
            assert len(result.items) <= limit
            collected.extend(c["_id"] for c in result.items)

        assert collected == expected
        assert len(set(collected)) == len(collected) == 5

    @pytest.mark.asyncio
    async def test_partition_holds_with_equal_sort_keys(self, repository):
        for index in range(7):
            await repository.insert({"name": f"Same{index}", "industry": "X", "location": "Y",
                                     "employeeCount": 10, "founded": 2000})
        executor = QueryExecutor(repository)
        sort = SortSpec.parse("employeeCount")
        collected = []
        for page in range(1, 4):
            result = await executor.execute(MATCH_ALL, sort=sort, page=PageRequest(page, 3))
            collected.extend(c["name"] for c in result.items)
        assert collected == [f"Same{index}" for index in range(7)]

    @pytest.mark.asyncio
    async def test_skip_past_total_is_empty(self, seeded_repository):
        result = await QueryExecutor(seeded_repository).execute(MATCH_ALL, page=PageRequest(4, 2))
        assert result.items == []
        assert result.total == 5

    @pytest.mark.asyncio
    async def test_skip_past_total_does_not_scan(self):
        repo = AsyncMock()
        repo.count.return_value = 2
        result = await QueryExecutor(repo).execute(MATCH_ALL, page=PageRequest(2, 5))
        assert result.items == []
        repo.find.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_passes_sort_and_window_to_repository(self):
        repo = AsyncMock()
        repo.count.return_value = 50
        repo.find.return_value = [{"name": "A"}]
        predicate = build_filter({"founded": "2010"})

        await QueryExecutor(repo).execute(predicate, sort=SortSpec("name", False), page=PageRequest(3, 10))

        repo.count.assert_awaited_once_with(predicate)
        repo.find.assert_awaited_once_with(
            predicate, sort=[("name", False), ("_id", False)], skip=20, limit=10
        )

    @pytest.mark.asyncio
    async def test_sort_by_revenue_ascending(self, seeded_repository):
        result = await QueryExecutor(seeded_repository).execute(
            MATCH_ALL, sort=SortSpec.parse("revenue"), page=PageRequest(1, 5)
        )
        assert [c["revenue"] for c in result.items] == [50, 100, 180, 250, 300]

    @pytest.mark.asyncio
    async def test_filtered_results_satisfy_filter(self, seeded_repository):
        predicate = build_filter({"search": "tech"})
        result = await QueryExecutor(seeded_repository).execute(predicate, page=PageRequest(1, 10))
        assert {c["name"] for c in result.items} == {"TechCorp", "EduTech"}
        assert all(predicate.matches(c) for c in result.items)
