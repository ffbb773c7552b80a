"""
FilterBuilder - translates loosely-typed query parameters into a predicate.

A predicate is an AND of clauses. Each clause knows how to evaluate itself
against a record (``matches``) and how to render itself as a MongoDB query
fragment (``to_mongo``), so the Motor repository and the in-memory fakes used
in tests apply exactly the same filter.

Recognized parameters:
    search                   any of name/industry/location contains the term
    name, industry, location case-insensitive substring on that field
    minEmployees/maxEmployees inclusive bounds on employeeCount
    minRevenue/maxRevenue    inclusive bounds on revenue
    founded                  exact year

Blank values are treated as absent. Values that do not parse as numbers drop
the corresponding bound instead of failing the request.
"""
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from .params import clean_param, parse_float, parse_int

SEARCH_FIELDS: Tuple[str, ...] = ("name", "industry", "location")

SEARCH_MODE_SUBSTRING = "substring"
SEARCH_MODE_TEXT = "text"


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass(frozen=True)
class Substring:
    """Case-insensitive substring match on a text field."""

    field: str
    term: str

    def matches(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        if value is None:
            return False
        return self.term.casefold() in str(value).casefold()

    def to_mongo(self) -> Dict[str, Any]:
        # Terms are matched literally, not as patterns
        return {self.field: {"$regex": re.escape(self.term), "$options": "i"}}


@dataclass(frozen=True)
class Range:
    """Inclusive numeric range; either bound may be open."""

    field: str
    minimum: Optional[float] = None
    maximum: Optional[float] = None

    def matches(self, record: Mapping[str, Any]) -> bool:
        value = record.get(self.field)
        if not _is_number(value):
            return False
        if self.minimum is not None and value < self.minimum:
            return False
        if self.maximum is not None and value > self.maximum:
            return False
        return True

    def to_mongo(self) -> Dict[str, Any]:
        bounds: Dict[str, Any] = {}
        if self.minimum is not None:
            bounds["$gte"] = self.minimum
        if self.maximum is not None:
            bounds["$lte"] = self.maximum
        return {self.field: bounds}


@dataclass(frozen=True)
class Equals:
    field: str
    value: Any

    def matches(self, record: Mapping[str, Any]) -> bool:
        return record.get(self.field) == self.value

    def to_mongo(self) -> Dict[str, Any]:
        return {self.field: self.value}


@dataclass(frozen=True)
class AnyOf:
    """OR-group: matches when at least one sub-clause matches."""

    clauses: Tuple["Clause", ...]

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(clause.matches(record) for clause in self.clauses)

    def to_mongo(self) -> Dict[str, Any]:
        return {"$or": [clause.to_mongo() for clause in self.clauses]}


@dataclass(frozen=True)
class TextSearch:
    """
    Full-text search over the indexed text fields.

    MongoDB evaluates this with the collection's text index (word stemming,
    no partial words). Local evaluation falls back to a substring test over
    the same fields.
    """

    term: str
    fields: Tuple[str, ...] = SEARCH_FIELDS

    def matches(self, record: Mapping[str, Any]) -> bool:
        return any(Substring(name, self.term).matches(record) for name in self.fields)

    def to_mongo(self) -> Dict[str, Any]:
        return {"$text": {"$search": self.term}}


Clause = Union[Substring, Range, Equals, AnyOf, TextSearch]


@dataclass(frozen=True)
class Predicate:
    """Conjunction of clauses. An empty predicate matches every record."""

    clauses: Tuple[Clause, ...] = ()

    def matches(self, record: Mapping[str, Any]) -> bool:
        return all(clause.matches(record) for clause in self.clauses)

    def to_mongo(self) -> Dict[str, Any]:
        if not self.clauses:
            return {}
        if len(self.clauses) == 1:
            return self.clauses[0].to_mongo()
        return {"$and": [clause.to_mongo() for clause in self.clauses]}


MATCH_ALL = Predicate()


def _range_clause(field_name: str, low: Optional[float], high: Optional[float]) -> Optional[Range]:
    if low is None and high is None:
        return None
    return Range(field_name, low, high)


def build_filter(params: Mapping[str, Any], search_mode: str = SEARCH_MODE_SUBSTRING) -> Predicate:
    """
    Build a predicate from raw query parameters.

    Never raises. Unrecognized keys are ignored.

    Args:
        params: Mapping of parameter name to (string) value, e.g. request query params.
        search_mode: ``"substring"`` for an OR of substring clauses over
            name/industry/location, ``"text"`` for a store text-index search.

    Returns:
        Predicate with one clause per supplied filter.
    """
    clauses = []

    search = clean_param(params, "search")
    if search:
        if search_mode == SEARCH_MODE_TEXT:
            clauses.append(TextSearch(search))
        else:
            clauses.append(AnyOf(tuple(Substring(name, search) for name in SEARCH_FIELDS)))

    for name in SEARCH_FIELDS:
        term = clean_param(params, name)
        if term:
            clauses.append(Substring(name, term))

    employees = _range_clause(
        "employeeCount",
        parse_int(clean_param(params, "minEmployees")),
        parse_int(clean_param(params, "maxEmployees")),
    )
    if employees is not None:
        clauses.append(employees)

    revenue = _range_clause(
        "revenue",
        parse_float(clean_param(params, "minRevenue")),
        parse_float(clean_param(params, "maxRevenue")),
    )
    if revenue is not None:
        clauses.append(revenue)

    founded = parse_int(clean_param(params, "founded"))
    if founded is not None:
        clauses.append(Equals("founded", founded))

    return Predicate(tuple(clauses))
