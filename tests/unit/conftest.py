"""
Unit tests in this directory exercise the core (filter building, query
execution, aggregation, validation) directly against the in-memory repository
from the root conftest. They never go through HTTP.
"""
