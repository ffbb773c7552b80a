"""
Error taxonomy for company operations.

- ``ValidationFailure``: required field missing or malformed on create/update.
- ``NotFound``: identifier does not resolve to an existing record.
- ``StoreFailure``: unexpected failure raised by the record store.

The application factory maps each class to its HTTP status; nothing in the
core inspects exception names or messages to tell them apart.
"""
from typing import List


class CompanyError(Exception):
    """Base class for errors surfaced by the companies core."""


class ValidationFailure(CompanyError):
    def __init__(self, errors: List[str]):
        self.errors = list(errors)
        super().__init__("; ".join(self.errors) or "Invalid company data")


class NotFound(CompanyError):
    def __init__(self, resource_id: str):
        self.resource_id = resource_id
        super().__init__(f"Company not found: {resource_id}")


class StoreFailure(CompanyError):
    """Wraps an exception raised by the underlying store client."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)
