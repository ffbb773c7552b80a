"""
Validation of company payloads for create and update.

The validator returns a ``ValidationResult`` instead of raising, so callers
branch on ``result.is_valid`` and never need to inspect exception types coming
out of pydantic.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from pydantic import ValidationError

from ..models.companies import CompanyCreate, CompanyUpdate

REQUIRED_FIELDS = ("name", "industry", "location", "employeeCount", "founded")

# Wire (camelCase) name -> attribute name; both spellings are accepted on input
_FIELD_NAMES = {
    info.alias: name for name, info in CompanyCreate.model_fields.items() if info.alias
}


@dataclass
class ValidationResult:
    errors: List[str] = field(default_factory=list)
    company: Optional[CompanyCreate] = None
    changes: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def _format_errors(exc: ValidationError) -> List[str]:
    messages = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ())) or "body"
        messages.append(f"{location}: {error.get('msg', 'invalid value')}")
    return messages


def _field_value(data: Mapping[str, Any], alias: str) -> Any:
    value = data.get(alias)
    if value is None:
        value = data.get(_FIELD_NAMES.get(alias, alias))
    return value


def _client_fields(payload: Mapping[str, Any]) -> Dict[str, Any]:
    return {
        key: value
        for key, value in payload.items()
        if key not in CompanyCreate.IMMUTABLE_FIELDS
    }


class CompanyValidator:
    """Checks required fields and field types for company documents."""

    def validate_create(self, payload: Any) -> ValidationResult:
        """
        Validate a full company payload.

        Required: name, industry, location, employeeCount, founded. Missing
        or null required fields are reported together, one message per field.
        """
        if not isinstance(payload, Mapping):
            return ValidationResult(errors=["body: expected a JSON object"])

        data = _client_fields(payload)
        missing = [name for name in REQUIRED_FIELDS if _field_value(data, name) is None]
        if missing:
            return ValidationResult(
                errors=[
                    "Please provide all required fields: " + ", ".join(REQUIRED_FIELDS),
                    *(f"{name}: Field required" for name in missing),
                ]
            )

        try:
            company = CompanyCreate.model_validate(data)
        except ValidationError as e:
            return ValidationResult(errors=_format_errors(e))
        return ValidationResult(company=company)

    def validate_update(self, existing: Mapping[str, Any], payload: Any) -> ValidationResult:
        """
        Validate a partial update against the stored document.

        The supplied fields are merged over ``existing`` and the merged
        document must pass the create rules, so an update can never unset a
        required field. On success ``changes`` holds only the supplied fields,
        normalized to their stored representation.
        """
        if not isinstance(payload, Mapping):
            return ValidationResult(errors=["body: expected a JSON object"])

        try:
            update = CompanyUpdate.model_validate(_client_fields(payload))
        except ValidationError as e:
            return ValidationResult(errors=_format_errors(e))

        changes = update.model_dump(by_alias=True, exclude_unset=True)
        merged = {**_client_fields(existing), **changes}
        result = self.validate_create(merged)
        if not result.is_valid:
            return result
        result.changes = changes
        return result
