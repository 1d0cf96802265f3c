"""Argument checks shared by the services."""

from datetime import date
from uuid import UUID

from bank_reconciliation.exceptions import InvalidRangeError, ValidationError


def coerce_uuid(value: UUID | str | None, field_name: str) -> UUID:
    """Turn a required id argument into a UUID or raise ValidationError."""
    if value is None or value == "":
        raise ValidationError(f"{field_name} is required", context={"field": field_name})
    if isinstance(value, UUID):
        return value
    try:
        return UUID(str(value))
    except ValueError as e:
        raise ValidationError(
            f"{field_name} is not a valid id: {value}",
            context={"field": field_name},
        ) from e


def check_range(start: date, end: date) -> None:
    if start > end:
        raise InvalidRangeError(start, end)
