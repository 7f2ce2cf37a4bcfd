"""Lightweight validation helpers."""

from collections.abc import Iterable, Mapping
from typing import Any, List

from models.ticket import TicketStatus
from utils.error_handling import ValidationError


def ensure_present(value: Any, field: str, code: str = "INVALID_INPUT") -> None:
    """Raise ValidationError if value is falsy."""
    if value in (None, "", []) or (isinstance(value, str) and not value.strip()):
        raise ValidationError(f"{field} is required", code=code)


def ensure_id_list(values: Any, field: str = "ticket_ids") -> List[str]:
    """Require a non-empty collection of id strings and collapse duplicates, keeping first-seen order."""
    if isinstance(values, (str, bytes, Mapping)) or not isinstance(values, Iterable):
        raise ValidationError(f"{field} must be a non-empty list", code="INVALID_INPUT")
    ids = list(values)
    if not ids:
        raise ValidationError(f"{field} must be a non-empty list", code="INVALID_INPUT")
    for value in ids:
        if not isinstance(value, str):
            raise ValidationError(f"{field} must contain only string ids", code="INVALID_INPUT")
        ensure_present(value, field)
    return list(dict.fromkeys(ids))


def parse_status(value: Any) -> TicketStatus:
    """Coerce a status token, rejecting anything outside the lifecycle."""
    if isinstance(value, TicketStatus):
        return value
    try:
        return TicketStatus(str(value).upper())
    except ValueError:
        allowed = ", ".join(status.value for status in TicketStatus)
        raise ValidationError(
            f"Invalid status '{value}'. Must be one of: {allowed}", code="INVALID_STATUS"
        ) from None
