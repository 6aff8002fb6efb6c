"""
Input validation for booking and presence forms.

Pure functions: raw field values in, frozen dataclass out, or ValidationFailed with the violated rule.
Routes pass request fields through unparsed so the API and the tests see the same reasons.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, time
from typing import Any

from app.core.constants import LOCATION_MAX_LENGTH, MAX_QUANTITY, NAME_MAX_LENGTH, PHONE_MAX_LENGTH
from app.core.errors import ValidationFailed, ValidationReason


@dataclass(frozen=True)
class ReservationFields:
    first_name: str
    last_name: str
    phone: str
    quantity: int
    comment: str | None = None


@dataclass(frozen=True)
class PresenceFields:
    location: str
    date: date
    start_time: time
    end_time: time


def _required_text(value: Any, field: str, max_length: int | None = None) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise ValidationFailed(ValidationReason.MISSING_FIELD, field)
    if max_length is not None and len(text) > max_length:
        raise ValidationFailed(ValidationReason.TOO_LONG, field)
    return text


def parse_quantity(value: Any) -> int:
    """Integer in 1..MAX_QUANTITY. Booleans and fractional numbers are refused."""
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationFailed(ValidationReason.MISSING_FIELD, "quantity")
    if isinstance(value, bool):
        raise ValidationFailed(ValidationReason.INVALID_QUANTITY, "quantity")
    try:
        qty = int(value.strip()) if isinstance(value, str) else int(value)
    except (TypeError, ValueError, OverflowError):
        raise ValidationFailed(ValidationReason.INVALID_QUANTITY, "quantity")
    if isinstance(value, float) and value != qty:
        raise ValidationFailed(ValidationReason.INVALID_QUANTITY, "quantity")
    if not 1 <= qty <= MAX_QUANTITY:
        raise ValidationFailed(ValidationReason.INVALID_QUANTITY, "quantity")
    return qty


def validate_reservation_fields(
    first_name: Any,
    last_name: Any,
    phone: Any,
    quantity: Any,
    comment: Any = None,
) -> ReservationFields:
    """Same rules for initial booking and self-service edit."""
    comment_text = str(comment).strip() if comment is not None else ""
    return ReservationFields(
        first_name=_required_text(first_name, "first_name", NAME_MAX_LENGTH),
        last_name=_required_text(last_name, "last_name", NAME_MAX_LENGTH),
        phone=_required_text(phone, "phone", PHONE_MAX_LENGTH),
        quantity=parse_quantity(quantity),
        comment=comment_text or None,
    )


def parse_date(value: Any, field: str = "date") -> date:
    if isinstance(value, date):
        return value
    text = _required_text(value, field)
    try:
        return date.fromisoformat(text)
    except ValueError:
        raise ValidationFailed(ValidationReason.INVALID_DATE, field)


def parse_time(value: Any, field: str) -> time:
    """Accepts HH:MM or HH:MM:SS, as wall-clock time in the event timezone (no UTC offset)."""
    if isinstance(value, time):
        parsed = value
    else:
        text = _required_text(value, field)
        try:
            parsed = time.fromisoformat(text)
        except ValueError:
            raise ValidationFailed(ValidationReason.INVALID_TIME, field)
    if parsed.tzinfo is not None:
        raise ValidationFailed(ValidationReason.INVALID_TIME, field)
    return parsed


def validate_presence_fields(location: Any, date_value: Any, start_time: Any, end_time: Any) -> PresenceFields:
    # All required fields are checked before any parsing so "missing" wins over "malformed".
    loc = _required_text(location, "location", LOCATION_MAX_LENGTH)
    for value, field in ((date_value, "date"), (start_time, "start_time"), (end_time, "end_time")):
        if not isinstance(value, (date, time)):
            _required_text(value, field)
    day = parse_date(date_value)
    start = parse_time(start_time, "start_time")
    end = parse_time(end_time, "end_time")
    if not start < end:
        raise ValidationFailed(ValidationReason.END_NOT_AFTER_START, "end_time")
    return PresenceFields(location=loc, date=day, start_time=start, end_time=end)
