"""
Presence administration: create, edit (regenerates slots), delete (cascades).

Edit and delete both destroy reservations when the presence has any, so both are two-phase: without
confirm_impact they raise ImpactConfirmationRequired carrying the live reservation count, and the
caller resubmits with confirm_impact=True.
"""
import logging
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import ImpactConfirmationRequired, NotFound
from app.core.validation import validate_presence_fields
from app.services import store

logger = logging.getLogger(__name__)


def _require_presence(db: Session, presence_id: int) -> dict[str, Any]:
    presence = store.get_presence_by_id(db, presence_id)
    if presence is None:
        raise NotFound("presence", presence_id)
    return presence


def _check_impact(db: Session, presence_id: int, confirm_impact: bool) -> int:
    count = store.count_reservations_for_presence(db, presence_id)
    if count > 0 and not confirm_impact:
        raise ImpactConfirmationRequired(presence_id, count)
    return count


def create_presence(db: Session, location: Any, date_value: Any, start_time: Any, end_time: Any) -> dict[str, Any]:
    """Validate and create with slot generation. Returns the new presence."""
    fields = validate_presence_fields(location, date_value, start_time, end_time)
    presence_id = store.create_presence(db, fields.location, fields.date, fields.start_time, fields.end_time)
    return _require_presence(db, presence_id)


def get_presence_with_impact(db: Session, presence_id: int) -> dict[str, Any]:
    """Presence plus reservations_count, for edit and delete-confirmation screens."""
    presence = _require_presence(db, presence_id)
    return {**presence, "reservations_count": store.count_reservations_for_presence(db, presence_id)}


def edit_presence(
    db: Session,
    presence_id: int,
    location: Any,
    date_value: Any,
    start_time: Any,
    end_time: Any,
    confirm_impact: bool = False,
) -> dict[str, Any]:
    """
    Validate, gate on existing reservations, then update + regenerate all slots.
    Returns the updated presence with regeneration counts.
    """
    _require_presence(db, presence_id)
    fields = validate_presence_fields(location, date_value, start_time, end_time)
    affected = _check_impact(db, presence_id, confirm_impact)
    counts = store.update_presence_with_regeneration(db, presence_id, fields)
    if counts is None:
        raise NotFound("presence", presence_id)
    if affected:
        logger.warning("Presence %s edit confirmed: %s reservation(s) discarded", presence_id, affected)
    return {**_require_presence(db, presence_id), **counts}


def delete_presence(db: Session, presence_id: int, confirm_impact: bool = False) -> dict[str, Any]:
    """Gate like edit, then cascade delete. Returns the deleted presence and how many reservations went with it."""
    presence = _require_presence(db, presence_id)
    affected = _check_impact(db, presence_id, confirm_impact)
    if not store.delete_presence(db, presence_id):
        raise NotFound("presence", presence_id)
    if affected:
        logger.warning("Presence %s deleted with %s reservation(s)", presence_id, affected)
    return {**presence, "reservations_deleted": affected}
