"""
Self-service edit/cancel of a reservation, keyed by its token.

Guard (evaluated on every call, never cached): the token must resolve (NotFound), and now must be
strictly before the slot start (MutationWindowClosed). The window closes exactly at slot start.
"""
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.orm import Session

from app.core.errors import MutationWindowClosed, NotFound
from app.core.validation import validate_reservation_fields
from app.services import store

logger = logging.getLogger(__name__)


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(timezone.utc)


def can_modify(reservation: dict[str, Any], now: datetime | None = None) -> bool:
    return _now(now) < reservation["start_at"]


def view_reservation(db: Session, token: str, now: datetime | None = None) -> dict[str, Any]:
    """Reservation details plus can_modify. Read-only, so no window check."""
    reservation = store.get_reservation_by_token(db, token)
    if reservation is None:
        raise NotFound("reservation", token)
    return {**reservation, "can_modify": can_modify(reservation, now)}


def get_modifiable_reservation(db: Session, token: str, now: datetime | None = None) -> dict[str, Any]:
    reservation = store.get_reservation_by_token(db, token)
    if reservation is None:
        raise NotFound("reservation", token)
    if not can_modify(reservation, now):
        raise MutationWindowClosed(token)
    return reservation


def edit_reservation(
    db: Session,
    token: str,
    first_name: Any,
    last_name: Any,
    phone: Any,
    quantity: Any,
    comment: Any = None,
    *,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Guard, re-validate with booking rules, update. Returns the updated reservation."""
    reservation = get_modifiable_reservation(db, token, now)
    fields = validate_reservation_fields(first_name, last_name, phone, quantity, comment)
    store.update_reservation(db, token, fields)
    logger.info("Reservation %s edited (qty=%s)", reservation["id"], fields.quantity)
    return {
        **reservation,
        "first_name": fields.first_name,
        "last_name": fields.last_name,
        "phone": fields.phone,
        "quantity": fields.quantity,
        "comment": fields.comment,
    }


def cancel_reservation(db: Session, token: str, *, now: datetime | None = None) -> dict[str, Any]:
    """Guard, then delete. Returns the reservation as it was."""
    reservation = get_modifiable_reservation(db, token, now)
    store.delete_reservation_by_token(db, token)
    logger.info("Reservation %s canceled by holder", reservation["id"])
    return reservation
