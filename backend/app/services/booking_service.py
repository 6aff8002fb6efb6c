"""
Booking: slot lookup -> field validation -> reservation insert -> optional email -> confirmation.

The reservation is the durable fact; the email is a side effect. A failed send is logged and reported
as email_sent=False, never as a booking failure.
"""
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import settings
from app.core.constants import RESERVATION_TOKEN_ATTEMPTS
from app.core.errors import NotFound
from app.core.validation import validate_reservation_fields
from app.services import store
from app.services.email_notify import reservation_links, send_confirmation_email

logger = logging.getLogger(__name__)

# (to_email, reservation dict, base_url) -> sent?
Notifier = Callable[[str, dict[str, Any], str], bool]


@dataclass
class BookingResult:
    token: str
    reservation: dict[str, Any]
    email_sent: bool = False
    links: dict[str, str] = field(default_factory=dict)


def new_token() -> str:
    return str(uuid.uuid4())


def get_bookable_slot(db: Session, slot_id: int, now: datetime | None = None) -> dict[str, Any]:
    """The slot if it exists and has not started yet; NotFound otherwise."""
    now = now or datetime.now(timezone.utc)
    slot = store.get_slot_by_id(db, slot_id)
    if slot is None or slot["start_at"] < now:
        raise NotFound("slot", slot_id)
    return slot


def _insert_with_fresh_token(db: Session, slot_id: int, fields, token_factory: Callable[[], str]) -> tuple[int, str]:
    for attempt in range(1, RESERVATION_TOKEN_ATTEMPTS + 1):
        token = token_factory()
        try:
            return store.create_reservation(db, slot_id, fields, token), token
        except IntegrityError:
            # Only a token collision is worth retrying; anything else (slot vanished, ...) propagates
            if store.get_reservation_by_token(db, token) is None or attempt == RESERVATION_TOKEN_ATTEMPTS:
                raise
            logger.warning("Reservation token collision (attempt %s/%s); retrying", attempt, RESERVATION_TOKEN_ATTEMPTS)
    raise RuntimeError("unreachable")


def book_slot(
    db: Session,
    slot_id: int,
    first_name: Any,
    last_name: Any,
    phone: Any,
    quantity: Any,
    comment: Any = None,
    email: str | None = None,
    *,
    base_url: str | None = None,
    notifier: Notifier = send_confirmation_email,
    token_factory: Callable[[], str] = new_token,
    now: datetime | None = None,
) -> BookingResult:
    """
    Reserve a slot. Raises NotFound (unknown or already started slot) or ValidationFailed.
    If email is given, tries to send a confirmation with edit/cancel links.
    """
    slot = get_bookable_slot(db, slot_id, now)
    fields = validate_reservation_fields(first_name, last_name, phone, quantity, comment)
    reservation_id, token = _insert_with_fresh_token(db, slot_id, fields, token_factory)
    base_url = base_url or settings.base_url

    reservation = {
        "id": reservation_id,
        "slot_id": slot_id,
        "token": token,
        "first_name": fields.first_name,
        "last_name": fields.last_name,
        "phone": fields.phone,
        "quantity": fields.quantity,
        "comment": fields.comment,
        "start_at": slot["start_at"],
        "location": slot["location"],
        "date": slot["date"],
    }
    logger.info("Reservation %s on slot %s (%s, qty=%s)", reservation_id, slot_id, slot["location"], fields.quantity)

    email_sent = False
    email = (email or "").strip()
    if email:
        try:
            email_sent = bool(notifier(email, reservation, base_url))
        except Exception:
            logger.exception("Confirmation email for reservation %s failed", reservation_id)
            email_sent = False
    return BookingResult(
        token=token,
        reservation=reservation,
        email_sent=email_sent,
        links=reservation_links(token, base_url),
    )
