"""
Presence / slot / reservation persistence.

Plain functions over a Session, returning dicts (or ids / counts) so routes and workflows never hold ORM rows
across requests. No business validation here: workflows check start < end, required fields and the
mutation window before calling in.

Invariants kept here:
- A presence's slots are exactly the SlotRange expansion of its window (insert-or-ignore per (presence_id, start_at)).
- Regeneration (update + delete slots + reinsert) commits once or not at all.
- Deleting a presence/slot removes everything below it.
"""
import logging
from datetime import date, datetime, time, timezone, tzinfo
from typing import Any

from sqlalchemy import func, insert, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.orm import Session

from app.core.constants import RESERVATIONS_LIST_LIMIT
from app.core.slots import generate_slot_starts
from app.core.validation import PresenceFields, ReservationFields
from app.models.presence import Presence
from app.models.reservation import Reservation
from app.models.slot import Slot

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _like_contains(value: str) -> str:
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _presence_to_dict(p: Presence) -> dict[str, Any]:
    return {
        "id": p.id,
        "location": p.location,
        "date": p.date,
        "start_time": p.start_time,
        "end_time": p.end_time,
    }


# --- Slots ---


def _insert_slots(
    db: Session,
    presence_id: int,
    day: date,
    start_time: time,
    end_time: time,
    tz: tzinfo | None = None,
) -> int:
    """Insert generated slots, skipping any (presence_id, start_at) already present. Returns rows attempted."""
    rows = [{"presence_id": presence_id, "start_at": t} for t in generate_slot_starts(day, start_time, end_time, tz)]
    if not rows:
        return 0
    dialect = db.get_bind().dialect.name
    if dialect == "postgresql":
        stmt = pg_insert(Slot).values(rows).on_conflict_do_nothing(index_elements=["presence_id", "start_at"])
    elif dialect == "sqlite":
        stmt = sqlite_insert(Slot).values(rows).on_conflict_do_nothing(index_elements=["presence_id", "start_at"])
    else:
        existing = {s for (s,) in db.query(Slot.start_at).filter(Slot.presence_id == presence_id).all()}
        rows = [r for r in rows if r["start_at"] not in existing]
        if rows:
            db.execute(insert(Slot), rows)
        return len(rows)
    db.execute(stmt)
    return len(rows)


def _delete_slots_of_presence(db: Session, presence_id: int) -> tuple[int, int]:
    """Delete a presence's slots and their reservations. Returns (slots_deleted, reservations_deleted)."""
    slot_ids = select(Slot.id).where(Slot.presence_id == presence_id)
    reservations_deleted = (
        db.query(Reservation).filter(Reservation.slot_id.in_(slot_ids)).delete(synchronize_session=False)
    )
    slots_deleted = db.query(Slot).filter(Slot.presence_id == presence_id).delete(synchronize_session=False)
    return slots_deleted, reservations_deleted


def list_upcoming_slots(
    db: Session,
    date_filter: date | None = None,
    location_filter: str | None = None,
    now: datetime | None = None,
) -> list[dict[str, Any]]:
    """
    Slots starting at or after now, ordered by (presence date, location, start instant).
    date_filter: only that presence date. location_filter: case-insensitive substring.
    """
    now = now or _utcnow()
    q = (
        db.query(Slot.id, Slot.presence_id, Slot.start_at, Presence.location, Presence.date)
        .join(Presence, Presence.id == Slot.presence_id)
        .filter(Slot.start_at >= now)
    )
    if date_filter:
        q = q.filter(Presence.date == date_filter)
    location_filter = (location_filter or "").strip()
    if location_filter:
        q = q.filter(Presence.location.ilike(_like_contains(location_filter), escape="\\"))
    rows = q.order_by(Presence.date.asc(), Presence.location.asc(), Slot.start_at.asc()).all()
    return [
        {
            "slot_id": r.id,
            "presence_id": r.presence_id,
            "start_at": r.start_at,
            "location": r.location,
            "date": r.date,
        }
        for r in rows
    ]


def get_slot_by_id(db: Session, slot_id: int) -> dict[str, Any] | None:
    row = (
        db.query(Slot.id, Slot.presence_id, Slot.start_at, Presence.location, Presence.date)
        .join(Presence, Presence.id == Slot.presence_id)
        .filter(Slot.id == slot_id)
        .first()
    )
    if not row:
        return None
    return {
        "slot_id": row.id,
        "presence_id": row.presence_id,
        "start_at": row.start_at,
        "location": row.location,
        "date": row.date,
    }


# --- Reservations ---


def _reservation_query(db: Session):
    return db.query(
        Reservation.id,
        Reservation.slot_id,
        Reservation.first_name,
        Reservation.last_name,
        Reservation.phone,
        Reservation.quantity,
        Reservation.comment,
        Reservation.token,
        Reservation.created_at,
        Slot.start_at,
        Slot.presence_id,
        Presence.location,
        Presence.date,
    ).join(Slot, Slot.id == Reservation.slot_id).join(Presence, Presence.id == Slot.presence_id)


def _reservation_row_to_dict(r) -> dict[str, Any]:
    return {
        "id": r.id,
        "slot_id": r.slot_id,
        "presence_id": r.presence_id,
        "first_name": r.first_name,
        "last_name": r.last_name,
        "phone": r.phone,
        "quantity": r.quantity,
        "comment": r.comment,
        "token": r.token,
        "created_at": r.created_at,
        "start_at": r.start_at,
        "location": r.location,
        "date": r.date,
    }


def create_reservation(db: Session, slot_id: int, fields: ReservationFields, token: str) -> int:
    """Plain insert. Caller has already checked the slot exists. Raises IntegrityError on token collision."""
    row = Reservation(
        slot_id=slot_id,
        first_name=fields.first_name,
        last_name=fields.last_name,
        phone=fields.phone,
        quantity=fields.quantity,
        comment=fields.comment,
        token=token,
        created_at=_utcnow(),
    )
    db.add(row)
    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return row.id


def get_reservation_by_token(db: Session, token: str) -> dict[str, Any] | None:
    row = _reservation_query(db).filter(Reservation.token == token).first()
    return _reservation_row_to_dict(row) if row else None


def update_reservation(db: Session, token: str, fields: ReservationFields) -> int:
    """Overwrite contact fields and quantity. Returns rows updated (0 if token unknown)."""
    try:
        updated = (
            db.query(Reservation)
            .filter(Reservation.token == token)
            .update(
                {
                    Reservation.first_name: fields.first_name,
                    Reservation.last_name: fields.last_name,
                    Reservation.phone: fields.phone,
                    Reservation.quantity: fields.quantity,
                    Reservation.comment: fields.comment,
                },
                synchronize_session=False,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    return updated


def delete_reservation_by_token(db: Session, token: str) -> int:
    try:
        deleted = db.query(Reservation).filter(Reservation.token == token).delete(synchronize_session=False)
        db.commit()
    except Exception:
        db.rollback()
        raise
    return deleted


def list_reservations(
    db: Session,
    date_filter: date | None = None,
    location_filter: str | None = None,
    limit: int = RESERVATIONS_LIST_LIMIT,
) -> list[dict[str, Any]]:
    """Reservations with slot/presence info, same filters and order as list_upcoming_slots (past included)."""
    q = _reservation_query(db)
    if date_filter:
        q = q.filter(Presence.date == date_filter)
    location_filter = (location_filter or "").strip()
    if location_filter:
        q = q.filter(Presence.location.ilike(_like_contains(location_filter), escape="\\"))
    rows = (
        q.order_by(Presence.date.asc(), Presence.location.asc(), Slot.start_at.asc(), Reservation.id.asc())
        .limit(limit)
        .all()
    )
    return [_reservation_row_to_dict(r) for r in rows]


def count_reservations_for_presence(db: Session, presence_id: int) -> int:
    count = (
        db.query(func.count(Reservation.id))
        .join(Slot, Slot.id == Reservation.slot_id)
        .filter(Slot.presence_id == presence_id)
        .scalar()
    )
    return count or 0


# --- Presences ---


def create_presence(
    db: Session,
    location: str,
    day: date,
    start_time: time,
    end_time: time,
    tz: tzinfo | None = None,
) -> int:
    """Insert the presence and its generated slots in one commit. Returns the presence id."""
    presence = Presence(location=location, date=day, start_time=start_time, end_time=end_time)
    try:
        db.add(presence)
        db.flush()
        presence_id = presence.id
        slot_count = _insert_slots(db, presence_id, day, start_time, end_time, tz)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Presence %s created (%s %s %s-%s): %s slots", presence_id, location, day, start_time, end_time, slot_count)
    return presence_id


def list_presences(db: Session) -> list[dict[str, Any]]:
    rows = db.query(Presence).order_by(Presence.date.asc(), Presence.start_time.asc()).all()
    return [_presence_to_dict(p) for p in rows]


def get_presence_by_id(db: Session, presence_id: int) -> dict[str, Any] | None:
    p = db.get(Presence, presence_id)
    return _presence_to_dict(p) if p else None


def update_presence_with_regeneration(
    db: Session,
    presence_id: int,
    fields: PresenceFields,
    tz: tzinfo | None = None,
) -> dict[str, int] | None:
    """
    Update the presence, delete all its slots (and their reservations), regenerate slots for the new window.
    One transaction: on any failure nothing is applied. Returns counts, or None if the presence does not exist.
    """
    try:
        presence = db.get(Presence, presence_id)
        if presence is None:
            return None
        presence.location = fields.location
        presence.date = fields.date
        presence.start_time = fields.start_time
        presence.end_time = fields.end_time
        slots_deleted, reservations_deleted = _delete_slots_of_presence(db, presence_id)
        # old (presence_id, start_at) rows must be gone before insert-or-ignore runs
        db.flush()
        db.expire(presence, ["slots"])
        slots_created = _insert_slots(db, presence_id, fields.date, fields.start_time, fields.end_time, tz)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info(
        "Presence %s regenerated: %s slots removed, %s reservations dropped, %s slots created",
        presence_id,
        slots_deleted,
        reservations_deleted,
        slots_created,
    )
    return {
        "slots_deleted": slots_deleted,
        "reservations_deleted": reservations_deleted,
        "slots_created": slots_created,
    }


def delete_presence(db: Session, presence_id: int) -> bool:
    """Delete the presence; its slots and their reservations go with it. False if it did not exist."""
    presence = db.get(Presence, presence_id)
    if presence is None:
        return False
    try:
        db.delete(presence)
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Presence %s deleted", presence_id)
    return True


def list_presences_with_counts(db: Session) -> list[dict[str, Any]]:
    """Each presence with its live reservation count and slot count (admin overview)."""
    reservations_count = (
        select(func.count(Reservation.id))
        .select_from(Reservation)
        .join(Slot, Slot.id == Reservation.slot_id)
        .where(Slot.presence_id == Presence.id)
        .correlate(Presence)
        .scalar_subquery()
    )
    slots_count = (
        select(func.count(Slot.id))
        .where(Slot.presence_id == Presence.id)
        .correlate(Presence)
        .scalar_subquery()
    )
    rows = (
        db.query(Presence, reservations_count.label("reservations_count"), slots_count.label("slots_count"))
        .order_by(Presence.date.asc(), Presence.start_time.asc())
        .all()
    )
    out = []
    for presence, n_reservations, n_slots in rows:
        item = _presence_to_dict(presence)
        item["reservations_count"] = n_reservations or 0
        item["slots_count"] = n_slots or 0
        out.append(item)
    return out
