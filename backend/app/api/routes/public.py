"""
Public API: calendar of upcoming slots, slot lookup and booking.
"""
import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.api.presenters import present_reservation, present_slot
from app.core.validation import parse_date
from app.services import store
from app.services.booking_service import book_slot, get_bookable_slot

router = APIRouter()
logger = logging.getLogger(__name__)


# --- Calendar ---


@router.get("/")
def calendar(
    d: str | None = Query(None, description="Selected day, YYYY-MM-DD"),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """
    Days with upcoming slots (and how many), plus the slots of the selected day grouped by location.
    Falls back to the first available day when d is missing or has no slots.
    """
    slots = store.list_upcoming_slots(db)
    day_counts: dict[str, int] = {}
    for s in slots:
        key = s["date"].isoformat()
        day_counts[key] = day_counts.get(key, 0) + 1
    available_days = list(day_counts)
    selected = d if d in day_counts else (available_days[0] if available_days else None)

    grouped: dict[str, list[dict[str, Any]]] = {}
    if selected:
        for s in slots:
            if s["date"].isoformat() == selected:
                grouped.setdefault(s["location"], []).append(present_slot(s))
    return {
        "selected_date": selected,
        "available_days": available_days,
        "day_counts": day_counts,
        "slots_by_location": grouped,
    }


# --- Slots ---


@router.get("/slots")
def list_slots(
    date_str: str | None = Query(None, alias="date"),
    location: str | None = Query(None),
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Upcoming slots, optionally for one day and/or a location substring."""
    day: date | None = parse_date(date_str) if date_str else None
    slots = store.list_upcoming_slots(db, date_filter=day, location_filter=location)
    return {"slots": [present_slot(s) for s in slots], "count": len(slots)}


@router.get("/slots/{slot_id}")
def get_slot(slot_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    return present_slot(get_bookable_slot(db, slot_id))


# --- Booking ---


class BookingRequest(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    quantity: Any = None  # raw: parse_quantity owns the rules
    comment: str | None = None
    email: str | None = None


@router.post("/slots/{slot_id}/reservations", status_code=201)
def create_booking(slot_id: int, body: BookingRequest, db: Session = Depends(get_db)) -> dict[str, Any]:
    """
    Reserve a slot. Returns the token (the only key to edit/cancel later) and the self-service links.
    email is optional; when given, a confirmation is attempted and email_sent reports the outcome.
    """
    result = book_slot(
        db,
        slot_id,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        quantity=body.quantity,
        comment=body.comment,
        email=body.email,
    )
    return {
        "token": result.token,
        "reservation": present_reservation(result.reservation),
        "links": result.links,
        "email_sent": result.email_sent,
    }
