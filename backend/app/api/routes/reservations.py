"""
Self-service reservation API, keyed by token (/r/{token}).

GET edit/cancel are guarded previews (same NotFound / window-closed answers as the POSTs),
so a page can be refused before the user fills the form.
"""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.api.presenters import present_reservation
from app.services.reservation_service import (
    cancel_reservation,
    edit_reservation,
    get_modifiable_reservation,
    view_reservation,
)

router = APIRouter()


class ReservationEdit(BaseModel):
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    quantity: Any = None  # raw: parse_quantity owns the rules
    comment: str | None = None


@router.get("/{token}")
def show_reservation(token: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    return present_reservation(view_reservation(db, token))


@router.get("/{token}/edit")
def edit_form(token: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    return present_reservation(get_modifiable_reservation(db, token))


@router.post("/{token}/edit")
def submit_edit(token: str, body: ReservationEdit, db: Session = Depends(get_db)) -> dict[str, Any]:
    updated = edit_reservation(
        db,
        token,
        first_name=body.first_name,
        last_name=body.last_name,
        phone=body.phone,
        quantity=body.quantity,
        comment=body.comment,
    )
    return {"ok": True, "reservation": present_reservation(updated)}


@router.get("/{token}/cancel")
def cancel_form(token: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    return present_reservation(get_modifiable_reservation(db, token))


@router.post("/{token}/cancel")
def submit_cancel(token: str, db: Session = Depends(get_db)) -> dict[str, Any]:
    canceled = cancel_reservation(db, token)
    return {"ok": True, "canceled": present_reservation(canceled)}
