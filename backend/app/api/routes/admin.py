"""
Admin API: login/logout, dashboard, presence management, reservation list and deletion.

Everything except login/logout requires the admin cookie; without it the response is a redirect
to /admin/login. Read-heavy pages use bounded reads and degrade to a status page.
"""
import logging
from datetime import date
from typing import Any

from fastapi import APIRouter, Cookie, Depends, Query, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.api.deps import get_database, get_db, require_admin
from app.api.presenters import present_reservation
from app.config import settings
from app.core.constants import ADMIN_COOKIE_NAME, ADMIN_LOGIN_PATH
from app.core.security import admin_session_seconds, check_admin_password, issue_admin_token, verify_admin_token
from app.core.validation import parse_date
from app.db.session import Database
from app.services import admin_service, presence_service, store

logger = logging.getLogger(__name__)

auth_router = APIRouter()
router = APIRouter(dependencies=[Depends(require_admin)])


# --- Login / logout ---


class AdminLogin(BaseModel):
    password: str | None = None


@auth_router.get("/login")
def login_status(admin_token: str | None = Cookie(None, alias=ADMIN_COOKIE_NAME)) -> dict[str, Any]:
    """Where unauthenticated admin requests land. POST the password here to log in."""
    return {"authenticated": verify_admin_token(admin_token), "method": "POST", "path": ADMIN_LOGIN_PATH}


@auth_router.post("/login")
def login(body: AdminLogin, response: Response):
    if not check_admin_password(body.password):
        logger.warning("Admin login failed")
        return JSONResponse(status_code=401, content={"ok": False, "error": "invalid_password"})
    response.set_cookie(
        ADMIN_COOKIE_NAME,
        issue_admin_token(),
        max_age=admin_session_seconds(),
        httponly=True,
        samesite="lax",
        secure=settings.cookie_secure,
        path="/",
    )
    logger.info("Admin logged in")
    return {"ok": True}


@auth_router.post("/logout")
def logout() -> RedirectResponse:
    response = RedirectResponse(url=ADMIN_LOGIN_PATH, status_code=303)
    response.delete_cookie(ADMIN_COOKIE_NAME, path="/")
    return response


# --- Dashboard ---


@router.get("")
def dashboard(database: Database = Depends(get_database)) -> dict[str, Any]:
    """Presences with counts and today's reservations. 503 status page if the DB does not answer in time."""
    data = admin_service.load_dashboard(database)
    data["today_reservations"] = [present_reservation(r) for r in data["today_reservations"]]
    return data


# --- Presences ---


class PresenceForm(BaseModel):
    location: str | None = None
    date: str | None = None
    start_time: str | None = None
    end_time: str | None = None


class PresenceEditForm(PresenceForm):
    confirm_impact: bool = False


class ImpactConfirmation(BaseModel):
    confirm_impact: bool = False


@router.get("/presences")
def list_presences(db: Session = Depends(get_db)) -> dict[str, Any]:
    return {"presences": store.list_presences_with_counts(db)}


@router.post("/presences", status_code=201)
def create_presence(body: PresenceForm, db: Session = Depends(get_db)) -> dict[str, Any]:
    presence = presence_service.create_presence(db, body.location, body.date, body.start_time, body.end_time)
    return {"ok": True, "presence": presence}


@router.get("/presences/{presence_id}")
def get_presence(presence_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    """Presence plus reservations_count (shown before an edit that would erase them)."""
    return presence_service.get_presence_with_impact(db, presence_id)


@router.post("/presences/{presence_id}/edit")
def edit_presence(presence_id: int, body: PresenceEditForm, db: Session = Depends(get_db)) -> dict[str, Any]:
    """
    Update and regenerate slots. With reservations and no confirm_impact: 409 with reservations_count;
    resubmit with confirm_impact=true to proceed (those reservations are deleted).
    """
    presence = presence_service.edit_presence(
        db,
        presence_id,
        body.location,
        body.date,
        body.start_time,
        body.end_time,
        confirm_impact=body.confirm_impact,
    )
    return {"ok": True, "presence": presence}


@router.get("/presences/{presence_id}/delete")
def delete_preview(presence_id: int, db: Session = Depends(get_db)) -> dict[str, Any]:
    return presence_service.get_presence_with_impact(db, presence_id)


@router.post("/presences/{presence_id}/delete")
def delete_presence(
    presence_id: int,
    body: ImpactConfirmation | None = None,
    db: Session = Depends(get_db),
) -> dict[str, Any]:
    """Same gate as edit: confirm_impact=true is required when reservations exist."""
    confirm = body.confirm_impact if body else False
    deleted = presence_service.delete_presence(db, presence_id, confirm_impact=confirm)
    return {"ok": True, "deleted": deleted}


# --- Reservations ---


class ReservationDelete(BaseModel):
    token: str | None = None


@router.get("/reservations")
def list_reservations(
    date_str: str | None = Query(None, alias="date"),
    location: str | None = Query(None),
    database: Database = Depends(get_database),
) -> dict[str, Any]:
    day: date | None = parse_date(date_str) if date_str else None
    data = admin_service.load_reservations(database, date_filter=day, location_filter=location)
    data["reservations"] = [present_reservation(r) for r in data["reservations"]]
    return data


@router.post("/reservations/delete")
def delete_reservation(body: ReservationDelete, db: Session = Depends(get_db)) -> dict[str, Any]:
    deleted = admin_service.delete_reservation(db, body.token or "")
    return {"ok": True, "deleted": present_reservation(deleted)}