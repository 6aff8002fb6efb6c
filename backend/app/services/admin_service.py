"""
Admin panel reads and reservation housekeeping.

Dashboard and reservation list go through bounded reads: a slow or unreachable database yields
StorageUnavailable (served as a status page) instead of a hung request.
"""
import logging
from datetime import date, datetime
from typing import Any

from sqlalchemy.orm import Session

from app.config import settings
from app.core.bounded import run_bounded_reads
from app.core.constants import RESERVATIONS_LIST_LIMIT
from app.core.errors import NotFound
from app.core.slots import event_zone
from app.db.session import Database
from app.services import store

logger = logging.getLogger(__name__)


def event_today() -> date:
    return datetime.now(event_zone()).date()


def load_dashboard(database: Database, today: date | None = None, timeout: float | None = None) -> dict[str, Any]:
    """Presences (with counts) and today's reservations, read in parallel under one deadline."""
    today = today or event_today()
    results = run_bounded_reads(
        database,
        {
            "presences": store.list_presences_with_counts,
            "today_reservations": lambda db: store.list_reservations(db, date_filter=today),
        },
        timeout=timeout if timeout is not None else settings.admin_read_timeout_seconds,
    )
    return {
        "today": today,
        "presences": results["presences"],
        "today_reservations": results["today_reservations"],
    }


def load_reservations(
    database: Database,
    date_filter: date | None = None,
    location_filter: str | None = None,
    timeout: float | None = None,
) -> dict[str, Any]:
    results = run_bounded_reads(
        database,
        {
            "reservations": lambda db: store.list_reservations(
                db, date_filter=date_filter, location_filter=location_filter
            ),
        },
        timeout=timeout if timeout is not None else settings.admin_read_timeout_seconds,
    )
    reservations = results["reservations"]
    return {
        "reservations": reservations,
        "query": {"date": date_filter, "location": location_filter or ""},
        "limit": RESERVATIONS_LIST_LIMIT,
        "truncated": len(reservations) >= RESERVATIONS_LIST_LIMIT,
    }


def delete_reservation(db: Session, token: str) -> dict[str, Any]:
    """Admin removal, no time window: works for past slots too."""
    token = (token or "").strip()
    reservation = store.get_reservation_by_token(db, token) if token else None
    if reservation is None:
        raise NotFound("reservation", token)
    store.delete_reservation_by_token(db, token)
    logger.info("Reservation %s deleted by admin", reservation["id"])
    return reservation
