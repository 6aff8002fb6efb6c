"""
Centralized error handling for booking/admin failures.
Domain exceptions raised by services, plus the table that maps each one to an HTTP response
so routes stay thin and new error types are easy to add.
"""
from __future__ import annotations

import html
import logging
from enum import Enum
from typing import Callable

from fastapi import FastAPI, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse, Response

from app.core.constants import ADMIN_LOGIN_PATH, HEALTHZ_PATH

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants: status codes
# ---------------------------------------------------------------------------

STATUS_BAD_REQUEST = 400
STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_SERVICE_UNAVAILABLE = 503
STATUS_SEE_OTHER = 303


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------


class ValidationReason(str, Enum):
    MISSING_FIELD = "missing_field"
    INVALID_QUANTITY = "invalid_quantity"
    INVALID_DATE = "invalid_date"
    INVALID_TIME = "invalid_time"
    END_NOT_AFTER_START = "end_not_after_start"
    TOO_LONG = "too_long"


class BookingError(Exception):
    """Base class for errors the API turns into a response."""


class NotFound(BookingError):
    def __init__(self, kind: str, key: object = None):
        self.kind = kind
        self.key = key
        super().__init__(f"{kind} not found: {key}")


class ValidationFailed(BookingError):
    def __init__(self, reason: ValidationReason, field: str | None = None):
        self.reason = reason
        self.field = field
        super().__init__(f"{reason.value}" + (f" ({field})" if field else ""))


class MutationWindowClosed(BookingError):
    """Edit/cancel attempted at or after the slot start."""

    def __init__(self, token: str):
        self.token = token
        super().__init__("reservation can no longer be changed: slot has started")


class ImpactConfirmationRequired(BookingError):
    """Destructive presence change would erase reservations; resubmit with confirm_impact."""

    def __init__(self, presence_id: int, reservations_count: int):
        self.presence_id = presence_id
        self.reservations_count = reservations_count
        super().__init__(
            f"presence {presence_id} has {reservations_count} reservation(s); confirmation required"
        )


class StorageUnavailable(BookingError):
    """Database unreachable or too slow for a bounded read."""


class AdminAuthRequired(BookingError):
    """Missing, expired or invalid admin credential."""


# ---------------------------------------------------------------------------
# Error rules: exception type -> response builder.
# Add new rules here instead of scattering checks in routes. First match wins.
# ---------------------------------------------------------------------------


def _not_found(exc: NotFound) -> Response:
    return JSONResponse(status_code=STATUS_NOT_FOUND, content={"error": "not_found", "kind": exc.kind})


def _validation_failed(exc: ValidationFailed) -> Response:
    return JSONResponse(
        status_code=STATUS_BAD_REQUEST,
        content={"error": "validation_failed", "reason": exc.reason.value, "field": exc.field},
    )


def _window_closed(exc: MutationWindowClosed) -> Response:
    return JSONResponse(
        status_code=STATUS_FORBIDDEN,
        content={"error": "mutation_window_closed", "detail": str(exc)},
    )


def _impact_required(exc: ImpactConfirmationRequired) -> Response:
    return JSONResponse(
        status_code=STATUS_CONFLICT,
        content={
            "error": "impact_confirmation_required",
            "presence_id": exc.presence_id,
            "reservations_count": exc.reservations_count,
            "detail": "This change regenerates slots and deletes existing reservations. "
            "Resubmit with confirm_impact=true.",
        },
    )


def storage_unavailable_page(detail: str = "") -> HTMLResponse:
    """Plain status page for when the database is cold-starting or unreachable."""
    body = (
        "<!DOCTYPE html><html><head><title>Service degraded</title></head><body>"
        "<h1>Storage temporarily unavailable</h1>"
        "<p>The database did not answer in time. Try again in a few seconds.</p>"
        f"<p><a href=\"{HEALTHZ_PATH}\">Liveness check</a></p>"
        + (f"<pre>{html.escape(detail)}</pre>" if detail else "")
        + "</body></html>"
    )
    return HTMLResponse(content=body, status_code=STATUS_SERVICE_UNAVAILABLE)


def _storage_unavailable(exc: StorageUnavailable) -> Response:
    return storage_unavailable_page(str(exc))


def _admin_auth_required(exc: AdminAuthRequired) -> Response:
    return RedirectResponse(url=ADMIN_LOGIN_PATH, status_code=STATUS_SEE_OTHER)


ERROR_RULES: list[tuple[type[BookingError], Callable[..., Response]]] = [
    (NotFound, _not_found),
    (ValidationFailed, _validation_failed),
    (MutationWindowClosed, _window_closed),
    (ImpactConfirmationRequired, _impact_required),
    (StorageUnavailable, _storage_unavailable),
    (AdminAuthRequired, _admin_auth_required),
]


def booking_error_to_response(exc: BookingError) -> Response:
    """
    Map a domain exception into an HTTP response using ERROR_RULES.
    Unknown BookingError subclasses become a 500 with the exception message.
    """
    for exc_type, build in ERROR_RULES:
        if isinstance(exc, exc_type):
            return build(exc)
    return JSONResponse(status_code=500, content={"error": "internal_error", "detail": str(exc)})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(BookingError)
    async def booking_error_handler(request: Request, exc: BookingError):
        if isinstance(exc, StorageUnavailable):
            logger.warning("Storage unavailable on %s: %s", request.url.path, exc)
        else:
            logger.debug("%s on %s: %s", type(exc).__name__, request.url.path, exc)
        return booking_error_to_response(exc)
