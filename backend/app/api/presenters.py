"""Response shaping shared by routes: add event-local display times to store dicts."""
from typing import Any

from app.core.slots import to_event_time


def local_hhmm(instant) -> str:
    return to_event_time(instant).strftime("%H:%M")


def present_slot(slot: dict[str, Any]) -> dict[str, Any]:
    return {**slot, "time": local_hhmm(slot["start_at"])}


def present_reservation(reservation: dict[str, Any]) -> dict[str, Any]:
    return {**reservation, "time": local_hhmm(reservation["start_at"])}
