from app.models.presence import Presence
from app.models.reservation import Reservation
from app.models.slot import Slot

__all__ = [
    "Presence",
    "Reservation",
    "Slot",
]
