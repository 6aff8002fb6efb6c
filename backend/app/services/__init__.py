from app.services.booking_service import book_slot
from app.services.presence_service import create_presence, delete_presence, edit_presence
from app.services.reservation_service import cancel_reservation, edit_reservation, view_reservation

__all__ = [
    "book_slot",
    "create_presence",
    "edit_presence",
    "delete_presence",
    "view_reservation",
    "edit_reservation",
    "cancel_reservation",
]
