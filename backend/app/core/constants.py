"""
Centralized constants for slots, reservations and the admin panel.

Change granularity or caps here instead of scattering literals across services and routes.
"""
from datetime import timedelta

# Width of one bookable slot. Presence windows are sliced into these.
SLOT_STEP = timedelta(minutes=15)

# Scalability: hard cap on rows returned by the admin reservation list
RESERVATIONS_LIST_LIMIT = 100

# A uuid4 collision is practically impossible; retry a few times on unique violation anyway
RESERVATION_TOKEN_ATTEMPTS = 3

# Admin credential cookie (signed JWT)
ADMIN_COOKIE_NAME = "admin_token"
ADMIN_JWT_ALGORITHM = "HS256"
ADMIN_LOGIN_PATH = "/admin/login"

# Liveness endpoint linked from the degraded admin page
HEALTHZ_PATH = "/healthz"

# Input caps, matching column sizes (models/reservation.py, models/presence.py)
MAX_QUANTITY = 10_000
NAME_MAX_LENGTH = 128
PHONE_MAX_LENGTH = 64
LOCATION_MAX_LENGTH = 255
