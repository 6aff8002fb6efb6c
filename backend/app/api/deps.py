"""Shared FastAPI dependencies for routes."""
from fastapi import Cookie

from app.core.constants import ADMIN_COOKIE_NAME
from app.core.errors import AdminAuthRequired
from app.core.security import verify_admin_token
from app.db.session import get_database, get_db

__all__ = ["get_db", "get_database", "require_admin"]


def require_admin(admin_token: str | None = Cookie(None, alias=ADMIN_COOKIE_NAME)) -> None:
    """Admin routes: a valid admin cookie or a redirect to the login page."""
    if not verify_admin_token(admin_token):
        raise AdminAuthRequired()
