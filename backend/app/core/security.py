"""
Admin credential: one shared password, exchanged for a signed, time-limited JWT kept in an httponly cookie.
"""
import hmac
import logging
import time

import jwt

from app.config import settings
from app.core.constants import ADMIN_JWT_ALGORITHM

logger = logging.getLogger(__name__)


def check_admin_password(candidate: str | None) -> bool:
    expected = settings.admin_password
    if not candidate or not expected:
        return False
    return hmac.compare_digest(candidate.encode("utf-8"), expected.encode("utf-8"))


def admin_session_seconds() -> int:
    return settings.admin_session_days * 24 * 3600


def issue_admin_token(now: float | None = None) -> str:
    now = int(now if now is not None else time.time())
    token = jwt.encode(
        {"admin": True, "iat": now, "exp": now + admin_session_seconds()},
        settings.session_secret,
        algorithm=ADMIN_JWT_ALGORITHM,
    )
    if isinstance(token, bytes):
        token = token.decode("utf-8")
    return token


def verify_admin_token(token: str | None) -> bool:
    """True for a valid, unexpired admin token signed with SESSION_SECRET."""
    if not token:
        return False
    try:
        claims = jwt.decode(token, settings.session_secret, algorithms=[ADMIN_JWT_ALGORITHM])
    except jwt.PyJWTError as e:
        logger.debug("Admin token rejected: %s", e)
        return False
    return claims.get("admin") is True
