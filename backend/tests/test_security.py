import time

import jwt

from app.config import settings
from app.core.constants import ADMIN_JWT_ALGORITHM
from app.core.security import admin_session_seconds, check_admin_password, issue_admin_token, verify_admin_token


def test_password_check(monkeypatch):
    monkeypatch.setattr(settings, "admin_password", "s3cret")
    assert check_admin_password("s3cret") is True
    assert check_admin_password("S3cret") is False
    assert check_admin_password("") is False
    assert check_admin_password(None) is False


def test_empty_configured_password_never_matches(monkeypatch):
    monkeypatch.setattr(settings, "admin_password", "")
    assert check_admin_password("") is False


def test_token_round_trip():
    assert verify_admin_token(issue_admin_token()) is True


def test_expired_token_rejected():
    issued = time.time() - admin_session_seconds() - 60
    assert verify_admin_token(issue_admin_token(now=issued)) is False


def test_token_signed_with_other_secret_rejected():
    forged = jwt.encode({"admin": True, "exp": int(time.time()) + 60}, "other", algorithm=ADMIN_JWT_ALGORITHM)
    assert verify_admin_token(forged) is False


def test_token_without_admin_claim_rejected():
    token = jwt.encode({"exp": int(time.time()) + 60}, settings.session_secret, algorithm=ADMIN_JWT_ALGORITHM)
    assert verify_admin_token(token) is False


def test_garbage_rejected():
    assert verify_admin_token(None) is False
    assert verify_admin_token("not-a-jwt") is False
