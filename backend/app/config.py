"""
Application settings (Pydantic Settings).
"""
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

# .env next to backend/ (parent of app/)
_env_path = Path(__file__).resolve().parent.parent / ".env"
_default_sqlite = Path(__file__).resolve().parent.parent / "data" / "db.sqlite"


class Settings(BaseSettings):
    database_url: str = f"sqlite:///{_default_sqlite}"
    auto_create_schema: bool = True  # create tables on startup (SQLite dev); use alembic in prod
    log_level: str = "INFO"
    cors_origins: str = ""  # comma-separated extra origins

    # Admin panel: single shared password, signed cookie valid N days
    admin_password: str = "admin"
    session_secret: str = "dev_secret"
    admin_session_days: int = 7
    cookie_secure: bool = False
    admin_read_timeout_seconds: float = 5.0

    # Links in confirmation emails: {base_url}/r/{token}/edit
    base_url: str = "http://localhost:8000"
    # Presence times are entered in this zone; slots are stored in UTC
    event_timezone: str = "Europe/Brussels"

    # SMTP: when host/user/password are missing, confirmations are only logged
    smtp_host: str = ""
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    notify_from: str = ""

    class Config:
        env_file = _env_path
        extra = "ignore"

    @field_validator("admin_password", "session_secret", "smtp_user", "smtp_password", mode="after")
    @classmethod
    def strip_secrets(cls, v: str) -> str:
        return (v or "").strip()

    @field_validator("base_url", mode="after")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return (v or "").strip().rstrip("/")


settings = Settings()
