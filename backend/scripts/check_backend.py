#!/usr/bin/env python3
"""
Quick checks so the backend can start. Run from repo root or backend/:
  python backend/scripts/check_backend.py
  # or from backend/:
  python scripts/check_backend.py
"""
import os
import sys
from pathlib import Path

# Run from backend/
backend_dir = Path(__file__).resolve().parent.parent
os.chdir(backend_dir)
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))


def main():
    errors = []

    # 1) .env
    env_file = backend_dir / ".env"
    if not env_file.exists():
        print("WARN backend/.env missing; using defaults (copy .env.example to set DATABASE_URL, ADMIN_PASSWORD, ...)")
    else:
        print("OK  .env exists")

    # 2) Settings that must not stay on their dev defaults in production
    from app.config import settings
    if settings.admin_password == "admin" or settings.session_secret == "dev_secret":
        print("WARN ADMIN_PASSWORD / SESSION_SECRET are dev defaults")
    try:
        from zoneinfo import ZoneInfo
        ZoneInfo(settings.event_timezone)
        print(f"OK  EVENT_TIMEZONE={settings.event_timezone}")
    except Exception as e:
        errors.append(f"EVENT_TIMEZONE: {e}")
        print("FAIL EVENT_TIMEZONE:", e)

    # 3) DB connection
    try:
        from app.db.session import Database
        database = Database(settings.database_url).open()
        try:
            database.ping()
        finally:
            database.close()
        print("OK  Database connection (DATABASE_URL)")
    except Exception as e:
        errors.append(f"Database: {e}")
        print("FAIL Database:", e)

    # 4) App import (catches missing deps, bad imports)
    try:
        from app.main import app  # noqa: F401
        print("OK  App import (app.main)")
    except Exception as e:
        errors.append(f"App import: {e}")
        print("FAIL App import:", e)

    # 5) SMTP (optional)
    if settings.smtp_host and settings.smtp_user and settings.smtp_password:
        print("OK  SMTP configured; confirmations will be emailed")
    else:
        print("INFO SMTP not configured; confirmations are only logged")

    if errors:
        print("\n---")
        for e in errors:
            print("•", e)
        print("\nThen start backend: cd backend && uvicorn app.main:app --reload --port 8000")
        return 1

    print("\nAll checks passed. Start with: cd backend && uvicorn app.main:app --reload --port 8000")
    return 0


if __name__ == "__main__":
    sys.exit(main())
