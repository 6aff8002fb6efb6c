#!/usr/bin/env python3
"""
Drop all booking tables and run all migrations from scratch.
Use when the DB is in a mixed state (e.g. created by AUTO_CREATE_SCHEMA, then migrated) and you want a clean slate.
All presences, slots and reservations are lost.

Run from backend dir:
  python scripts/drop_schema_and_migrate.py
"""
import subprocess
import sys
from pathlib import Path

backend_dir = Path(__file__).resolve().parent.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from sqlalchemy import text

from app.config import settings
from app.db.session import Database
from app.db.tables import ALL_TABLE_NAMES


def main():
    database = Database(settings.database_url).open()
    try:
        with database.engine.begin() as conn:
            if conn.dialect.name == "postgresql":
                print("Dropping public schema (all tables)...")
                conn.execute(text("DROP SCHEMA IF EXISTS public CASCADE"))
                conn.execute(text("CREATE SCHEMA public"))
                conn.execute(text("GRANT ALL ON SCHEMA public TO public"))
            else:
                print("Dropping tables:", ", ".join(ALL_TABLE_NAMES))
                for table in (*reversed(ALL_TABLE_NAMES), "alembic_version"):
                    conn.execute(text(f"DROP TABLE IF EXISTS {table}"))
    finally:
        database.close()
    print("Schema cleared. Running migrations...")
    result = subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        cwd=backend_dir,
    )
    if result.returncode != 0:
        sys.exit(result.returncode)
    print("Done. All tables created.")


if __name__ == "__main__":
    main()
