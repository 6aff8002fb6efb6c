from app.db.base import Base
from app.db.session import Database, get_db
from app.db.tables import ALL_TABLE_NAMES

__all__ = ["get_db", "Database", "Base", "ALL_TABLE_NAMES"]
