"""Declarative base shared by all models (imported by alembic env for metadata)."""
from sqlalchemy.orm import declarative_base

Base = declarative_base()
