"""
Single source of truth for database tables that exist after migrations (001).

Use these names when writing raw SQL (e.g. TRUNCATE). Order is parent -> child.
"""
# All tables that exist in the DB. Must match models and migration 001.
ALL_TABLE_NAMES = (
    "presences",
    "slots",
    "reservations",
)
