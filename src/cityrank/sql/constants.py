from __future__ import annotations

import os


def _default_schema() -> str | None:
    schema = os.getenv("CITYRANK_DB_SCHEMA", "").strip()
    return schema or None


def _default_prefix() -> str:
    return os.getenv("CITYRANK_TABLE_PREFIX", "wp_").strip()


# Database schema holding the score tables (None: connection default)
SCHEMA: str | None = _default_schema()

# Prefix shared by all table names (e.g. "wp_" -> "wp_scores")
TABLE_PREFIX: str = _default_prefix()

USERS_TABLE = f"{TABLE_PREFIX}users"
CITIES_TABLE = f"{TABLE_PREFIX}cities"
SCORES_TABLE = f"{TABLE_PREFIX}scores"
TDATES_TABLE = f"{TABLE_PREFIX}tdates"


def qualified(table: str) -> str:
    """Table name including the schema, for raw SQL statements."""
    return f"{SCHEMA}.{table}" if SCHEMA else table
