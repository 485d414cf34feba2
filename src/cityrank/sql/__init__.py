"""SQL utilities for the cityrank package.

This package defines:
- Table name constants (configurable via env)
- SQLAlchemy models for the score tables
- Engine/session helpers
- Loaders that return Polars DataFrames compatible with `cityrank.core`
- `SqlScoreStore`, the database-backed score store

Environment variables:
- CITYRANK_DB_SCHEMA: optional schema holding the tables
- CITYRANK_TABLE_PREFIX: table name prefix, default "wp_"
- CITYRANK_DATABASE_URL or DATABASE_URL: SQLAlchemy URL for the DB engine
"""

from __future__ import annotations

from cityrank.sql import models
from cityrank.sql.constants import SCHEMA, TABLE_PREFIX
from cityrank.sql.engine import (
    create_all,
    create_engine,
    create_session_factory,
    ensure_schema,
)
from cityrank.sql.load import (
    load_cities,
    load_deadman_scores,
    load_latest_tdate,
    load_neighbour_tdate,
    load_scores_df,
    load_user_rows,
)
from cityrank.sql.store import SqlScoreStore

__all__ = [
    # Config
    "SCHEMA",
    "TABLE_PREFIX",
    # Engine helpers
    "create_engine",
    "create_session_factory",
    "ensure_schema",
    "create_all",
    # Loaders
    "load_cities",
    "load_deadman_scores",
    "load_latest_tdate",
    "load_neighbour_tdate",
    "load_scores_df",
    "load_user_rows",
    # Store
    "SqlScoreStore",
    # Models submodule
    "models",
]
