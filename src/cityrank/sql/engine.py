from __future__ import annotations

import logging
import os
from typing import Optional

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker

from .constants import SCHEMA

logger = logging.getLogger(__name__)

Base = declarative_base()


def _build_url_from_env() -> str | None:
    """Construct a database URL from component env vars.

    Recognized variables (CITYRANK_DB_* preferred, falls back to MYSQL_*):
      - HOST, PORT (default 3306)
      - NAME (database name; default 'wordpress')
      - USER, PASSWORD
      - DRIVER (SQLAlchemy dialect+driver; default 'mysql+pymysql')
    """
    host = os.getenv("CITYRANK_DB_HOST") or os.getenv("MYSQL_HOST")
    user = os.getenv("CITYRANK_DB_USER") or os.getenv("MYSQL_USER")
    if not host or not user:
        return None
    port = (
        os.getenv("CITYRANK_DB_PORT") or os.getenv("MYSQL_PORT") or "3306"
    )
    name = (
        os.getenv("CITYRANK_DB_NAME")
        or os.getenv("MYSQL_DATABASE")
        or "wordpress"
    )
    password = (
        os.getenv("CITYRANK_DB_PASSWORD") or os.getenv("MYSQL_PASSWORD") or ""
    )
    driver = os.getenv("CITYRANK_DB_DRIVER") or "mysql+pymysql"

    auth = f"{user}:{password}" if password != "" else f"{user}"
    return f"{driver}://{auth}@{host}:{port}/{name}"


def create_engine(url: Optional[str] = None, *, echo: bool = False) -> Engine:
    """Create a SQLAlchemy engine.

    Resolution order for URL:
    - explicit ``url`` arg
    - env ``CITYRANK_DATABASE_URL``
    - env ``DATABASE_URL``
    - component env vars (see ``_build_url_from_env``)
    """
    database_url = (
        url
        or os.getenv("CITYRANK_DATABASE_URL")
        or os.getenv("DATABASE_URL")
        or _build_url_from_env()
    )
    if not database_url:
        raise RuntimeError(
            "No database URL provided. Set CITYRANK_DATABASE_URL or DATABASE_URL, "
            "or provide component env vars (CITYRANK_DB_HOST/USER/[PASSWORD]/[NAME]/[PORT]/[DRIVER])."
        )
    return _sa_create_engine(database_url, echo=echo, future=True)


def create_session_factory(engine: Engine):
    """Return a configured sessionmaker bound to the engine."""
    return sessionmaker(
        bind=engine, autoflush=False, autocommit=False, future=True
    )


def ensure_schema(engine: Engine) -> None:
    """Create the configured schema if it does not exist (idempotent)."""
    if not SCHEMA:
        return
    try:
        with engine.begin() as conn:
            conn.execute(text(f"CREATE SCHEMA IF NOT EXISTS {SCHEMA}"))
    except SQLAlchemyError as e:
        # Engines without schema support (e.g. SQLite) reject the statement
        logger.info("Schema %s not created: %s", SCHEMA, e)


def create_all(engine: Engine) -> None:
    """Create all score tables (idempotent)."""
    from . import models  # noqa: F401 - ensure models are imported

    ensure_schema(engine)
    Base.metadata.create_all(engine)
