from __future__ import annotations

from sqlalchemy import (
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)

from .constants import (
    CITIES_TABLE,
    SCHEMA,
    SCORES_TABLE,
    TDATES_TABLE,
    USERS_TABLE,
    qualified,
)
from .engine import Base


class User(Base):
    __tablename__ = USERS_TABLE
    __table_args__ = ({"schema": SCHEMA},)

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_login = Column(String(60), nullable=False, unique=True)
    display_name = Column(String(250), nullable=True)


class City(Base):
    __tablename__ = CITIES_TABLE
    __table_args__ = ({"schema": SCHEMA},)

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    hash = Column(String(10), nullable=True)


class TournamentDate(Base):
    __tablename__ = TDATES_TABLE
    __table_args__ = ({"schema": SCHEMA},)

    # Days since 1970-01-01
    tdate = Column(Integer, primary_key=True, autoincrement=False)
    status = Column(Integer, nullable=False, default=1)


class Score(Base):
    """Points of one participant in one city for one round."""

    __tablename__ = SCORES_TABLE
    __table_args__ = (
        UniqueConstraint(
            "user_id", "city_id", "tdate", name=f"uq_{SCORES_TABLE}_user_city_tdate"
        ),
        Index(f"ix_{SCORES_TABLE}_city_tdate", "city_id", "tdate"),
        {"schema": SCHEMA},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(
        Integer, ForeignKey(f"{qualified(USERS_TABLE)}.id"), nullable=False
    )
    city_id = Column(
        Integer, ForeignKey(f"{qualified(CITIES_TABLE)}.id"), nullable=False
    )
    tdate = Column(Integer, nullable=False)
    points = Column(Float, nullable=True)
