from __future__ import annotations

from typing import Any, Literal, Optional, Sequence

import pandas as pd
import polars as pl
from sqlalchemy import text
from sqlalchemy.engine import Engine

from cityrank.core.aggregate import normalize_scores
from cityrank.core.results import City
from cityrank.sql.constants import (
    CITIES_TABLE,
    SCORES_TABLE,
    TDATES_TABLE,
    USERS_TABLE,
    qualified,
)


def _read_sql(
    engine: Engine, sql: str, params: Optional[dict[str, Any]] = None
) -> pl.DataFrame:
    """Read SQL into a Polars DataFrame via pandas for compatibility.

    This uses pandas as an intermediary to avoid adding a new dependency layer.
    """
    with engine.connect() as conn:
        pdf = pd.read_sql_query(text(sql), conn, params=params)
    return pl.from_pandas(pdf) if not pdf.empty else pl.DataFrame([])


def _read_scalar(
    engine: Engine, sql: str, params: Optional[dict[str, Any]] = None
) -> Any:
    with engine.connect() as conn:
        return conn.execute(text(sql), params or {}).scalar()


def _in_clause(
    column: str, values: Sequence[int], params: dict[str, Any], prefix: str
) -> str:
    """Render ``column IN (:p0, :p1, ...)`` and register the parameters."""
    names = []
    for i, value in enumerate(values):
        name = f"{prefix}{i}"
        params[name] = int(value)
        names.append(f":{name}")
    return f"{column} IN ({', '.join(names)})"


def load_scores_df(
    engine: Engine, city_ids: Sequence[int], first: int, last: int
) -> pl.DataFrame:
    """Load points per participant and round for the given cities.

    Columns produced:
    - user_id, user_login, tdate
    - points: sum over the cities
    - played: number of cities with a score that round

    With more than one city only participant/round pairs played in *all*
    cities are kept. Rows are ordered by user_id and tdate.
    """
    params: dict[str, Any] = {"first": int(first), "last": int(last)}
    where_city = _in_clause("s.city_id", city_ids, params, "city")
    having = ""
    if len(city_ids) > 1:
        having = "HAVING COUNT(*) = :ncities"
        params["ncities"] = len(city_ids)

    sql = """
        SELECT
            s.user_id AS user_id,
            u.user_login AS user_login,
            s.tdate AS tdate,
            SUM(s.points) AS points,
            COUNT(*) AS played
        FROM {users} u
        JOIN {scores} s ON u.id = s.user_id
        WHERE {where_city} AND s.tdate BETWEEN :first AND :last
        GROUP BY s.user_id, u.user_login, s.tdate
        {having}
        ORDER BY s.user_id, s.tdate
    """.format(
        users=qualified(USERS_TABLE),
        scores=qualified(SCORES_TABLE),
        where_city=where_city,
        having=having,
    )

    df = _read_sql(engine, sql, params)
    return normalize_scores(df)


def load_user_id(engine: Engine, login: str) -> Optional[int]:
    """Return the user id for ``login`` or None if there is no such user."""
    sql = "SELECT id FROM {users} WHERE user_login = :login".format(
        users=qualified(USERS_TABLE)
    )
    user_id = _read_scalar(engine, sql, {"login": login})
    return None if user_id is None else int(user_id)


def load_deadman_scores(
    engine: Engine,
    login: str,
    city_ids: Sequence[int],
    first: int,
    last: int,
) -> Optional[dict[int, float]]:
    """Load the substitute participant's points per round.

    Returns None when ``login`` does not exist, so that no substitution
    happens. Points are summed over the cities without requiring the
    substitute to have played all of them.
    """
    user_id = load_user_id(engine, login)
    if user_id is None:
        return None

    params: dict[str, Any] = {
        "user_id": user_id,
        "first": int(first),
        "last": int(last),
    }
    where_city = _in_clause("city_id", city_ids, params, "city")
    sql = """
        SELECT tdate, SUM(points) AS points
        FROM {scores}
        WHERE user_id = :user_id AND {where_city}
          AND tdate BETWEEN :first AND :last
        GROUP BY tdate
        ORDER BY tdate
    """.format(scores=qualified(SCORES_TABLE), where_city=where_city)

    df = _read_sql(engine, sql, params)
    if df.is_empty():
        return {}
    return {
        int(row["tdate"]): float(row["points"] or 0.0)
        for row in df.iter_rows(named=True)
    }


def load_latest_tdate(engine: Engine, today: int) -> Optional[int]:
    """Latest tournament date on or before ``today``."""
    sql = "SELECT MAX(tdate) FROM {tdates} WHERE tdate <= :today".format(
        tdates=qualified(TDATES_TABLE)
    )
    value = _read_scalar(engine, sql, {"today": int(today)})
    return None if value is None else int(value)


def load_neighbour_tdate(
    engine: Engine, tdate: int, direction: Literal["older", "newer"]
) -> Optional[int]:
    """Closest round with scores strictly before (older) or after (newer) ``tdate``."""
    if direction == "older":
        sql = "SELECT MAX(tdate) FROM {scores} WHERE tdate < :tdate"
    elif direction == "newer":
        sql = "SELECT MIN(tdate) FROM {scores} WHERE tdate > :tdate"
    else:
        raise ValueError(f"direction must be 'older' or 'newer', got {direction!r}")
    value = _read_scalar(
        engine,
        sql.format(scores=qualified(SCORES_TABLE)),
        {"tdate": int(tdate)},
    )
    return None if value is None else int(value)


def load_cities(engine: Engine, city_ids: Sequence[int]) -> list[City]:
    """Load cities in the order of ``city_ids``; unknown ids are skipped."""
    if not city_ids:
        return []
    params: dict[str, Any] = {}
    where_city = _in_clause("id", city_ids, params, "city")
    sql = "SELECT id, name FROM {cities} WHERE {where_city}".format(
        cities=qualified(CITIES_TABLE), where_city=where_city
    )
    df = _read_sql(engine, sql, params)
    if df.is_empty():
        return []
    by_id = {
        int(row["id"]): City(city_id=int(row["id"]), name=str(row["name"]))
        for row in df.iter_rows(named=True)
    }
    return [by_id[int(i)] for i in city_ids if int(i) in by_id]


def load_user_rows(
    engine: Engine, user_ids: Sequence[int]
) -> list[dict[str, Any]]:
    """Load id, login and display name of the given users in one query."""
    if not user_ids:
        return []
    params: dict[str, Any] = {}
    where_user = _in_clause("id", user_ids, params, "user")
    sql = "SELECT id, user_login, display_name FROM {users} WHERE {where_user}".format(
        users=qualified(USERS_TABLE), where_user=where_user
    )
    df = _read_sql(engine, sql, params)
    if df.is_empty():
        return []
    return list(df.iter_rows(named=True))
