"""SQL-backed implementation of :class:`cityrank.core.protocols.ScoreStore`."""

from __future__ import annotations

import logging
from typing import Literal, Sequence

import polars as pl
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError

from cityrank.core.constants import (
    GROUP_LOGIN_PREFIX,
    PROFILE_LINK_TEMPLATE,
    USERCLASS_GROUP,
    USERCLASS_PLAYER,
)
from cityrank.core.exceptions import StoreError
from cityrank.core.results import City, DisplayIdentity
from cityrank.sql import load

logger = logging.getLogger(__name__)


def userclass_for_login(login: str) -> str:
    """Group forecasts use a reserved login prefix, everyone else is a player."""
    if login.startswith(GROUP_LOGIN_PREFIX):
        return USERCLASS_GROUP
    return USERCLASS_PLAYER


class SqlScoreStore:
    """Score store reading from the relational database."""

    def __init__(
        self,
        engine: Engine,
        profile_link_template: str = PROFILE_LINK_TEMPLATE,
    ):
        self.engine = engine
        self.profile_link_template = profile_link_template

    def _fail(self, operation: str, error: SQLAlchemyError) -> StoreError:
        logger.error("Store operation %s failed: %s", operation, error)
        return StoreError(operation, str(error))

    def load_scores(
        self, city_ids: Sequence[int], first: int, last: int
    ) -> pl.DataFrame:
        try:
            return load.load_scores_df(self.engine, city_ids, first, last)
        except SQLAlchemyError as e:
            raise self._fail("load_scores", e) from e

    def load_deadman_scores(
        self, login: str, city_ids: Sequence[int], first: int, last: int
    ) -> dict[int, float] | None:
        try:
            return load.load_deadman_scores(
                self.engine, login, city_ids, first, last
            )
        except SQLAlchemyError as e:
            raise self._fail("load_deadman_scores", e) from e

    def latest_tdate(self, today: int) -> int | None:
        try:
            return load.load_latest_tdate(self.engine, today)
        except SQLAlchemyError as e:
            raise self._fail("latest_tdate", e) from e

    def neighbour_tdate(
        self, tdate: int, direction: Literal["older", "newer"]
    ) -> int | None:
        try:
            return load.load_neighbour_tdate(self.engine, tdate, direction)
        except SQLAlchemyError as e:
            raise self._fail("neighbour_tdate", e) from e

    def cities(self, city_ids: Sequence[int]) -> list[City]:
        try:
            return load.load_cities(self.engine, city_ids)
        except SQLAlchemyError as e:
            raise self._fail("cities", e) from e

    def display_identities(
        self, user_ids: Sequence[int]
    ) -> dict[int, DisplayIdentity]:
        try:
            rows = load.load_user_rows(self.engine, user_ids)
        except SQLAlchemyError as e:
            raise self._fail("display_identities", e) from e
        identities = {}
        for row in rows:
            login = str(row["user_login"])
            identities[int(row["id"])] = DisplayIdentity(
                user_id=int(row["id"]),
                user_login=login,
                display_name=row.get("display_name") or login,
                userclass=userclass_for_login(login),
                profile_link=self.profile_link_template.format(login=login),
            )
        return identities
