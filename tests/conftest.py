from __future__ import annotations

from typing import Iterable

import polars as pl
import pytest

from cityrank.core.aggregate import SCORE_SCHEMA
from cityrank.core.exceptions import StoreError
from cityrank.core.results import City, DisplayIdentity

SECONDS_PER_DAY = 86_400


def scores_frame(rows: Iterable[tuple]) -> pl.DataFrame:
    """Rows of (user_id, user_login, tdate, points[, played])."""
    records = []
    for row in rows:
        user_id, login, tdate, points = row[:4]
        played = row[4] if len(row) > 4 else 1
        records.append(
            {
                "user_id": user_id,
                "user_login": login,
                "tdate": tdate,
                "points": points,
                "played": played,
            }
        )
    return pl.DataFrame(records, schema=SCORE_SCHEMA)


class FakeStore:
    """In-memory score store recording the calls it receives."""

    def __init__(
        self,
        scores: pl.DataFrame,
        deadman: dict[int, float] | None = None,
        identities: dict[int, DisplayIdentity] | None = None,
        cities: Iterable[City] = (),
        fail: set[str] | None = None,
        errors: dict[str, Exception] | None = None,
        tdates: Iterable[int] | None = None,
    ):
        self.scores = scores
        self.deadman = deadman
        self.identities = identities or {}
        self._cities = {c.city_id: c for c in cities}
        self.fail = fail or set()
        self.errors = errors or {}
        self.tdates = (
            sorted(set(tdates))
            if tdates is not None
            else sorted(set(scores["tdate"].to_list()))
        )
        self.calls: list[str] = []

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.errors:
            raise self.errors[name]
        if name in self.fail:
            raise StoreError(name, "simulated failure")

    def load_scores(self, city_ids, first, last):
        self._record("load_scores")
        return self.scores.filter(pl.col("tdate").is_between(first, last))

    def load_deadman_scores(self, login, city_ids, first, last):
        self._record("load_deadman_scores")
        if self.deadman is None:
            return None
        return {t: p for t, p in self.deadman.items() if first <= t <= last}

    def latest_tdate(self, today):
        self._record("latest_tdate")
        known = [t for t in self.tdates if t <= today]
        return max(known) if known else None

    def neighbour_tdate(self, tdate, direction):
        self._record("neighbour_tdate")
        if direction == "older":
            older = [t for t in self.tdates if t < tdate]
            return max(older) if older else None
        newer = [t for t in self.tdates if t > tdate]
        return min(newer) if newer else None

    def display_identities(self, user_ids):
        self._record("display_identities")
        return {i: self.identities[i] for i in user_ids if i in self.identities}

    def cities(self, city_ids):
        self._record("cities")
        return [self._cities[i] for i in city_ids if i in self._cities]


def clock_at(tdate: int, seconds: float = 3600.0):
    """A fixed clock pointing into day ``tdate``."""
    now = {"t": tdate * SECONDS_PER_DAY + seconds}

    def clock() -> float:
        return now["t"]

    clock.now = now  # type: ignore[attr-defined]
    return clock


@pytest.fixture
def berlin() -> City:
    return City(1, "Berlin")


@pytest.fixture
def hamburg() -> City:
    return City(2, "Hamburg")


@pytest.fixture
def three_round_scores() -> pl.DataFrame:
    # X plays every round, Y skips round 101
    return scores_frame(
        [
            (1, "X", 100, 10.0),
            (1, "X", 101, 20.0),
            (1, "X", 102, 30.0),
            (2, "Y", 100, 5.0),
            (2, "Y", 102, 15.0),
        ]
    )
