"""Protocol definitions for the collaborators of the ranking pipeline."""

from __future__ import annotations

from typing import Literal, Protocol, Sequence, runtime_checkable

import polars as pl

from cityrank.core.results import DisplayIdentity


@runtime_checkable
class ScoreStore(Protocol):
    """Read-only access to per-round points.

    The SQL implementation lives in :mod:`cityrank.sql.store`; any object
    with these methods can back a :class:`cityrank.engine.RankingEngine`.
    Implementations raise :class:`cityrank.core.exceptions.StoreError` when
    the underlying storage fails.
    """

    def load_scores(
        self, city_ids: Sequence[int], first: int, last: int
    ) -> pl.DataFrame:
        """Points per participant and round within ``[first, last]``.

        Returns:
            DataFrame with columns user_id, user_login, tdate, points and
            played (number of cities played that round). With more than one
            city only rounds played in all of them are returned.
        """
        ...

    def load_deadman_scores(
        self, login: str, city_ids: Sequence[int], first: int, last: int
    ) -> dict[int, float] | None:
        """Points of the substitute participant per round.

        Returns:
            Mapping tdate -> points, or None if ``login`` does not exist.
        """
        ...

    def latest_tdate(self, today: int) -> int | None:
        """Latest round on or before ``today`` (None if there is none)."""
        ...

    def neighbour_tdate(
        self, tdate: int, direction: Literal["older", "newer"]
    ) -> int | None:
        """Closest round strictly before (older) or after (newer) ``tdate``."""
        ...

    def display_identities(
        self, user_ids: Sequence[int]
    ) -> dict[int, DisplayIdentity]:
        """Display data per user id; unknown ids are left out."""
        ...
