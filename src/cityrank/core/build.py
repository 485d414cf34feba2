"""Turn aggregated totals into an ordered ranking table."""

from __future__ import annotations

from typing import Mapping, Sequence

import polars as pl

from cityrank.core.constants import DIFF_PRECISION, RANK_PRECISION
from cityrank.core.exceptions import (
    MissingGroupSelectionError,
    MissingWindowError,
)
from cityrank.core.ranks import rank_expr
from cityrank.core.results import (
    City,
    DisplayIdentity,
    RankedEntry,
    RankingMeta,
    RankingResult,
)
from cityrank.core.windows import ResolvedWindow, tdate_to_date


def theoretical_max(points_max: float, ntournaments: int, ncities: int) -> float:
    """Upper bound of points reachable over the eligible rounds and cities."""
    return points_max * ntournaments * ncities


def rank_totals(totals: pl.DataFrame, has_trend: bool) -> pl.DataFrame:
    """
    Add ``rank_now`` (and ``rank_pre``/``trend``) and order by current rank.

    Ties in the current rank keep discovery order (stable sort).
    """
    ranked = totals.with_columns(
        rank_expr("points_now", RANK_PRECISION).alias("rank_now")
    )
    if has_trend:
        ranked = ranked.with_columns(
            rank_expr("points_pre", RANK_PRECISION).alias("rank_pre")
        ).with_columns(
            (pl.col("rank_pre") - pl.col("rank_now")).alias("trend")
        )
    return ranked.sort(["rank_now", "order"], maintain_order=True)


def build_meta(
    resolved: ResolvedWindow,
    cities: Sequence[City],
    ntournaments: int,
    points_max: float,
) -> RankingMeta:
    window = resolved.window
    return RankingMeta(
        has_trends=resolved.has_trend,
        ntournaments=ntournaments,
        points_max=points_max,
        city=" ".join(city.name for city in cities),
        tdate_from=window.tdate_from,
        tdate_to=window.tdate_to,
        date_from=tdate_to_date(window.tdate_from).isoformat(),
        date_to=tdate_to_date(window.tdate_to).isoformat(),
        older=window.older,
        newer=window.newer,
    )


def build_ranking_result(
    totals: pl.DataFrame,
    resolved: ResolvedWindow | None,
    cities: Sequence[City] | None,
    ntournaments: int,
    points_max: float,
    identities: Mapping[str, DisplayIdentity] | None = None,
    created_at: float | None = None,
) -> RankingResult:
    """
    Build the final ranking table.

    Parameters
    ----------
    totals : pl.DataFrame
        Output of :func:`cityrank.core.aggregate.aggregate_scores`.
    resolved : ResolvedWindow
        Window the totals were computed for.
    cities : sequence of City
        Cities of the ranking; their count scales the theoretical maximum.
    ntournaments : int
        Number of eligible rounds.
    points_max : float
        Maximum points per city and round.
    identities : mapping of str to DisplayIdentity, optional
        Display data keyed by login; missing logins fall back to the login.
    created_at : float, optional
        Timestamp stored on the result.

    Returns
    -------
    RankingResult
        Entries ordered by current rank, leader first.

    Raises
    ------
    RankingNotPreparedError
        If no window or no city was supplied.
    """
    if resolved is None:
        raise MissingWindowError()
    if not cities:
        raise MissingGroupSelectionError()

    identities = identities or {}
    total_max = theoretical_max(points_max, ntournaments, len(cities))
    ranked = rank_totals(totals, resolved.has_trend)

    entries: list[RankedEntry] = []
    leader_points: float | None = None
    for row in ranked.iter_rows(named=True):
        points = float(row["points_now"])
        if leader_points is None:
            leader_points = points

        identity = identities.get(row["user_login"])
        entries.append(
            RankedEntry(
                user_id=row["user_id"],
                user_login=row["user_login"],
                rank=int(row["rank_now"]),
                points=points,
                played=int(row["played_now"]),
                points_relative=points / total_max if total_max else 0.0,
                points_diff=round(leader_points - points, DIFF_PRECISION),
                rank_pre=int(row["rank_pre"]) if resolved.has_trend else None,
                trend=int(row["trend"]) if resolved.has_trend else None,
                display_name=(
                    identity.display_name if identity else row["user_login"]
                ),
                userclass=identity.userclass if identity else None,
                profile_link=identity.profile_link if identity else None,
            )
        )

    return RankingResult(
        entries=tuple(entries),
        meta=build_meta(resolved, cities, ntournaments, total_max),
        created_at=created_at,
    )
