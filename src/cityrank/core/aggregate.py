"""
Fill missing scores and aggregate points per participant.

The score frame returned by the store holds one row per participant and
round *played*. Rankings need a value for every participant and every
round in the span: participants who did not play a round get the points
of the substitute participant ("deadman") for that round, or zero when the
substitute did not play either (or does not exist). Substituted rounds
never count as played.
"""

from __future__ import annotations

import logging
from typing import Mapping

import polars as pl

from cityrank.core.windows import ResolvedWindow

logger = logging.getLogger(__name__)

SCORE_SCHEMA: dict[str, pl.DataType] = {
    "user_id": pl.Int64,
    "user_login": pl.Utf8,
    "tdate": pl.Int64,
    "points": pl.Float64,
    "played": pl.Int64,
}

TOTALS_SCHEMA: dict[str, pl.DataType] = {
    "order": pl.UInt32,
    "user_id": pl.Int64,
    "user_login": pl.Utf8,
    "points_now": pl.Float64,
    "played_now": pl.Int64,
    "points_pre": pl.Float64,
    "played_pre": pl.Int64,
}


def normalize_scores(scores: pl.DataFrame) -> pl.DataFrame:
    """Select and cast the score columns; an empty input gets the full schema."""
    if scores.is_empty():
        return pl.DataFrame(schema=SCORE_SCHEMA)
    return scores.select(
        [pl.col(name).cast(dtype) for name, dtype in SCORE_SCHEMA.items()]
    )


def _substitute_frame(deadman: Mapping[int, float] | None) -> pl.DataFrame:
    schema = {"tdate": pl.Int64, "deadman_points": pl.Float64}
    if not deadman:
        return pl.DataFrame(schema=schema)
    return pl.DataFrame(
        {
            "tdate": [int(t) for t in deadman.keys()],
            "deadman_points": [float(p) for p in deadman.values()],
        },
        schema=schema,
    )


def fill_scores(
    scores: pl.DataFrame,
    deadman: Mapping[int, float] | None,
    resolved: ResolvedWindow,
) -> pl.DataFrame:
    """
    Build the participant x round grid with effective points.

    Parameters
    ----------
    scores : pl.DataFrame
        Own scores (``user_id``, ``user_login``, ``tdate``, ``points``).
    deadman : mapping of int to float, optional
        Substitute points per round, ``None`` disables substitution.
    resolved : ResolvedWindow
        Window the grid is built for; rounds after ``resolved.latest`` are
        dropped.

    Returns
    -------
    pl.DataFrame
        One row per participant and round with ``order`` (discovery order
        of the participant), ``points`` (effective), ``played`` (0/1),
        ``in_now`` and ``in_pre`` flags.
    """
    window = resolved.window
    scores = normalize_scores(scores)

    participants = (
        scores.select("user_id", "user_login")
        .unique(subset=["user_login"], keep="first", maintain_order=True)
        .with_row_index("order")
    )
    rounds = scores.select("tdate").unique(maintain_order=True)
    if resolved.latest is not None:
        rounds = rounds.filter(pl.col("tdate") <= resolved.latest)

    # A score row with NULL points still counts as played (with 0 points)
    own = scores.select(
        "user_login",
        "tdate",
        pl.col("points").alias("own_points"),
        pl.lit(True).alias("has_own"),
    )

    if window.has_trend:
        in_pre = pl.col("tdate").is_between(window.prev_from, window.prev_to)
    else:
        in_pre = pl.lit(False)

    return (
        participants.join(rounds, how="cross")
        .join(own, on=["user_login", "tdate"], how="left")
        .join(_substitute_frame(deadman), on="tdate", how="left")
        .with_columns(
            pl.when(pl.col("has_own"))
            .then(pl.col("own_points").fill_null(0.0))
            .otherwise(pl.col("deadman_points").fill_null(0.0))
            .alias("points"),
            pl.col("has_own").is_not_null().cast(pl.Int64).alias("played"),
            pl.col("tdate")
            .is_between(window.tdate_from, window.tdate_to)
            .alias("in_now"),
            in_pre.alias("in_pre"),
        )
        .drop("own_points", "has_own", "deadman_points")
    )


def aggregate_scores(
    scores: pl.DataFrame,
    deadman: Mapping[int, float] | None,
    resolved: ResolvedWindow,
) -> pl.DataFrame:
    """
    Sum effective points and played rounds per participant and window.

    A round inside both the current and the previous window counts for
    both. For a single-round ranking (``from == to``) participants who did
    not play that round are dropped, they would otherwise show up with the
    substitute's points.

    Returns
    -------
    pl.DataFrame
        One row per participant in discovery order with the columns of
        ``TOTALS_SCHEMA``.
    """
    scores = normalize_scores(scores)
    if scores.is_empty():
        return pl.DataFrame(schema=TOTALS_SCHEMA)

    grid = fill_scores(scores, deadman, resolved)
    sums = grid.group_by("order").agg(
        pl.col("points").filter(pl.col("in_now")).sum().alias("points_now"),
        pl.col("played").filter(pl.col("in_now")).sum().alias("played_now"),
        pl.col("points").filter(pl.col("in_pre")).sum().alias("points_pre"),
        pl.col("played").filter(pl.col("in_pre")).sum().alias("played_pre"),
    )

    # Participants whose rounds were all dropped still get a (zero) row
    participants = (
        scores.select("user_id", "user_login")
        .unique(subset=["user_login"], keep="first", maintain_order=True)
        .with_row_index("order")
    )
    totals = (
        participants.join(sums, on="order", how="left")
        .with_columns(
            pl.col("points_now", "points_pre").fill_null(0.0),
            pl.col("played_now", "played_pre").fill_null(0),
        )
        .sort("order")
        .select(
            [pl.col(name).cast(dtype) for name, dtype in TOTALS_SCHEMA.items()]
        )
    )

    if resolved.window.is_single_round:
        before = totals.height
        totals = totals.filter(pl.col("played_now") > 0)
        logger.debug(
            "Single-round ranking: dropped %d non-participants",
            before - totals.height,
        )

    return totals


def count_eligible_rounds(
    scores: pl.DataFrame, resolved: ResolvedWindow
) -> int:
    """Number of distinct rounds seen from the window start up to the latest round."""
    scores = normalize_scores(scores)
    if scores.is_empty():
        return 0
    rounds = scores.select(pl.col("tdate").unique()).filter(
        pl.col("tdate") >= resolved.window.tdate_from
    )
    if resolved.latest is not None:
        rounds = rounds.filter(pl.col("tdate") <= resolved.latest)
    return rounds.height
