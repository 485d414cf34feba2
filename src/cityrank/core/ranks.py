"""Competition ranking of aggregated scores."""

from __future__ import annotations

from typing import Sequence

import polars as pl

from cityrank.core.constants import RANK_PRECISION


def rank_expr(column: str, precision: int = RANK_PRECISION) -> pl.Expr:
    """Competition rank expression for ``column`` (highest value gets rank 1).

    Values are rounded to ``precision`` decimals first so that ties are
    exact. Equal values share the rank of the first member of their tie
    group and the next distinct value continues at its 1-based position
    (1, 1, 3, ...).
    """
    return (
        pl.col(column)
        .round(precision)
        .rank(method="min", descending=True)
        .cast(pl.Int64)
    )


def assign_ranks(
    scores: Sequence[float], precision: int = RANK_PRECISION
) -> list[int]:
    """
    Assign competition ranks to a sequence of scores.

    Parameters
    ----------
    scores : sequence of float
        Aggregated scores, in any order.
    precision : int, default=2
        Decimals used when comparing scores.

    Returns
    -------
    list of int
        Ranks in the same order as ``scores``.

    Examples
    --------
    >>> assign_ranks([100.0, 100.0, 80.0])
    [1, 1, 3]
    >>> assign_ranks([3.0, 5.0, 5.0, 1.0])
    [3, 1, 1, 4]
    """
    if len(scores) == 0:
        return []
    frame = pl.DataFrame({"score": [float(s) for s in scores]})
    return frame.select(rank_expr("score", precision))["score"].to_list()
