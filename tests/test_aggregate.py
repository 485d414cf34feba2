import polars as pl

from cityrank.core.aggregate import (
    TOTALS_SCHEMA,
    aggregate_scores,
    count_eligible_rounds,
    fill_scores,
    normalize_scores,
)
from cityrank.core.windows import TimeWindow, resolve_window

from conftest import scores_frame


def _totals_by_login(totals: pl.DataFrame) -> dict:
    return {row["user_login"]: row for row in totals.iter_rows(named=True)}


def test_missing_round_filled_with_deadman_points(three_round_scores):
    resolved = resolve_window(TimeWindow(100, 102), latest=102)
    totals = _totals_by_login(
        aggregate_scores(three_round_scores, {101: 7.0}, resolved)
    )
    assert totals["X"]["points_now"] == 60.0
    assert totals["X"]["played_now"] == 3
    # Substituted round adds points but does not count as played
    assert totals["Y"]["points_now"] == 27.0
    assert totals["Y"]["played_now"] == 2


def test_deadman_absent_or_silent_means_zero(three_round_scores):
    resolved = resolve_window(TimeWindow(100, 102), latest=102)
    for deadman in (None, {}, {100: 99.0}):
        totals = _totals_by_login(
            aggregate_scores(three_round_scores, deadman, resolved)
        )
        assert totals["Y"]["points_now"] == 20.0


def test_fill_grid_has_every_participant_and_round(three_round_scores):
    resolved = resolve_window(TimeWindow(100, 102), latest=102)
    grid = fill_scores(three_round_scores, {101: 7.0}, resolved)
    assert grid.height == 6
    filled = grid.filter((pl.col("user_login") == "Y") & (pl.col("tdate") == 101))
    assert filled["points"].to_list() == [7.0]
    assert filled["played"].to_list() == [0]


def test_single_round_drops_non_participants():
    scores = scores_frame(
        [
            (1, "X", 100, 10.0),
            (1, "X", 101, 20.0),
            (2, "Y", 100, 5.0),
        ]
    )
    # Previous window pulls Y into the loaded scores
    resolved = resolve_window(TimeWindow(101, 101, 100, 100), latest=101)
    totals = aggregate_scores(scores, {101: 50.0}, resolved)
    assert totals["user_login"].to_list() == ["X"]


def test_overlapping_windows_count_round_in_both(three_round_scores):
    resolved = resolve_window(TimeWindow(100, 102, 101, 102), latest=102)
    totals = _totals_by_login(
        aggregate_scores(three_round_scores, None, resolved)
    )
    assert totals["X"]["points_now"] == 60.0
    assert totals["X"]["points_pre"] == 50.0
    assert totals["X"]["played_pre"] == 2
    assert totals["Y"]["points_pre"] == 15.0


def test_rounds_after_latest_are_ignored_but_participants_kept():
    scores = scores_frame(
        [
            (1, "X", 100, 10.0),
            (1, "X", 102, 30.0),
            (3, "Z", 102, 40.0),
        ]
    )
    resolved = resolve_window(TimeWindow(100, 102), latest=101)
    totals = _totals_by_login(aggregate_scores(scores, None, resolved))
    assert totals["X"]["points_now"] == 10.0
    assert totals["Z"]["points_now"] == 0.0
    assert totals["Z"]["played_now"] == 0


def test_totals_keep_discovery_order_and_schema(three_round_scores):
    resolved = resolve_window(TimeWindow(100, 102), latest=102)
    totals = aggregate_scores(three_round_scores, None, resolved)
    assert totals["user_login"].to_list() == ["X", "Y"]
    assert totals["order"].to_list() == [0, 1]
    assert dict(totals.schema) == TOTALS_SCHEMA


def test_empty_scores_give_empty_totals():
    resolved = resolve_window(TimeWindow(100, 102), latest=102)
    totals = aggregate_scores(pl.DataFrame([]), {100: 1.0}, resolved)
    assert totals.is_empty()
    assert totals.columns == list(TOTALS_SCHEMA)
    assert count_eligible_rounds(pl.DataFrame([]), resolved) == 0


def test_count_eligible_rounds_from_window_start_to_latest(three_round_scores):
    resolved = resolve_window(TimeWindow(101, 102, 100, 100), latest=102)
    assert count_eligible_rounds(three_round_scores, resolved) == 2

    clamped = resolve_window(TimeWindow(100, 102), latest=101)
    assert count_eligible_rounds(three_round_scores, clamped) == 2


def test_window_before_all_rounds_has_no_eligible_rounds(three_round_scores):
    resolved = resolve_window(TimeWindow(10, 20), latest=102)
    assert count_eligible_rounds(
        three_round_scores.filter(pl.col("tdate") <= 20), resolved
    ) == 0


def test_normalize_scores_casts_columns():
    raw = pl.DataFrame(
        {
            "user_id": ["1"],
            "user_login": ["X"],
            "tdate": ["100"],
            "points": ["12.5"],
            "played": ["1"],
            "extra": [None],
        }
    )
    out = normalize_scores(raw)
    assert out.columns == ["user_id", "user_login", "tdate", "points", "played"]
    assert out["points"].to_list() == [12.5]
    assert out["tdate"].dtype == pl.Int64


def test_score_row_without_points_counts_as_played_with_zero():
    scores = scores_frame(
        [
            (1, "X", 100, 10.0),
            (2, "Y", 100, None),
        ]
    )
    resolved = resolve_window(TimeWindow(100, 100), latest=100)
    totals = _totals_by_login(aggregate_scores(scores, {100: 50.0}, resolved))
    assert totals["Y"]["points_now"] == 0.0
    assert totals["Y"]["played_now"] == 1
