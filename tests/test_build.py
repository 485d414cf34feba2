import polars as pl
import pytest

from cityrank.core.aggregate import TOTALS_SCHEMA
from cityrank.core.build import (
    build_ranking_result,
    rank_totals,
    theoretical_max,
)
from cityrank.core.exceptions import (
    MissingGroupSelectionError,
    MissingWindowError,
)
from cityrank.core.results import City, DisplayIdentity
from cityrank.core.windows import TimeWindow, resolve_window


def totals_frame(rows) -> pl.DataFrame:
    """Rows of (login, points_now, played_now, points_pre, played_pre)."""
    return pl.DataFrame(
        {
            "order": list(range(len(rows))),
            "user_id": [i + 1 for i in range(len(rows))],
            "user_login": [r[0] for r in rows],
            "points_now": [r[1] for r in rows],
            "played_now": [r[2] for r in rows],
            "points_pre": [r[3] for r in rows],
            "played_pre": [r[4] for r in rows],
        },
        schema=TOTALS_SCHEMA,
    )


def test_trend_is_previous_rank_minus_current_rank(berlin):
    totals = totals_frame([("X", 50.0, 2, 10.0, 1), ("Y", 40.0, 2, 20.0, 1)])
    resolved = resolve_window(TimeWindow(101, 102, 100, 100), latest=102)
    result = build_ranking_result(totals, resolved, [berlin], 2, 200)
    by_login = {e.user_login: e for e in result.entries}
    assert (by_login["X"].rank, by_login["X"].rank_pre) == (1, 2)
    assert by_login["X"].trend == 1
    assert (by_login["Y"].rank, by_login["Y"].rank_pre) == (2, 1)
    assert by_login["Y"].trend == -1
    assert result.meta.has_trends is True


def test_zero_theoretical_max_gives_zero_relative_points(berlin):
    totals = totals_frame([("X", 30.0, 1, 0.0, 0), ("Y", 10.0, 1, 0.0, 0)])
    resolved = resolve_window(TimeWindow(10, 20), latest=102)
    result = build_ranking_result(totals, resolved, [berlin], 0, 200)
    assert [e.points_relative for e in result.entries] == [0.0, 0.0]
    assert result.meta.points_max == 0


def test_points_relative_and_diff_to_leader(berlin):
    totals = totals_frame([("Y", 33.33, 1, 0.0, 0), ("X", 50.0, 2, 0.0, 0)])
    resolved = resolve_window(TimeWindow(100, 101), latest=101)
    result = build_ranking_result(totals, resolved, [berlin], 2, 200)
    leader, second = result.entries
    assert leader.user_login == "X"
    assert leader.points_diff == 0.0
    assert leader.points_relative == pytest.approx(50.0 / 400)
    assert second.points_diff == 16.7
    assert all(e.points_diff >= 0 for e in result.entries)


def test_ties_keep_discovery_order(berlin):
    totals = totals_frame(
        [("X", 10.0, 1, 0.0, 0), ("Y", 20.0, 1, 0.0, 0), ("Z", 20.0, 1, 0.0, 0)]
    )
    resolved = resolve_window(TimeWindow(100, 101), latest=101)
    result = build_ranking_result(totals, resolved, [berlin], 2, 200)
    assert [e.user_login for e in result.entries] == ["Y", "Z", "X"]
    assert [e.rank for e in result.entries] == [1, 1, 3]


def test_without_trend_entries_have_no_trend_fields(berlin):
    totals = totals_frame([("X", 10.0, 1, 0.0, 0)])
    resolved = resolve_window(TimeWindow(100, 100), latest=100)
    result = build_ranking_result(totals, resolved, [berlin], 1, 200)
    entry = result.to_dict()["data"][0]
    assert "trend" not in entry
    assert "rank_pre" not in entry
    assert "rank_pre" not in rank_totals(totals, has_trend=False).columns


def test_meta_for_multiple_cities(berlin, hamburg):
    totals = totals_frame([("X", 10.0, 1, 0.0, 0)])
    resolved = resolve_window(TimeWindow(17830, 17831), latest=17831)
    resolved = resolved.with_navigation(17829, None)
    result = build_ranking_result(totals, resolved, [berlin, hamburg], 2, 200)
    meta = result.meta
    assert meta.city == "Berlin Hamburg"
    assert meta.points_max == theoretical_max(200, 2, 2) == 800
    assert meta.date_from == "2018-10-26"
    assert meta.date_to == "2018-10-27"
    assert meta.older == 17829
    assert meta.newer is None
    assert meta.ntournaments == 2


def test_identities_decorate_entries_and_login_is_fallback(berlin):
    totals = totals_frame([("X", 10.0, 1, 0.0, 0), ("GRP_Y", 5.0, 1, 0.0, 0)])
    resolved = resolve_window(TimeWindow(100, 100), latest=100)
    identities = {
        "X": DisplayIdentity(1, "X", "Mr. X", "player", "/forums/users/X/")
    }
    result = build_ranking_result(
        totals, resolved, [berlin], 1, 200, identities=identities
    )
    x, y = result.entries
    assert x.display_name == "Mr. X"
    assert x.profile_link == "/forums/users/X/"
    assert y.display_name == "GRP_Y"
    assert y.userclass is None


def test_empty_totals_give_empty_ranking(berlin):
    resolved = resolve_window(TimeWindow(100, 100), latest=100)
    result = build_ranking_result(
        pl.DataFrame(schema=TOTALS_SCHEMA), resolved, [berlin], 0, 200
    )
    assert len(result) == 0
    assert result.leader is None
    assert result.to_dataframe().height == 0


def test_missing_inputs_raise_not_prepared(berlin):
    totals = totals_frame([("X", 10.0, 1, 0.0, 0)])
    resolved = resolve_window(TimeWindow(100, 100), latest=100)
    with pytest.raises(MissingWindowError):
        build_ranking_result(totals, None, [berlin], 1, 200)
    with pytest.raises(MissingGroupSelectionError):
        build_ranking_result(totals, resolved, [], 1, 200)


def test_result_dataframe_and_roundtrip(berlin):
    totals = totals_frame([("X", 10.0, 1, 8.0, 1), ("Y", 10.0, 1, 9.0, 1)])
    resolved = resolve_window(TimeWindow(101, 101, 100, 100), latest=101)
    result = build_ranking_result(totals, resolved, [berlin], 1, 200)
    df = result.to_dataframe()
    assert df["user_login"].to_list() == ["X", "Y"]
    assert df["rank"].to_list() == [1, 1]
    assert df["trend"].to_list() == [1, 0]
    assert type(result).from_dict(result.to_dict()) == result
    assert City(1, "Berlin") == berlin
