import json
import logging

import pytest

import cityrank.cli.rank as rank_cli
from cityrank.core.results import City

from conftest import FakeStore


@pytest.fixture(autouse=True)
def restore_logging(monkeypatch):
    for k in ("SENTRY_DSN", "CITYRANK_SENTRY_DSN"):
        monkeypatch.delenv(k, raising=False)
    yield
    logger = logging.getLogger("cityrank")
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def store(three_round_scores):
    return FakeStore(
        three_round_scores,
        deadman={101: 7.0},
        cities=[City(1, "Berlin"), City(2, "Hamburg")],
    )


def _use_store(monkeypatch, store):
    monkeypatch.setattr(rank_cli, "_build_store", lambda args: store)


def test_parse_tdate_accepts_iso_dates_and_day_numbers():
    assert rank_cli.parse_tdate("1970-01-11") == 10
    assert rank_cli.parse_tdate("17830") == 17830


def test_rank_prints_ranking_json(monkeypatch, capsys, store):
    _use_store(monkeypatch, store)
    code = rank_cli.main(
        ["--city", "1", "--from", "100", "--to", "102", "--no-cache"]
    )
    assert code == rank_cli.EXIT_OK
    payload = json.loads(capsys.readouterr().out)
    assert payload["meta"]["city"] == "Berlin"
    assert [e["user_login"] for e in payload["data"]] == ["X", "Y"]
    assert payload["data"][1]["points"] == 27.0


def test_rank_writes_file_cache(monkeypatch, capsys, store, tmp_path):
    _use_store(monkeypatch, store)
    argv = [
        "--city", "1", "--from", "100", "--to", "102",
        "--namespace", "weekend", "--cache-dir", str(tmp_path),
    ]
    assert rank_cli.main(argv) == rank_cli.EXIT_OK
    assert (tmp_path / "cityrank_weekend_NULL-NULL_100-102_1.json").exists()

    store.calls.clear()
    assert rank_cli.main(argv) == rank_cli.EXIT_OK
    assert "load_scores" not in store.calls


def test_missing_window_exits_not_prepared(monkeypatch, capsys, store):
    _use_store(monkeypatch, store)
    code = rank_cli.main(["--city", "1", "--from", "100", "--no-cache"])
    assert code == rank_cli.EXIT_NOT_PREPARED
    assert "error" in json.loads(capsys.readouterr().out)


def test_unknown_city_exits_not_prepared(monkeypatch, capsys, store):
    _use_store(monkeypatch, store)
    code = rank_cli.main(
        ["--city", "1", "--city", "7", "--from", "100", "--to", "102"]
    )
    assert code == rank_cli.EXIT_NOT_PREPARED


def test_store_failure_exits_with_store_error(monkeypatch, capsys, store):
    store.fail = {"load_scores"}
    _use_store(monkeypatch, store)
    code = rank_cli.main(
        ["--city", "1", "--city", "2", "--from", "100", "--to", "102", "--no-cache"]
    )
    assert code == rank_cli.EXIT_STORE_ERROR
    assert json.loads(capsys.readouterr().out) == {
        "error": "Database error occurred. Please try again later."
    }
