from __future__ import annotations

import argparse
from datetime import date
from typing import Sequence

from cityrank.core.cache import FileRankingCache
from cityrank.core.config import RankingOptions, default_cache_dir
from cityrank.core.exceptions import (
    MissingGroupSelectionError,
    RankingNotPreparedError,
    StoreError,
)
from cityrank.core.logging import get_logger, setup_logging
from cityrank.core.sentry import init_sentry
from cityrank.core.windows import TimeWindow, date_to_tdate
from cityrank.engine import RankingEngine, ranking_json
from cityrank.sql.engine import create_engine
from cityrank.sql.store import SqlScoreStore

EXIT_OK = 0
EXIT_NOT_PREPARED = 1
EXIT_STORE_ERROR = 2


def parse_tdate(value: str) -> int:
    """Accept an ISO date (2024-05-04) or a raw tournament date (19847)."""
    value = value.strip()
    if value.lstrip("-").isdigit():
        return int(value)
    try:
        return date_to_tdate(date.fromisoformat(value))
    except ValueError as e:
        raise argparse.ArgumentTypeError(
            f"expected ISO date or day number, got {value!r}"
        ) from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description=(
            "Compute the ranking of one or more cities over a window of "
            "tournament dates and print it as JSON."
        )
    )
    parser.add_argument(
        "--city",
        dest="cities",
        type=int,
        action="append",
        default=[],
        help="City id; repeat for a combined ranking over several cities",
    )
    parser.add_argument(
        "--from", dest="tdate_from", type=parse_tdate, default=None,
        help="First round of the ranked period",
    )
    parser.add_argument(
        "--to", dest="tdate_to", type=parse_tdate, default=None,
        help="Last round of the ranked period",
    )
    parser.add_argument(
        "--from-prev", dest="prev_from", type=parse_tdate, default=None,
        help="First round of the previous period (enables trends)",
    )
    parser.add_argument(
        "--to-prev", dest="prev_to", type=parse_tdate, default=None,
        help="Last round of the previous period (enables trends)",
    )
    parser.add_argument(
        "--namespace", type=str, default=None, help="Cache namespace"
    )
    parser.add_argument(
        "--deadman", type=str, default=None, help="Login of the substitute"
    )
    parser.add_argument(
        "--points-max",
        type=int,
        default=None,
        help="Maximum points per city and round",
    )
    parser.add_argument(
        "--no-cache", action="store_true", help="Always recompute"
    )
    parser.add_argument(
        "--cache-dir",
        type=str,
        default=None,
        help="Directory for cached rankings (default: $CITYRANK_CACHE_DIR or ./cache)",
    )
    parser.add_argument(
        "--database-url",
        type=str,
        default=None,
        help="SQLAlchemy URL (default: from environment)",
    )
    parser.add_argument(
        "--log-level", type=str, default="INFO", help="Logging level"
    )
    return parser


def _build_store(args: argparse.Namespace) -> SqlScoreStore:
    return SqlScoreStore(create_engine(args.database_url))


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    init_sentry(context="cityrank_rank")
    setup_logging(level=args.log_level, format_style="simple")
    logger = get_logger("cli.rank")

    options = RankingOptions.from_env(
        namespace=args.namespace,
        deadman=args.deadman,
        points_max=args.points_max,
        cache_enabled=False if args.no_cache else None,
    )
    cache = None
    if options.cache_enabled:
        cache = FileRankingCache(args.cache_dir or default_cache_dir())

    window = None
    if args.tdate_from is not None and args.tdate_to is not None:
        window = TimeWindow(
            tdate_from=args.tdate_from,
            tdate_to=args.tdate_to,
            prev_from=args.prev_from,
            prev_to=args.prev_to,
        )

    try:
        if not args.cities:
            raise MissingGroupSelectionError("no --city given")
        store = _build_store(args)
        cities = store.cities(args.cities)
        if len(cities) != len(args.cities):
            known = {c.city_id for c in cities}
            missing = [c for c in args.cities if c not in known]
            raise MissingGroupSelectionError(f"unknown city ids {missing}")
        engine = RankingEngine(store, options=options, cache=cache)
        result = engine.compute(cities, window)
    except RankingNotPreparedError as e:
        logger.warning("Ranking not prepared: %s", e)
        print(ranking_json(e))
        return EXIT_NOT_PREPARED
    except StoreError as e:
        logger.error("Ranking failed: %s", e)
        print(ranking_json(e))
        return EXIT_STORE_ERROR

    logger.info(
        "Ranked %d participants over %d rounds",
        len(result),
        result.meta.ntournaments,
    )
    print(ranking_json(result))
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
