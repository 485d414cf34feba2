"""
Ranking pipeline.

:class:`RankingEngine` runs one ranking request end to end:

1. resolve the window and the span of rounds to query,
2. load own scores and the substitute's scores from the store,
3. fill missing scores and aggregate per participant,
4. rank the current (and previous) totals,
5. build the ordered result,

wrapped by a lookup-or-compute cache. The engine keeps no state between
requests apart from its collaborators; every ``compute`` call works on its
own :class:`RankingRequest`.
"""

from __future__ import annotations

import json
import logging
import time
from dataclasses import dataclass
from typing import Any, Callable, Mapping, Sequence, Union

from cityrank.core.aggregate import aggregate_scores, count_eligible_rounds
from cityrank.core.build import build_ranking_result
from cityrank.core.cache import (
    RankingCache,
    cache_key,
    load_cached,
    store_cached,
)
from cityrank.core.config import RankingOptions
from cityrank.core.exceptions import (
    MissingGroupSelectionError,
    MissingWindowError,
    RankingError,
)
from cityrank.core.logging import log_timing
from cityrank.core.protocols import ScoreStore
from cityrank.core.results import City, DisplayIdentity, RankingResult
from cityrank.core.windows import (
    ResolvedWindow,
    TimeWindow,
    resolve_window,
    today_tdate,
)

logger = logging.getLogger(__name__)

WindowInput = Union[TimeWindow, Mapping[str, Any]]


@dataclass(frozen=True)
class RankingRequest:
    """Inputs of one ranking computation."""

    cities: tuple[City, ...]
    window: TimeWindow
    options: RankingOptions

    @property
    def city_ids(self) -> list[int]:
        return [city.city_id for city in self.cities]

    @property
    def key(self) -> str:
        return cache_key(self.options.namespace, self.cities, self.window)


def _normalize_cities(cities: City | Sequence[City] | None) -> tuple[City, ...]:
    if cities is None:
        raise MissingGroupSelectionError()
    if isinstance(cities, City):
        return (cities,)
    cities = tuple(cities)
    if not cities:
        raise MissingGroupSelectionError("empty city collection")
    return cities


def build_request(
    cities: City | Sequence[City] | None,
    window: WindowInput | None,
    options: RankingOptions | None = None,
) -> RankingRequest:
    """Validate the raw inputs of a ranking request.

    Raises:
        MissingGroupSelectionError: if no city was given.
        MissingWindowError: if no window was given.
    """
    normalized = _normalize_cities(cities)
    if window is None:
        raise MissingWindowError()
    return RankingRequest(
        cities=normalized,
        window=resolve_window(window).window,
        options=options or RankingOptions(),
    )


class RankingEngine:
    """
    Computes (and caches) ranking tables from a score store.

    Parameters
    ----------
    store : ScoreStore
        Source of scores, rounds and display identities.
    options : RankingOptions, optional
        Defaults for requests that do not bring their own options.
    cache : RankingCache, optional
        Cache backend; without one every request is computed.
    clock : callable, optional
        Returns the current unix time; injectable for tests.
    """

    def __init__(
        self,
        store: ScoreStore,
        options: RankingOptions | None = None,
        cache: RankingCache | None = None,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.options = options or RankingOptions()
        self.cache = cache
        self.clock = clock

    def compute(
        self,
        cities: City | Sequence[City] | None,
        window: WindowInput | None,
        options: RankingOptions | None = None,
    ) -> RankingResult:
        """Return the ranking for ``cities`` over ``window``.

        Raises:
            RankingNotPreparedError: if cities or window are missing.
            StoreError: if the store fails; no partial ranking is returned.
        """
        request = build_request(cities, window, options or self.options)
        use_cache = request.options.cache_enabled and self.cache is not None

        if use_cache:
            cached = load_cached(self.cache, request.key, request.options.cache_ttl)
            if cached is not None:
                return cached

        with log_timing(logger, f"ranking {request.key}", level=logging.DEBUG):
            result = self._compute(request)

        if use_cache:
            store_cached(self.cache, request.key, result)
        return result

    def resolve(self, request: RankingRequest) -> ResolvedWindow:
        """Resolve the request window against the latest known round."""
        today = today_tdate(self.clock())
        latest = self.store.latest_tdate(today)
        if latest is None:
            logger.info("No tournament dates known, using today (%d)", today)
            latest = today
        resolved = resolve_window(request.window, latest=latest)

        window = resolved.window
        older, newer = window.older, window.newer
        if older is None:
            older = self.store.neighbour_tdate(resolved.min, "older")
        if newer is None:
            newer = self.store.neighbour_tdate(resolved.max, "newer")
        return resolved.with_navigation(older, newer)

    def _identities(self, logins: dict[str, int]) -> dict[str, DisplayIdentity]:
        """Display data keyed by login; any failure falls back to logins."""
        user_ids = [uid for uid in logins.values() if uid is not None]
        if not user_ids:
            return {}
        try:
            by_id = self.store.display_identities(user_ids)
        except Exception as e:
            logger.warning(
                "Display identities unavailable, showing logins: %s", e
            )
            return {}
        return {
            login: by_id[user_id]
            for login, user_id in logins.items()
            if user_id in by_id
        }

    def _compute(self, request: RankingRequest) -> RankingResult:
        resolved = self.resolve(request)
        city_ids = request.city_ids

        deadman = self.store.load_deadman_scores(
            request.options.deadman, city_ids, resolved.min, resolved.max
        )
        if deadman is None:
            logger.info(
                "Deadman %r not found, missing scores count as 0",
                request.options.deadman,
            )
        scores = self.store.load_scores(city_ids, resolved.min, resolved.max)

        totals = aggregate_scores(scores, deadman, resolved)
        ntournaments = count_eligible_rounds(scores, resolved)
        logger.debug(
            "Aggregated %d participants over %d eligible rounds",
            totals.height,
            ntournaments,
        )

        logins = dict(
            zip(totals["user_login"].to_list(), totals["user_id"].to_list())
        )
        return build_ranking_result(
            totals,
            resolved,
            request.cities,
            ntournaments,
            request.options.points_max,
            identities=self._identities(logins),
            created_at=self.clock(),
        )


def compute_ranking(
    store: ScoreStore,
    cities: City | Sequence[City] | None,
    window: WindowInput | None,
    options: RankingOptions | None = None,
    cache: RankingCache | None = None,
    clock: Callable[[], float] = time.time,
) -> RankingResult:
    """Compute a ranking with a one-off :class:`RankingEngine`."""
    engine = RankingEngine(store, options=options, cache=cache, clock=clock)
    return engine.compute(cities, window)


def ranking_json(result: RankingResult | RankingError | None) -> str:
    """Serialize a ranking for the front end.

    A missing ranking (or a ranking error) becomes ``{"error": "..."}``.
    """
    if result is None:
        return json.dumps(
            {"error": "Data not prepared, cannot compute the ranking."}
        )
    if isinstance(result, RankingError):
        return json.dumps({"error": result.user_message})
    return result.to_json()
