"""
Time-bounded caching of ranking tables.

Most visitors request the very same rankings over and over again, so
finished tables are stored under a key derived from the request and served
for ``CACHE_TTL_SECONDS`` without touching the database. Entries are never
invalidated when scores change; serving a table up to the TTL old is
accepted. Nothing is evicted either: stale entries are overwritten by the
next computation or removed by external cleanup.
"""

from __future__ import annotations

import json
import logging
import os
import re
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Protocol, Sequence, runtime_checkable

from cityrank.core.constants import (
    CACHE_KEY_PREFIX,
    CACHE_TTL_SECONDS,
    NULL_BOUND,
)
from cityrank.core.exceptions import CacheWriteError
from cityrank.core.results import City, RankingResult
from cityrank.core.windows import TimeWindow

logger = logging.getLogger(__name__)

_UNSAFE_NAMESPACE_CHARS = re.compile(r"[^A-Za-z0-9_-]")


def _bound(value: int | None) -> str:
    return NULL_BOUND if value is None else str(int(value))


def cache_key(
    namespace: str, cities: Sequence[City], window: TimeWindow
) -> str:
    """
    Derive the cache key of a ranking request.

    The key depends on the namespace, the (sorted) city ids and the four
    window bounds; missing previous bounds are written as ``NULL``. Any
    namespace character outside ``[A-Za-z0-9_-]`` becomes ``_`` so the key
    is always a single safe file name.

    Examples
    --------
    >>> cache_key("weekend", [City(1, "Berlin")], TimeWindow(17830, 17830))
    'cityrank_weekend_NULL-NULL_17830-17830_1'
    """
    namespace = _UNSAFE_NAMESPACE_CHARS.sub("_", str(namespace))
    city_hash = "-".join(str(c) for c in sorted(int(c.city_id) for c in cities))
    tdate_hash = "{}-{}_{}-{}".format(
        _bound(window.prev_from),
        _bound(window.prev_to),
        int(window.tdate_from),
        int(window.tdate_to),
    )
    return f"{CACHE_KEY_PREFIX}_{namespace}_{tdate_hash}_{city_hash}"


@runtime_checkable
class RankingCache(Protocol):
    """Key-value store for serialized ranking tables."""

    def get(self, key: str, max_age: float) -> dict[str, Any] | None:
        """Return the stored entry if it is at most ``max_age`` seconds old.

        The entry is ``{"created_at": <unix seconds>, "ranking": {...}}``.
        """
        ...

    def set(self, key: str, ranking: dict[str, Any]) -> None:
        """Store a serialized ranking, raising CacheWriteError on failure."""
        ...


class MemoryRankingCache:
    """In-process cache, mostly useful for tests and single-process tools."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._entries: dict[str, dict[str, Any]] = {}

    def get(self, key: str, max_age: float) -> dict[str, Any] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if self._clock() - entry["created_at"] > max_age:
            return None
        return entry

    def set(self, key: str, ranking: dict[str, Any]) -> None:
        self._entries[key] = {
            "created_at": self._clock(),
            "ranking": json.loads(json.dumps(ranking)),
        }

    def __len__(self) -> int:
        return len(self._entries)


class FileRankingCache:
    """
    One JSON file per cache key.

    Files are written to a temporary file in the same directory and moved
    into place with ``os.replace`` so concurrent readers never see a
    partially written entry; the last writer wins.
    """

    def __init__(
        self, directory: str | Path, clock: Callable[[], float] = time.time
    ):
        self.directory = Path(directory)
        self._clock = clock

    def path_for(self, key: str) -> Path:
        if not key or key != Path(key).name or key in (".", ".."):
            raise ValueError(f"cache key {key!r} is not a plain file name")
        return self.directory / f"{key}.json"

    def get(self, key: str, max_age: float) -> dict[str, Any] | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as f:
                entry = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning("Ignoring unreadable cache file %s: %s", path, e)
            return None
        if not isinstance(entry, dict) or "ranking" not in entry:
            logger.warning("Ignoring malformed cache file %s", path)
            return None
        if self._clock() - float(entry.get("created_at", 0.0)) > max_age:
            return None
        return entry

    def set(self, key: str, ranking: dict[str, Any]) -> None:
        path = self.path_for(key)
        entry = {"created_at": self._clock(), "ranking": ranking}
        tmp_name = None
        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            with tempfile.NamedTemporaryFile(
                "w",
                encoding="utf-8",
                dir=self.directory,
                prefix=f".{key}.",
                suffix=".tmp",
                delete=False,
            ) as f:
                tmp_name = f.name
                json.dump(entry, f)
            os.replace(tmp_name, path)
        except (OSError, TypeError, ValueError) as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CacheWriteError(key, str(e)) from e


def load_cached(
    cache: RankingCache, key: str, ttl: float = CACHE_TTL_SECONDS
) -> RankingResult | None:
    """Return the cached ranking for ``key`` if it is fresh, else ``None``."""
    entry = cache.get(key, ttl)
    if entry is None:
        logger.debug("Cache miss for %s", key)
        return None
    try:
        result = RankingResult.from_dict(
            entry["ranking"], created_at=entry.get("created_at")
        )
    except (KeyError, TypeError) as e:
        logger.warning("Discarding incompatible cache entry %s: %s", key, e)
        return None
    logger.debug("Cache hit for %s", key)
    return result


def store_cached(cache: RankingCache, key: str, result: RankingResult) -> bool:
    """Store ``result`` under ``key``; failures are logged, never raised."""
    try:
        cache.set(key, result.to_dict())
    except CacheWriteError as e:
        logger.warning("Ranking cache write failed: %s", e)
        return False
    return True
