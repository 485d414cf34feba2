"""
cityrank: multi-round tournament rankings per city.

Rankings are computed from per-round scores stored in a relational
database. Participants that skipped a round get the score of a designated
substitute participant, totals are ranked with competition ranking
(1, 1, 3) and finished tables are cached for a short time.
"""

from cityrank.core import (
    City,
    FileRankingCache,
    MemoryRankingCache,
    MissingGroupSelectionError,
    MissingWindowError,
    RankedEntry,
    RankingError,
    RankingMeta,
    RankingNotPreparedError,
    RankingOptions,
    RankingResult,
    ScoreStore,
    StoreError,
    TimeWindow,
    assign_ranks,
    cache_key,
    resolve_window,
)
from cityrank.engine import (
    RankingEngine,
    RankingRequest,
    compute_ranking,
    ranking_json,
)

__version__ = "0.1.0"

__all__ = [
    "RankingEngine",
    "RankingRequest",
    "compute_ranking",
    "ranking_json",
    "City",
    "TimeWindow",
    "RankingOptions",
    "RankedEntry",
    "RankingMeta",
    "RankingResult",
    "ScoreStore",
    "MemoryRankingCache",
    "FileRankingCache",
    "assign_ranks",
    "cache_key",
    "resolve_window",
    "RankingError",
    "RankingNotPreparedError",
    "MissingWindowError",
    "MissingGroupSelectionError",
    "StoreError",
]
