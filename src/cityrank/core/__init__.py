"""Core components for cityrank rankings."""

from cityrank.core.aggregate import (
    aggregate_scores,
    count_eligible_rounds,
    fill_scores,
    normalize_scores,
)
from cityrank.core.build import (
    build_meta,
    build_ranking_result,
    rank_totals,
    theoretical_max,
)
from cityrank.core.cache import (
    FileRankingCache,
    MemoryRankingCache,
    RankingCache,
    cache_key,
    load_cached,
    store_cached,
)
from cityrank.core.config import RankingOptions
from cityrank.core.exceptions import (
    CacheWriteError,
    MissingGroupSelectionError,
    MissingWindowError,
    RankingError,
    RankingNotPreparedError,
    StoreError,
)
from cityrank.core.protocols import ScoreStore
from cityrank.core.ranks import assign_ranks, rank_expr
from cityrank.core.results import (
    City,
    DisplayIdentity,
    RankedEntry,
    RankingMeta,
    RankingResult,
)
from cityrank.core.windows import (
    ResolvedWindow,
    TimeWindow,
    date_to_tdate,
    resolve_window,
    tdate_to_date,
    today_tdate,
)

__all__ = [
    # Windows
    "TimeWindow",
    "ResolvedWindow",
    "resolve_window",
    "tdate_to_date",
    "date_to_tdate",
    "today_tdate",
    # Scores
    "normalize_scores",
    "fill_scores",
    "aggregate_scores",
    "count_eligible_rounds",
    # Ranking
    "rank_expr",
    "assign_ranks",
    "rank_totals",
    "theoretical_max",
    "build_meta",
    "build_ranking_result",
    # Results
    "City",
    "DisplayIdentity",
    "RankedEntry",
    "RankingMeta",
    "RankingResult",
    # Cache
    "RankingCache",
    "MemoryRankingCache",
    "FileRankingCache",
    "cache_key",
    "load_cached",
    "store_cached",
    # Config and protocols
    "RankingOptions",
    "ScoreStore",
    # Errors
    "RankingError",
    "RankingNotPreparedError",
    "MissingWindowError",
    "MissingGroupSelectionError",
    "StoreError",
    "CacheWriteError",
]
