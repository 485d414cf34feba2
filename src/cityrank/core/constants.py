"""
Configuration constants for tournament ranking tables.

This module centralizes the default parameters used by the ranking
pipeline, the cache layer and the command line so that every entry point
agrees on the same values.
"""

from datetime import date

# =============================================================================
# Rounds (tournament dates)
# =============================================================================

# Tournament dates are stored as integer days since this epoch
TDATE_EPOCH = date(1970, 1, 1)
SECONDS_PER_DAY: int = 86_400

# =============================================================================
# Ranking Parameters
# =============================================================================

# Login of the participant whose points are handed to non-participants
DEFAULT_DEADMAN = "Sleepy"

# Maximum number of points a participant can score per city and round
DEFAULT_POINTS_MAX: int = 200

# Points are rounded to this many decimals before ranking so ties compare
# exactly under floating point
RANK_PRECISION: int = 2

# Decimals kept for the points difference to the leader
DIFF_PRECISION: int = 1

# Logins with this prefix are group forecasts rather than single players
GROUP_LOGIN_PREFIX = "GRP_"

USERCLASS_PLAYER = "player"
USERCLASS_GROUP = "mitteltip"

PROFILE_LINK_TEMPLATE = "/forums/users/{login}/"

# =============================================================================
# Cache Parameters
# =============================================================================

# Cached rankings are served for this many seconds before recomputation
CACHE_TTL_SECONDS: int = 600

DEFAULT_NAMESPACE = "UNNAMED"
CACHE_KEY_PREFIX = "cityrank"
DEFAULT_CACHE_DIR = "cache"

# Placeholder used in cache keys when no previous window is requested
NULL_BOUND = "NULL"
