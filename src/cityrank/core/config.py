"""Configuration dataclasses for the ranking pipeline."""

from __future__ import annotations

import os
from dataclasses import dataclass

from cityrank.core.constants import (
    CACHE_TTL_SECONDS,
    DEFAULT_CACHE_DIR,
    DEFAULT_DEADMAN,
    DEFAULT_NAMESPACE,
    DEFAULT_POINTS_MAX,
)


def _truthy(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class RankingOptions:
    """Options for one ranking computation."""

    # Caller-chosen name separating otherwise identical cache entries
    # (e.g. "weekend", "season", "alltime")
    namespace: str = DEFAULT_NAMESPACE

    # Login of the substitute participant
    deadman: str = DEFAULT_DEADMAN

    # Maximum points per city and round
    points_max: int = DEFAULT_POINTS_MAX

    cache_enabled: bool = True
    cache_ttl: int = CACHE_TTL_SECONDS

    @classmethod
    def from_env(cls, **overrides) -> RankingOptions:
        """Build options from ``CITYRANK_*`` environment variables.

        Recognized variables:
          - CITYRANK_NAMESPACE
          - CITYRANK_DEADMAN
          - CITYRANK_POINTS_MAX
          - CITYRANK_CACHE (truthy/falsy)
          - CITYRANK_CACHE_TTL (seconds)

        Keyword overrides win over the environment.
        """
        values = {
            "namespace": os.getenv("CITYRANK_NAMESPACE", DEFAULT_NAMESPACE),
            "deadman": os.getenv("CITYRANK_DEADMAN", DEFAULT_DEADMAN),
            "points_max": int(
                os.getenv("CITYRANK_POINTS_MAX", str(DEFAULT_POINTS_MAX))
            ),
            "cache_enabled": _truthy(os.getenv("CITYRANK_CACHE", "true")),
            "cache_ttl": int(
                os.getenv("CITYRANK_CACHE_TTL", str(CACHE_TTL_SECONDS))
            ),
        }
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)


def default_cache_dir() -> str:
    """Directory for file cache entries (``CITYRANK_CACHE_DIR``)."""
    return os.getenv("CITYRANK_CACHE_DIR", DEFAULT_CACHE_DIR)
