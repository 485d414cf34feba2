"""
Exceptions raised by the ranking pipeline.

Every exception carries a short ``user_message`` that is safe to hand to a
front end, while the exception text itself keeps the technical detail.
"""

from __future__ import annotations


class RankingError(Exception):
    """Base exception for ranking-related errors."""

    def __init__(self, message: str, user_message: str | None = None):
        super().__init__(message)
        self.user_message = user_message or message


class RankingNotPreparedError(RankingError):
    """Raised when a ranking is requested before its inputs were supplied."""

    def __init__(self, message: str = "Ranking inputs are incomplete"):
        super().__init__(
            message,
            "Data not prepared, cannot compute the ranking.",
        )


class MissingWindowError(RankingNotPreparedError):
    """Raised when no time window (or no from/to bound) was given."""

    def __init__(self, detail: str = "no time window given"):
        super().__init__(f"Cannot rank: {detail}")


class MissingGroupSelectionError(RankingNotPreparedError):
    """Raised when no city (or an empty city collection) was given."""

    def __init__(self, detail: str = "no city selected"):
        super().__init__(f"Cannot rank: {detail}")


class StoreError(RankingError):
    """Raised when reading from the score store fails."""

    def __init__(self, operation: str, details: str | None = None):
        super().__init__(
            f"Store error during {operation}: {details}",
            "Database error occurred. Please try again later.",
        )
        self.operation = operation


class CacheWriteError(RankingError):
    """Raised by cache backends when an entry cannot be stored."""

    def __init__(self, key: str, details: str | None = None):
        super().__init__(f"Failed to write cache entry {key}: {details}")
        self.key = key
