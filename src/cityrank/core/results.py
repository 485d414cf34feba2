"""Result dataclasses for ranking tables."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from typing import Any

import polars as pl


@dataclass(frozen=True)
class City:
    """A city (participation scope) rankings are computed for."""

    city_id: int
    name: str


@dataclass(frozen=True)
class DisplayIdentity:
    """How a participant is shown in a ranking table."""

    user_id: int
    user_login: str
    display_name: str
    userclass: str
    profile_link: str | None = None


@dataclass(frozen=True)
class RankedEntry:
    """One row of a ranking table."""

    user_id: int | None
    user_login: str
    rank: int
    points: float
    played: int
    points_relative: float
    points_diff: float
    rank_pre: int | None = None
    trend: int | None = None
    display_name: str | None = None
    userclass: str | None = None
    profile_link: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, dropping trend fields when not computed."""
        data = asdict(self)
        if self.rank_pre is None:
            data.pop("rank_pre")
            data.pop("trend")
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RankedEntry:
        return cls(**data)


@dataclass(frozen=True)
class RankingMeta:
    """Metadata describing how a ranking table was computed."""

    has_trends: bool
    ntournaments: int
    points_max: float
    city: str
    tdate_from: int
    tdate_to: int
    date_from: str
    date_to: str
    older: int | None = None
    newer: int | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> RankingMeta:
        return cls(**data)


@dataclass(frozen=True)
class RankingResult:
    """A complete ranking table, leader first."""

    entries: tuple[RankedEntry, ...]
    meta: RankingMeta
    created_at: float | None = field(default=None, compare=False)

    def __len__(self) -> int:
        return len(self.entries)

    @property
    def leader(self) -> RankedEntry | None:
        return self.entries[0] if self.entries else None

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire format: ``{"meta": {...}, "data": [...]}``."""
        return {
            "meta": self.meta.to_dict(),
            "data": [entry.to_dict() for entry in self.entries],
        }

    @classmethod
    def from_dict(
        cls, data: dict[str, Any], created_at: float | None = None
    ) -> RankingResult:
        return cls(
            entries=tuple(RankedEntry.from_dict(e) for e in data["data"]),
            meta=RankingMeta.from_dict(data["meta"]),
            created_at=created_at,
        )

    def to_json(self, **kwargs: Any) -> str:
        return json.dumps(self.to_dict(), **kwargs)

    def to_dataframe(self) -> pl.DataFrame:
        """Convert the entries to a Polars DataFrame (one row per participant).

        Returns:
            DataFrame with one column per entry field, in ranking order.
        """
        schema = {
            "user_id": pl.Int64,
            "user_login": pl.Utf8,
            "rank": pl.Int64,
            "points": pl.Float64,
            "played": pl.Int64,
            "points_relative": pl.Float64,
            "points_diff": pl.Float64,
            "rank_pre": pl.Int64,
            "trend": pl.Int64,
            "display_name": pl.Utf8,
            "userclass": pl.Utf8,
            "profile_link": pl.Utf8,
        }
        return pl.DataFrame(
            [asdict(entry) for entry in self.entries], schema=schema
        )
