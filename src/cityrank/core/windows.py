"""Time windows over tournament dates and their resolution to a query span."""

from __future__ import annotations

import time
from dataclasses import dataclass, replace
from datetime import date, timedelta
from typing import Any, Mapping

from cityrank.core.constants import SECONDS_PER_DAY, TDATE_EPOCH
from cityrank.core.exceptions import MissingWindowError


def tdate_to_date(tdate: int) -> date:
    """Convert a tournament date (days since 1970-01-01) to a calendar date."""
    return TDATE_EPOCH + timedelta(days=int(tdate))


def date_to_tdate(d: date) -> int:
    """Convert a calendar date to a tournament date."""
    return (d - TDATE_EPOCH).days


def today_tdate(now: float | None = None) -> int:
    """Return the tournament date of ``now`` (unix seconds, default: current time)."""
    if now is None:
        now = time.time()
    return int(now // SECONDS_PER_DAY)


@dataclass(frozen=True)
class TimeWindow:
    """
    Current and (optionally) previous ranking period.

    Both periods are closed intervals of tournament dates. The previous
    period is only used to compute the trend; ``older`` and ``newer`` are
    navigation labels (the round before / after the ranked period) passed
    through to the result.
    """

    tdate_from: int
    tdate_to: int
    prev_from: int | None = None
    prev_to: int | None = None
    older: int | None = None
    newer: int | None = None

    @property
    def has_trend(self) -> bool:
        return self.prev_from is not None and self.prev_to is not None

    @property
    def is_single_round(self) -> bool:
        return self.tdate_from == self.tdate_to

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TimeWindow:
        """Create from a mapping with ``from``/``to``/``from_prev``/``to_prev`` keys."""
        if data.get("from") is None or data.get("to") is None:
            raise MissingWindowError("window needs both 'from' and 'to'")
        return cls(
            tdate_from=int(data["from"]),
            tdate_to=int(data["to"]),
            prev_from=_optional_int(data.get("from_prev")),
            prev_to=_optional_int(data.get("to_prev")),
            older=_optional_int(data.get("older")),
            newer=_optional_int(data.get("newer")),
        )


@dataclass(frozen=True)
class ResolvedWindow:
    """A time window together with the span that has to be queried."""

    window: TimeWindow
    min: int
    max: int
    has_trend: bool
    latest: int | None = None

    def with_navigation(
        self, older: int | None, newer: int | None
    ) -> ResolvedWindow:
        return replace(
            self, window=replace(self.window, older=older, newer=newer)
        )


def _optional_int(value: Any) -> int | None:
    return None if value is None else int(value)


def resolve_window(
    window: TimeWindow | Mapping[str, Any] | int | None,
    to: int | None = None,
    prev_from: int | None = None,
    prev_to: int | None = None,
    *,
    latest: int | None = None,
) -> ResolvedWindow:
    """
    Resolve the span of tournament dates to query for a ranking.

    ``window`` is either a :class:`TimeWindow`, a mapping with the keys
    ``from``, ``to``, ``from_prev`` and ``to_prev``, or the first of four
    discrete bounds (then ``to``, ``prev_from`` and ``prev_to`` are used).

    Without a complete previous period the trend is disabled and the span is
    min/max of ``from`` and ``to``; otherwise it covers all four bounds.
    Reversed bounds are tolerated. The upper end is clamped to ``latest``.

    Raises:
        MissingWindowError: if no window or no ``from``/``to`` was given.
    """
    if window is None:
        raise MissingWindowError()

    if isinstance(window, TimeWindow):
        resolved = window
    elif isinstance(window, Mapping):
        resolved = TimeWindow.from_mapping(window)
    else:
        if to is None:
            raise MissingWindowError("window needs both 'from' and 'to'")
        resolved = TimeWindow(
            tdate_from=int(window),
            tdate_to=int(to),
            prev_from=_optional_int(prev_from),
            prev_to=_optional_int(prev_to),
        )

    if resolved.has_trend:
        bounds = (
            resolved.tdate_from,
            resolved.tdate_to,
            resolved.prev_from,
            resolved.prev_to,
        )
    else:
        bounds = (resolved.tdate_from, resolved.tdate_to)

    span_min = min(bounds)
    span_max = max(bounds)
    if latest is not None and span_max > latest:
        span_max = latest

    return ResolvedWindow(
        window=resolved,
        min=span_min,
        max=span_max,
        has_trend=resolved.has_trend,
        latest=latest,
    )
