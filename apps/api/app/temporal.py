"""
Temporal Primitives
===================

Validity intervals for affiliation records and the query window they are
matched against.

An interval is closed at both ends: `[start, end]`, with `end=None`
meaning "still open". Two intervals overlap when each starts on or before
the other ends. The same rule is rendered as a SQL clause by
`overlap_clause`, so the in-memory predicate and the database filter
cannot drift apart.
"""

import enum
from dataclasses import dataclass
from datetime import date
from typing import Optional, TYPE_CHECKING

from sqlalchemy import and_, or_

if TYPE_CHECKING:
    from app.models import Season


@dataclass(frozen=True)
class Interval:
    """Closed date interval; `end=None` is open-ended."""

    start: date
    end: Optional[date] = None

    def __post_init__(self):
        if self.end is not None and self.end < self.start:
            raise ValueError(f"Interval end {self.end} is before start {self.start}")

    @property
    def is_open(self) -> bool:
        return self.end is None

    def contains(self, day: date) -> bool:
        if day < self.start:
            return False
        return self.end is None or day <= self.end

    def overlaps(self, other: "Interval") -> bool:
        starts_before_other_ends = other.end is None or self.start <= other.end
        ends_after_other_starts = self.end is None or self.end >= other.start
        return starts_before_other_ends and ends_after_other_starts


def overlap_clause(valid_from_col, valid_to_col, window: Interval):
    """
    SQL filter selecting rows whose [valid_from, valid_to] overlaps `window`.

    valid_from <= window.end AND (valid_to IS NULL OR valid_to >= window.start)
    """
    conditions = [or_(valid_to_col.is_(None), valid_to_col >= window.start)]
    if window.end is not None:
        conditions.append(valid_from_col <= window.end)
    return and_(*conditions)


class TemporalMode(str, enum.Enum):
    NOW = "now"
    SEASON = "season"


@dataclass(frozen=True)
class TemporalContext:
    """The point in time a read is evaluated at: "now" or a given season."""

    mode: TemporalMode
    season: Optional["Season"] = None

    @classmethod
    def now(cls) -> "TemporalContext":
        return cls(mode=TemporalMode.NOW)

    @classmethod
    def for_season(cls, season: "Season") -> "TemporalContext":
        return cls(mode=TemporalMode.SEASON, season=season)

    @property
    def is_current(self) -> bool:
        return self.mode == TemporalMode.NOW

    @property
    def window(self) -> Optional[Interval]:
        if self.season is None:
            return None
        return Interval(self.season.start_date, self.season.end_date)

    def describe(self) -> str:
        if self.season is None:
            return "current"
        return self.season.label
