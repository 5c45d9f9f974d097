"""
Streak Calculator.

Definitions
-----------
A streak is a run of consecutive calendar days, each with at least one
journal entry. Only the set of distinct days matters: several entries on the
same day count once.

  best    — longest run anywhere in the history.
  current — run ending on the most recent entry day, but only while that day
            is today or yesterday; otherwise 0. No grace period: a gap of two
            or more days always breaks the run.

All day arithmetic is done on `date.toordinal()` integers in one reference
timezone. Timestamps are turned into days by `entry_day()` before they get
here.

Public API
----------
compute_streaks(entry_dates, today) -> StreakResult
entry_day(created_at, tz)           -> date
today_in(tz)                        -> date
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone, tzinfo
from typing import Iterable, Optional

from moodjournal.core.errors import ValidationError


@dataclass(frozen=True)
class StreakResult:
    current: int
    best: int
    last_entry_date: Optional[date]


EMPTY_STREAKS = StreakResult(current=0, best=0, last_entry_date=None)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def today_in(tz: tzinfo) -> date:
    return datetime.now(tz=tz).date()


def entry_day(created_at: datetime, tz: tzinfo) -> date:
    """
    Calendar day of a timestamp in the reference timezone.
    Naive values are read as UTC (SQLite hands back naive datetimes).
    """
    if not isinstance(created_at, datetime):
        raise ValidationError(
            message=f"Entry timestamp must be a datetime, got {type(created_at).__name__}.",
            details={"value": repr(created_at)},
        )
    if created_at.tzinfo is None:
        created_at = created_at.replace(tzinfo=timezone.utc)
    return created_at.astimezone(tz).date()


def _distinct_days(entry_dates: Iterable[date]) -> list[int]:
    """Validate and reduce to sorted distinct day ordinals."""
    days: set[int] = set()
    for value in entry_dates:
        # datetime is a date subclass; a timestamp here means the caller
        # skipped the timezone step.
        if isinstance(value, datetime) or not isinstance(value, date):
            raise ValidationError(
                message="Streaks are computed from calendar dates only.",
                details={"value": repr(value), "type": type(value).__name__},
            )
        days.add(value.toordinal())
    return sorted(days)


# ---------------------------------------------------------------------------
# Public
# ---------------------------------------------------------------------------

def compute_streaks(entry_dates: Iterable[date], today: date) -> StreakResult:
    if isinstance(today, datetime) or not isinstance(today, date):
        raise ValidationError(
            message="`today` must be a calendar date.",
            details={"value": repr(today)},
        )

    ordinals = _distinct_days(entry_dates)
    if not ordinals:
        return EMPTY_STREAKS

    # Best: one ascending pass.
    best = 1
    run = 1
    for prev, cur in zip(ordinals, ordinals[1:]):
        if cur - prev == 1:
            run += 1
        else:
            run = 1
        best = max(best, run)

    # Current: walk back from the latest day while steps are exactly one day.
    last = ordinals[-1]
    current = 0
    if last >= today.toordinal() - 1:
        current = 1
        for i in range(len(ordinals) - 1, 0, -1):
            if ordinals[i] - ordinals[i - 1] != 1:
                break
            current += 1

    return StreakResult(
        current=current,
        best=best,
        last_entry_date=date.fromordinal(last),
    )
