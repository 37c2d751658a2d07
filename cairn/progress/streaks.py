"""Daily streak tracking.

A streak counts consecutive calendar days with at least one qualifying
activity.  ``update_streak`` folds one activity into the previous state and
returns a new ``StreakState``; nothing is mutated in place.

Day-gap rules
-------------
    gap == 0   same day, count unchanged (repeat calls are no-ops)
    gap == 1   streak continues, longest updated
    gap  > 1   streak broken, restarts at 1 from this day
    gap  < 0   activity older than the last recorded one -> InvalidInputError

Snapshots
---------
One snapshot per active day, capped at ``SNAPSHOT_RETENTION`` entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Iterable

from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


SNAPSHOT_RETENTION = 100


class ActivityType(Enum):
    MEDITATION = "meditation"
    MOOD_TRACKING = "mood_tracking"
    COURSE_STUDY = "course_study"
    MINDFULNESS = "mindfulness"


@dataclass(frozen=True)
class ActivityRecord:
    date: date
    type: ActivityType = ActivityType.MEDITATION


@dataclass(frozen=True)
class StreakSnapshot:
    date: date
    streak_count: int
    activities: tuple[str, ...]


@dataclass(frozen=True)
class StreakState:
    current_streak: int
    longest_streak: int
    last_activity_date: date
    start_date: date
    is_active: bool
    snapshots: tuple[StreakSnapshot, ...] = ()
    activity_type: ActivityType = ActivityType.MEDITATION


# ── helpers ──────────────────────────────────────────────────────────────


def _as_day(value: date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raise InvalidInputError(f"expected a date, got {value!r}")


def _as_type(value: ActivityType | str) -> ActivityType:
    try:
        return ActivityType(value)
    except ValueError:
        raise InvalidInputError(f"unknown activity type {value!r}") from None


# ── core ─────────────────────────────────────────────────────────────────


def update_streak(
    previous: StreakState | None,
    activity_date: date | datetime,
    activity_type: ActivityType | str = ActivityType.MEDITATION,
    *,
    retention: int = SNAPSHOT_RETENTION,
) -> StreakState:
    """Return the streak state after recording one activity."""
    day = _as_day(activity_date)
    kind = _as_type(activity_type)

    if previous is None:
        return StreakState(
            current_streak=1,
            longest_streak=1,
            last_activity_date=day,
            start_date=day,
            is_active=True,
            snapshots=(StreakSnapshot(day, 1, (kind.value,)),),
            activity_type=kind,
        )

    gap = (day - previous.last_activity_date).days
    if gap < 0:
        raise InvalidInputError(
            f"activity on {day} predates last recorded activity "
            f"{previous.last_activity_date}"
        )

    if gap == 0:
        snapshots = previous.snapshots
        if snapshots and snapshots[-1].date == day:
            last = snapshots[-1]
            if kind.value not in last.activities:
                merged = replace(last, activities=last.activities + (kind.value,))
                snapshots = snapshots[:-1] + (merged,)
        return replace(previous, snapshots=snapshots, is_active=True)

    if gap == 1:
        current = previous.current_streak + 1
        start = previous.start_date
    else:
        logger.debug(
            "Streak of %d broken after %d-day gap", previous.current_streak, gap,
        )
        current = 1
        start = day

    snapshots = previous.snapshots + (StreakSnapshot(day, current, (kind.value,)),)
    if len(snapshots) > retention:
        snapshots = snapshots[-retention:]

    return replace(
        previous,
        current_streak=current,
        longest_streak=max(previous.longest_streak, current),
        last_activity_date=day,
        start_date=start,
        is_active=gap <= 1,
        snapshots=snapshots,
    )


def streak_from_records(
    records: Iterable[ActivityRecord],
    *,
    retention: int = SNAPSHOT_RETENTION,
) -> StreakState | None:
    """Rebuild a streak from an unordered activity log.

    Returns ``None`` for an empty log.
    """
    state: StreakState | None = None
    for record in sorted(records, key=lambda r: _as_day(r.date)):
        state = update_streak(state, record.date, record.type, retention=retention)
    return state


def is_streak_alive(state: StreakState | None, today: date | datetime) -> bool:
    """True while the streak can still be continued (activity today or yesterday)."""
    if state is None:
        return False
    return (_as_day(today) - state.last_activity_date).days <= 1


# ── plain date-set helpers ───────────────────────────────────────────────


def longest_run(dates: Iterable[date | datetime]) -> int:
    """Length of the longest run of consecutive days."""
    days = sorted({_as_day(d) for d in dates})
    best = run = 0
    prev: date | None = None
    for day in days:
        run = run + 1 if prev is not None and day - prev == timedelta(days=1) else 1
        best = max(best, run)
        prev = day
    return best


def current_run(dates: Iterable[date | datetime], today: date | datetime) -> int:
    """Consecutive days ending today or yesterday; 0 if the run has lapsed."""
    days = {_as_day(d) for d in dates}
    cursor = _as_day(today)
    if cursor not in days:
        cursor -= timedelta(days=1)
    count = 0
    while cursor in days:
        count += 1
        cursor -= timedelta(days=1)
    return count
