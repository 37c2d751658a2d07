"""Tests for daily streak tracking.

Covers:
- First activity, consecutive days, breaks and same-day repeats
- Out-of-order dates rejected
- Snapshot history and its retention cap
- Rebuilding from an activity log and the date-set helpers
"""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from cairn.errors import InvalidInputError
from cairn.progress.streaks import (
    SNAPSHOT_RETENTION,
    ActivityRecord,
    ActivityType,
    current_run,
    is_streak_alive,
    longest_run,
    streak_from_records,
    update_streak,
)

from helpers import DAY0, streak_over


# ═══════════════════════════════════════════════════════════════════════
#  UPDATE STREAK
# ═══════════════════════════════════════════════════════════════════════


class TestUpdateStreak:

    def test_first_activity_starts_streak_of_one(self):
        state = update_streak(None, DAY0, ActivityType.MEDITATION)
        assert state.current_streak == 1
        assert state.longest_streak == 1
        assert state.is_active is True
        assert state.start_date == DAY0
        assert state.last_activity_date == DAY0

    def test_example_sequence(self):
        s1 = update_streak(None, DAY0, "meditation")
        s2 = update_streak(s1, DAY0 + timedelta(days=1), "meditation")
        assert (s2.current_streak, s2.longest_streak) == (2, 2)

        s3 = update_streak(s2, DAY0 + timedelta(days=4), "meditation")
        assert s3.current_streak == 1
        assert s3.longest_streak == 2
        assert s3.start_date == DAY0 + timedelta(days=4)

    def test_consecutive_days_increase_by_one(self):
        state = None
        for offset in range(10):
            prev = state.current_streak if state else 0
            state = update_streak(state, DAY0 + timedelta(days=offset))
            assert state.current_streak == prev + 1
            assert state.longest_streak == state.current_streak

    def test_gap_resets_but_keeps_longest(self):
        state = streak_over([0, 1, 2, 3, 4])
        assert state.longest_streak == 5
        state = update_streak(state, DAY0 + timedelta(days=7))
        assert state.current_streak == 1
        assert state.longest_streak == 5

    def test_reset_marks_inactive(self):
        state = streak_over([0, 3])
        assert state.is_active is False

    def test_streak_resumes_after_reset(self):
        state = streak_over([0, 1, 5, 6])
        assert state.current_streak == 2
        assert state.is_active is True
        assert state.start_date == DAY0 + timedelta(days=5)

    def test_same_day_is_idempotent(self):
        once = streak_over([0, 1])
        twice = update_streak(once, DAY0 + timedelta(days=1))
        assert twice.current_streak == once.current_streak
        assert twice.longest_streak == once.longest_streak
        assert twice.snapshots == once.snapshots

    def test_same_day_other_type_merges_into_snapshot(self):
        state = update_streak(None, DAY0, ActivityType.MEDITATION)
        state = update_streak(state, DAY0, ActivityType.MOOD_TRACKING)
        assert state.current_streak == 1
        assert len(state.snapshots) == 1
        assert state.snapshots[0].activities == ("meditation", "mood_tracking")

    def test_datetime_is_truncated_to_day(self):
        state = update_streak(None, datetime(2024, 3, 1, 23, 59))
        state = update_streak(state, datetime(2024, 3, 2, 0, 1))
        assert state.current_streak == 2

    def test_earlier_date_rejected(self):
        state = streak_over([0, 1])
        with pytest.raises(InvalidInputError):
            update_streak(state, DAY0)

    def test_unknown_type_rejected(self):
        with pytest.raises(InvalidInputError):
            update_streak(None, DAY0, "yoga")

    def test_non_date_rejected(self):
        with pytest.raises(InvalidInputError):
            update_streak(None, "2024-03-01")

    def test_input_not_mutated(self):
        state = streak_over([0])
        update_streak(state, DAY0 + timedelta(days=1))
        assert state.current_streak == 1
        assert len(state.snapshots) == 1


# ═══════════════════════════════════════════════════════════════════════
#  SNAPSHOTS
# ═══════════════════════════════════════════════════════════════════════


class TestSnapshots:

    def test_one_snapshot_per_active_day(self):
        state = streak_over([0, 1, 2])
        assert [s.streak_count for s in state.snapshots] == [1, 2, 3]
        assert state.snapshots[-1].date == DAY0 + timedelta(days=2)

    def test_reset_snapshot_records_one(self):
        state = streak_over([0, 1, 5])
        assert state.snapshots[-1].streak_count == 1

    def test_history_capped_at_retention(self):
        state = streak_over(range(SNAPSHOT_RETENTION + 20))
        assert len(state.snapshots) == SNAPSHOT_RETENTION
        assert state.snapshots[-1].streak_count == SNAPSHOT_RETENTION + 20

    def test_custom_retention(self):
        state = None
        for offset in range(10):
            state = update_streak(state, DAY0 + timedelta(days=offset), retention=3)
        assert len(state.snapshots) == 3
        assert state.snapshots[0].date == DAY0 + timedelta(days=7)


# ═══════════════════════════════════════════════════════════════════════
#  REBUILD & HELPERS
# ═══════════════════════════════════════════════════════════════════════


class TestRebuild:

    def test_empty_log_gives_none(self):
        assert streak_from_records([]) is None

    def test_unordered_log_is_sorted(self):
        records = [
            ActivityRecord(DAY0 + timedelta(days=2)),
            ActivityRecord(DAY0),
            ActivityRecord(DAY0 + timedelta(days=1)),
            ActivityRecord(DAY0 + timedelta(days=1), ActivityType.MINDFULNESS),
        ]
        state = streak_from_records(records)
        assert state.current_streak == 3
        assert state.start_date == DAY0

    def test_alive_today_and_yesterday(self):
        state = streak_over([0])
        assert is_streak_alive(state, DAY0)
        assert is_streak_alive(state, DAY0 + timedelta(days=1))
        assert not is_streak_alive(state, DAY0 + timedelta(days=2))
        assert not is_streak_alive(None, DAY0)


class TestDateRuns:

    def test_longest_run(self):
        days = [DAY0 + timedelta(days=o) for o in (0, 1, 2, 5, 6, 8)]
        assert longest_run(days) == 3

    def test_longest_run_ignores_duplicates(self):
        assert longest_run([DAY0, DAY0, DAY0 + timedelta(days=1)]) == 2

    def test_longest_run_empty(self):
        assert longest_run([]) == 0

    def test_current_run_ending_today(self):
        days = [DAY0 + timedelta(days=o) for o in (0, 2, 3, 4)]
        assert current_run(days, DAY0 + timedelta(days=4)) == 3

    def test_current_run_ending_yesterday(self):
        days = [DAY0 + timedelta(days=o) for o in (3, 4)]
        assert current_run(days, DAY0 + timedelta(days=5)) == 2

    def test_current_run_lapsed(self):
        assert current_run([DAY0], DAY0 + timedelta(days=3)) == 0
