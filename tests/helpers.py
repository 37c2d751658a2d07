"""Shared test helpers for Cairn."""

from dataclasses import replace
from datetime import date, datetime, timedelta

from cairn.progress.goals import Goal, create_goal
from cairn.progress.streaks import ActivityType, StreakState, update_streak
from cairn.progress.trends import EmotionalMetric, MoodEntry

DAY0 = date(2024, 3, 1)
NOON = datetime(2024, 3, 1, 12, 0)


def streak_over(days, start: date = DAY0, kind=ActivityType.MEDITATION) -> StreakState:
    """Fold activities on ``start + offset`` for each offset in *days*."""
    state = None
    for offset in days:
        state = update_streak(state, start + timedelta(days=offset), kind)
    return state


def goal_at(progress: float, *, days_total: int = 10, days_in: int = 5,
            updated_days_ago: int = 0, **attrs) -> tuple[Goal, datetime]:
    """A goal *days_in* days into a *days_total*-day window, and "now"."""
    start = NOON
    now = start + timedelta(days=days_in)
    goal = create_goal(
        "g1", "Meditate", 10, now=start,
        deadline=start + timedelta(days=days_total), **attrs,
    )
    goal = replace(
        goal,
        progress=progress,
        current_value=goal.target_value * progress / 100,
        updated_at=now - timedelta(days=updated_days_ago),
    )
    return goal, now


def mood(day_offset: int, **values) -> MoodEntry:
    fields = dict(energy=3, stress=3, focus=3, happiness=3, anxiety=3, gratitude=3)
    fields.update(values)
    return MoodEntry(date=NOON + timedelta(days=day_offset), **fields)


def ei_metric(when: datetime, score: float = 5.0, **overrides) -> EmotionalMetric:
    fields = dict(
        self_awareness=score, self_regulation=score, motivation=score,
        empathy=score, social_skills=score,
    )
    fields.update(overrides)
    return EmotionalMetric(date=when, **fields)
