"""Goal progress, health classification, and auto-adjustment.

Health Classification
---------------------
With ``elapsed = (now - start) / (deadline - start)`` (0.5 without a
deadline) and ``ratio = progress / 100``, the first matching rule wins::

    ratio >= elapsed + 0.2    ahead      low urgency
    ratio >= elapsed - 0.1    on_track   low urgency
    ratio >= elapsed - 0.3    behind     medium urgency, action required
    otherwise                 at_risk    high urgency, action required

A goal not updated for 7 days is ``stagnant`` (medium, action required)
regardless of the above.

Adjustments
-----------
Every change to a goal's target, deadline or status goes through
``apply_adjustment``, which appends a ``GoalAdjustment`` with a non-empty
reason.  History is append-only.  A target change re-derives progress and
moves the goal between ``active`` and ``completed`` to match it.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from typing import Any, Iterable

from ..errors import InvalidInputError

logger = logging.getLogger(__name__)


# ── tuning constants ─────────────────────────────────────────────────────

AHEAD_MARGIN = 0.2
ON_TRACK_MARGIN = 0.1
BEHIND_MARGIN = 0.3
STAGNANT_AFTER = timedelta(days=7)

DEADLINE_EXTENSION = timedelta(days=14)
DEADLINE_WARNING_DAYS = 7
TARGET_INCREASE_FACTOR = 1.3
EXCEEDING_FACTOR = 1.5

MILESTONE_PERCENTAGES = (25, 50, 75, 100)
URGENCY_ORDER = {"high": 3, "medium": 2, "low": 1}

ADJUSTMENT_TYPES = frozenset({
    "target_increase", "target_decrease",
    "deadline_extend", "deadline_shorten",
    "pause", "resume",
})

GOAL_STATUSES = frozenset({"active", "completed", "paused", "failed"})


# ── dataclasses ──────────────────────────────────────────────────────────


@dataclass(frozen=True)
class GoalMilestone:
    percentage: int
    title: str
    points: int
    is_reached: bool = False
    reached_date: datetime | None = None


@dataclass(frozen=True)
class GoalAdjustment:
    date: datetime
    type: str
    old_value: Any
    new_value: Any
    reason: str
    auto_adjusted: bool = False


@dataclass(frozen=True)
class Goal:
    id: str
    title: str
    target_value: float
    start_date: datetime
    updated_at: datetime
    category: str = "frequency"   # frequency | duration | quality | consistency | technique | wellbeing
    type: str = "custom"          # daily | weekly | monthly | milestone | custom
    unit: str = "sessions"
    current_value: float = 0
    progress: float = 0
    status: str = "active"
    priority: str = "medium"
    deadline: datetime | None = None
    completed_date: datetime | None = None
    streak: int = 0
    best_streak: int = 0
    milestones: tuple[GoalMilestone, ...] = ()
    adjustment_history: tuple[GoalAdjustment, ...] = field(default=(), repr=False)


@dataclass(frozen=True)
class GoalInsight:
    goal_id: str
    type: str                 # ahead | on_track | behind | at_risk | stagnant
    message: str
    suggestion: str
    urgency: str              # low | medium | high
    action_required: bool


@dataclass(frozen=True)
class ProgressUpdate:
    goal: Goal
    milestones_reached: tuple[GoalMilestone, ...]
    goal_completed: bool


@dataclass(frozen=True)
class GoalSuggestion:
    id: str
    category: str
    title: str
    description: str
    target_value: int
    unit: str
    type: str
    difficulty: str


# ── creation & progress ──────────────────────────────────────────────────


def generate_milestones(target_value: float, unit: str) -> tuple[GoalMilestone, ...]:
    return tuple(
        GoalMilestone(
            percentage=pct,
            title=f"{pct}% complete: {round(target_value * pct / 100)} {unit}",
            points=100 if pct == 100 else 25,
        )
        for pct in MILESTONE_PERCENTAGES
    )


def create_goal(
    goal_id: str,
    title: str,
    target_value: float,
    *,
    now: datetime,
    deadline: datetime | None = None,
    **attrs: Any,
) -> Goal:
    """A fresh active goal with 25/50/75/100 % milestones."""
    if target_value <= 0:
        raise InvalidInputError(f"target_value must be > 0, got {target_value}")
    if deadline is not None and deadline <= now:
        raise InvalidInputError("deadline must be after the start date")
    unit = attrs.pop("unit", "sessions")
    return Goal(
        id=goal_id,
        title=title,
        target_value=target_value,
        start_date=now,
        updated_at=now,
        deadline=deadline,
        unit=unit,
        milestones=generate_milestones(target_value, unit),
        **attrs,
    )


def record_progress(goal: Goal, increment: float, now: datetime) -> ProgressUpdate:
    """Add *increment* to the goal, marking milestones and completion."""
    if increment < 0:
        raise InvalidInputError(f"increment must be >= 0, got {increment}")
    if goal.status != "active":
        raise InvalidInputError(f"goal {goal.id!r} is {goal.status}, not active")

    current = goal.current_value + increment
    progress = min(100.0, current / goal.target_value * 100)

    reached: list[GoalMilestone] = []
    milestones = []
    for milestone in goal.milestones:
        if not milestone.is_reached and progress >= milestone.percentage:
            milestone = replace(milestone, is_reached=True, reached_date=now)
            reached.append(milestone)
        milestones.append(milestone)

    completed = progress >= 100
    updated = replace(
        goal,
        current_value=current,
        progress=progress,
        status="completed" if completed else goal.status,
        completed_date=now if completed else goal.completed_date,
        milestones=tuple(milestones),
        updated_at=now,
    )
    return ProgressUpdate(updated, tuple(reached), completed)


# ── classification ───────────────────────────────────────────────────────


def time_elapsed_ratio(goal: Goal, now: datetime) -> float:
    if goal.deadline is None:
        return 0.5
    span = (goal.deadline - goal.start_date).total_seconds()
    if span <= 0:
        return 1.0
    return (now - goal.start_date).total_seconds() / span


def classify(goal: Goal, now: datetime) -> GoalInsight:
    """Health of *goal* at *now*."""
    elapsed = time_elapsed_ratio(goal, now)
    ratio = goal.progress / 100
    expected = round(elapsed * 100)
    shown = round(goal.progress)

    urgency = "low"
    action = False
    if ratio >= elapsed + AHEAD_MARGIN:
        kind = "ahead"
        message = f"You're ahead of schedule: {shown}% done vs {expected}% expected"
        suggestion = "Keep the momentum or consider raising the target"
    elif ratio >= elapsed - ON_TRACK_MARGIN:
        kind = "on_track"
        message = f"Right on schedule ({shown}%)"
        suggestion = "Stay consistent with your current routine"
    elif ratio >= elapsed - BEHIND_MARGIN:
        kind, urgency, action = "behind", "medium", True
        message = f"Slightly behind schedule: {shown}% done vs {expected}% expected"
        suggestion = "Increase frequency or intensity to catch up"
    else:
        kind, urgency, action = "at_risk", "high", True
        message = f"This goal is at risk: only {shown}% done"
        suggestion = "Consider adjusting the target or changing your approach"

    if goal.updated_at < now - STAGNANT_AFTER:
        kind, urgency, action = "stagnant", "medium", True
        message = "No progress on this goal in the past week"
        suggestion = "Refocus on this goal or pause it for now"

    return GoalInsight(
        goal_id=goal.id,
        type=kind,
        message=message,
        suggestion=suggestion,
        urgency=urgency,
        action_required=action,
    )


def analyze_goals(goals: Iterable[Goal], now: datetime) -> list[GoalInsight]:
    """Insights for active goals, most urgent first."""
    insights = [classify(g, now) for g in goals if g.status == "active"]
    insights.sort(key=lambda i: URGENCY_ORDER[i.urgency], reverse=True)
    return insights


# ── adjustments ──────────────────────────────────────────────────────────


def weekly_average(session_dates: Iterable[datetime], now: datetime) -> float:
    """Sessions per week over the last four weeks."""
    cutoff = now - timedelta(weeks=4)
    return sum(1 for d in session_dates if d >= cutoff) / 4


def auto_adjust(
    goal: Goal,
    recent_weekly_average: float,
    now: datetime,
) -> GoalAdjustment | None:
    """Propose an automatic adjustment, or ``None`` if the goal is fine."""
    if goal.deadline is not None and goal.progress < 50:
        days_left = math.ceil((goal.deadline - now).total_seconds() / 86400)
        if days_left <= DEADLINE_WARNING_DAYS and goal.progress < 30:
            return GoalAdjustment(
                date=now,
                type="deadline_extend",
                old_value=goal.deadline,
                new_value=goal.deadline + DEADLINE_EXTENSION,
                reason="Deadline extended because progress is still low",
                auto_adjusted=True,
            )

    if (
        goal.progress > 80
        and goal.type == "weekly"
        and recent_weekly_average > goal.target_value * EXCEEDING_FACTOR
    ):
        return GoalAdjustment(
            date=now,
            type="target_increase",
            old_value=goal.target_value,
            new_value=math.ceil(goal.target_value * TARGET_INCREASE_FACTOR),
            reason="Target raised because performance exceeds expectations",
            auto_adjusted=True,
        )

    return None


def apply_adjustment(goal: Goal, adjustment: GoalAdjustment) -> Goal:
    """Apply *adjustment* and append it to the goal's history."""
    if not adjustment.reason.strip():
        raise InvalidInputError("adjustment reason must not be empty")
    if adjustment.type not in ADJUSTMENT_TYPES:
        raise InvalidInputError(f"unknown adjustment type {adjustment.type!r}")

    changes: dict[str, Any] = {}
    if adjustment.type in ("target_increase", "target_decrease"):
        target = adjustment.new_value
        if target <= 0:
            raise InvalidInputError(f"target must be > 0, got {target}")
        progress = min(100.0, goal.current_value / target * 100)
        changes["target_value"] = target
        changes["progress"] = progress
        # Completion follows the recomputed progress in both directions.
        if goal.status == "active" and progress >= 100:
            changes["status"] = "completed"
            changes["completed_date"] = adjustment.date
        elif goal.status == "completed" and progress < 100:
            changes["status"] = "active"
            changes["completed_date"] = None
    elif adjustment.type in ("deadline_extend", "deadline_shorten"):
        changes["deadline"] = adjustment.new_value
    elif adjustment.type == "pause":
        if goal.status != "active":
            raise InvalidInputError(f"cannot pause a {goal.status} goal")
        changes["status"] = "paused"
    else:
        if goal.status != "paused":
            raise InvalidInputError(f"cannot resume a {goal.status} goal")
        changes["status"] = "active"

    logger.debug("Goal %s adjusted: %s", goal.id, adjustment.type)
    return replace(
        goal,
        adjustment_history=goal.adjustment_history + (adjustment,),
        updated_at=adjustment.date,
        **changes,
    )


def pause_goal(goal: Goal, now: datetime, reason: str = "Paused by user") -> Goal:
    return apply_adjustment(goal, GoalAdjustment(now, "pause", goal.status, "paused", reason))


def resume_goal(goal: Goal, now: datetime, reason: str = "Resumed by user") -> Goal:
    return apply_adjustment(goal, GoalAdjustment(now, "resume", goal.status, "active", reason))


# ── suggestions ──────────────────────────────────────────────────────────


def suggest_goals(
    session_durations: Iterable[float],
    weekly_avg: float,
    active_goals: Iterable[Goal] = (),
) -> list[GoalSuggestion]:
    """Canned goal ideas based on recent habits."""
    durations = list(session_durations)
    avg_duration = sum(durations) / len(durations) if durations else 0.0
    categories = {g.category for g in active_goals}

    suggestions = []
    if "consistency" not in categories and weekly_avg < 5:
        suggestions.append(GoalSuggestion(
            id="consistency-weekly",
            category="consistency",
            title="Weekly meditation routine",
            description="Build the habit with a steady weekly target",
            target_value=max(1, min(7, math.ceil(weekly_avg * 1.5))),
            unit="sessions per week",
            type="weekly",
            difficulty="beginner" if weekly_avg < 2 else "intermediate",
        ))
    if "duration" not in categories and avg_duration < 15:
        suggestions.append(GoalSuggestion(
            id="duration-increase",
            category="duration",
            title="Longer sessions",
            description="Gradually extend each meditation session",
            target_value=20,
            unit="minutes per session",
            type="milestone",
            difficulty="beginner" if avg_duration < 5 else "intermediate",
        ))
    return suggestions
