"""Adaptive milestones, goals and recommendations.

Scaling Level
-------------
A coarse engagement tier::

    activity = 2*sessions + 0.1*minutes + 3*current_streak + 1.5*longest_streak
    level    = floor(log2(max(1, activity)))

A brand-new user sits at level 0.

Milestone Ladders
-----------------
    sessions   beginner, intermediate, advanced thresholds,
               then ceil(current * growth / 50) * 50
    minutes    30, 60, 120, 300, 600, 1200, 2400,
               then ceil(current * 1.5 / 100) * 100
    streak     3, 7, 14, 30, 60, 100, 365,
               then ceil(current * 1.2 / 50) * 50

The target is always strictly above the current value.  The dimension with
the best weighted progress wins (streak weight 1.5); ties go to streak, then
sessions, then minutes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, timedelta

from ..settings import DEFAULT_SCALING_CONFIG, ScalingConfig
from .snapshot import ADVANCED, BEGINNER, INTERMEDIATE, ProgressSnapshot


# ── ladders (easy to re-tune) ────────────────────────────────────────────

MINUTE_LADDER = (30, 60, 120, 300, 600, 1200, 2400)
STREAK_LADDER = (3, 7, 14, 30, 60, 100, 365)

MINUTE_GROWTH = 1.5
STREAK_GROWTH = 1.2

# Listed in tie-break priority order.
MILESTONE_WEIGHTS: dict[str, float] = {
    "streak": 1.5,
    "sessions": 1.0,
    "minutes": 1.0,
}

DAILY_MINUTES_FLOOR = 10
DAILY_MINUTES_CAP = 30
MIN_SESSION_MINUTES = 5
CONSISTENCY_STREAK_DAYS = 7
MAX_RECOMMENDATIONS = 3

MONTHLY_CHALLENGES: dict[str, str] = {
    BEGINNER: "Practice on 15 days this month",
    INTERMEDIATE: "Reach 20 practice days with at least 15 minutes per session",
    ADVANCED: "Explore 3 different techniques across 25 practice days",
}


@dataclass(frozen=True)
class MilestoneTarget:
    type: str             # "sessions" | "minutes" | "streak"
    current: int
    target: int
    progress_percent: int


@dataclass(frozen=True)
class AdaptiveGoals:
    daily_minutes: int
    weekly_goal: int
    monthly_challenge: str


@dataclass(frozen=True)
class ScaledProgress:
    snapshot: ProgressSnapshot
    scaling_level: int
    next_milestone: MilestoneTarget
    recommendations: list[str]
    adaptive_goals: AdaptiveGoals


@dataclass(frozen=True)
class MilestonePrediction:
    date: date
    predicted_sessions: int
    predicted_minutes: int
    predicted_streak: int
    likelihood: int


# ── scaling level ────────────────────────────────────────────────────────


def scaling_level(snapshot: ProgressSnapshot) -> int:
    activity = (
        snapshot.total_sessions * 2
        + snapshot.total_minutes * 0.1
        + snapshot.current_streak * 3
        + snapshot.longest_streak * 1.5
    )
    return math.floor(math.log2(max(activity, 1)))


# ── milestones ───────────────────────────────────────────────────────────


def _from_ladder(current: int, ladder: tuple[int, ...], growth: float, step: int) -> int:
    for rung in ladder:
        if current < rung:
            return rung
    return math.ceil(current * growth / step) * step


def next_session_target(current: int, config: ScalingConfig = DEFAULT_SCALING_CONFIG) -> int:
    ladder = (
        config.beginner_threshold,
        config.intermediate_threshold,
        config.advanced_threshold,
    )
    return _from_ladder(current, ladder, config.user_growth_factor, 50)


def next_minute_target(current: int) -> int:
    return _from_ladder(current, MINUTE_LADDER, MINUTE_GROWTH, 100)


def next_streak_target(current: int) -> int:
    return _from_ladder(current, STREAK_LADDER, STREAK_GROWTH, 50)


def next_milestone(
    snapshot: ProgressSnapshot,
    config: ScalingConfig = DEFAULT_SCALING_CONFIG,
) -> MilestoneTarget:
    """Pick the milestone the user is relatively closest to."""
    candidates = {
        "streak": (snapshot.current_streak, next_streak_target(snapshot.current_streak)),
        "sessions": (snapshot.total_sessions, next_session_target(snapshot.total_sessions, config)),
        "minutes": (snapshot.total_minutes, next_minute_target(snapshot.total_minutes)),
    }

    best_type = None
    best_score = -1.0
    for kind, weight in MILESTONE_WEIGHTS.items():
        current, target = candidates[kind]
        score = current / target * weight
        # Strict comparison keeps the earlier (higher-priority) kind on ties.
        if score > best_score:
            best_type, best_score = kind, score

    current, target = candidates[best_type]
    return MilestoneTarget(
        type=best_type,
        current=current,
        target=target,
        progress_percent=min(100, round(current / target * 100)),
    )


# ── adaptive goals ───────────────────────────────────────────────────────


def adaptive_goals(
    snapshot: ProgressSnapshot,
    config: ScalingConfig = DEFAULT_SCALING_CONFIG,
) -> AdaptiveGoals:
    daily = float(DAILY_MINUTES_FLOOR)
    if snapshot.total_sessions > 0:
        recent = max(snapshot.average_session_length, MIN_SESSION_MINUTES)
        daily = min(recent * config.engagement_bonus, DAILY_MINUTES_CAP)

    if snapshot.current_streak >= CONSISTENCY_STREAK_DAYS:
        daily *= config.consistency_reward

    return AdaptiveGoals(
        daily_minutes=round(daily),
        weekly_goal=round(daily * 7),
        monthly_challenge=MONTHLY_CHALLENGES.get(
            snapshot.level_tier, MONTHLY_CHALLENGES[BEGINNER],
        ),
    )


# ── recommendations ──────────────────────────────────────────────────────


def recommendations(snapshot: ProgressSnapshot, level: int) -> list[str]:
    """Up to three canned suggestions; same inputs, same output."""
    recs: list[str] = []

    if snapshot.level_tier == BEGINNER:
        recs.append("Start with 5-10 minute sessions every day")
        if snapshot.current_streak < 3:
            recs.append("Focus on consistency: aim for 3 days in a row")
    elif snapshot.level_tier == INTERMEDIATE:
        recs.append("Try a variety of meditation techniques")
        if snapshot.total_sessions and snapshot.average_session_length < 15:
            recs.append("Lengthen your sessions to 15-20 minutes")
    else:
        recs.append("Explore advanced practices such as deep mindfulness")
        if snapshot.current_streak >= 30:
            recs.append("Consider mentoring newer practitioners")

    if level >= 5:
        recs.append("In-depth analytics are now available")
    if level >= 8:
        recs.append("Join the advanced practitioners community")

    return recs[:MAX_RECOMMENDATIONS]


def scaled_progress(
    snapshot: ProgressSnapshot,
    config: ScalingConfig = DEFAULT_SCALING_CONFIG,
) -> ScaledProgress:
    level = scaling_level(snapshot)
    return ScaledProgress(
        snapshot=snapshot,
        scaling_level=level,
        next_milestone=next_milestone(snapshot, config),
        recommendations=recommendations(snapshot, level),
        adaptive_goals=adaptive_goals(snapshot, config),
    )


# ── population tuning & projections ──────────────────────────────────────


def tune_config(
    config: ScalingConfig,
    *,
    total_users: int,
    average_sessions_per_user: float,
    retention_rate: float,
    engagement_score: float,
) -> ScalingConfig:
    """Return a config re-tuned from user-base metrics."""
    changes: dict[str, float] = {}
    if average_sessions_per_user > config.beginner_threshold:
        changes["beginner_threshold"] = round(average_sessions_per_user * 0.5)
    if retention_rate > 0.7:
        changes["consistency_reward"] = config.consistency_reward * 1.1
    if engagement_score > 0.8:
        changes["engagement_bonus"] = config.engagement_bonus * 1.05
    if total_users > 10_000:
        changes["user_growth_factor"] = config.user_growth_factor * 1.02
    return replace(config, **changes)


def predict_milestones(
    snapshot: ProgressSnapshot,
    today: date,
    days: int = 30,
) -> list[MilestonePrediction]:
    """Weekly projections at the user's historical daily rate."""
    active_days = max(snapshot.total_days, 1)
    session_rate = snapshot.total_sessions / active_days
    minute_rate = snapshot.total_minutes / active_days
    likelihood = round(min(snapshot.current_streak / active_days * 100, 95))

    predictions = []
    for offset in range(1, days + 1, 7):
        predictions.append(MilestonePrediction(
            date=today + timedelta(days=offset),
            predicted_sessions=round(snapshot.total_sessions + session_rate * offset),
            predicted_minutes=round(snapshot.total_minutes + minute_rate * offset),
            predicted_streak=snapshot.current_streak + offset,
            likelihood=likelihood,
        ))
    return predictions
