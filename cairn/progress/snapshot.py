"""Derived progress aggregates.

``ProgressSnapshot`` is never stored on its own; it is recomputed from raw
totals every time a dashboard needs it.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from ..errors import InvalidInputError
from ..settings import DEFAULT_SCALING_CONFIG, ScalingConfig


BEGINNER = "Beginner"
INTERMEDIATE = "Intermediate"
ADVANCED = "Advanced"


@dataclass(frozen=True)
class ProgressSnapshot:
    total_sessions: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    average_session_length: float = 0.0
    completion_rate: int = 0
    total_days: int = 0
    mindfulness_score: float = 0.0
    completed_today: bool = False
    level_tier: str = BEGINNER


def level_tier(total_sessions: int, config: ScalingConfig = DEFAULT_SCALING_CONFIG) -> str:
    """Beginner / Intermediate / Advanced by session count."""
    if total_sessions < config.beginner_threshold:
        return BEGINNER
    if total_sessions < config.intermediate_threshold:
        return INTERMEDIATE
    return ADVANCED


def _completion_rate(sessions: int) -> int:
    if sessions == 0:
        return 0
    expected = sessions + max(1, math.floor(sessions * 0.1))
    return min(100, round(sessions / expected * 100))


def _mindfulness_score(sessions: int, streak: int) -> float:
    if sessions == 0:
        return 0.0
    return min(10.0, round(sessions * 0.15 + streak * 0.1 + 5, 1))


def build_snapshot(
    total_sessions: int,
    total_minutes: int,
    current_streak: int = 0,
    longest_streak: int | None = None,
    *,
    total_days: int | None = None,
    completed_today: bool = False,
    config: ScalingConfig = DEFAULT_SCALING_CONFIG,
) -> ProgressSnapshot:
    """Derive a snapshot from raw totals.

    ``longest_streak`` defaults to ``current_streak`` and ``total_days`` to
    an estimate of 1.5 sessions per active day.  Negative inputs raise
    ``InvalidInputError``.
    """
    if longest_streak is None:
        longest_streak = current_streak
    for name, value in (
        ("total_sessions", total_sessions),
        ("total_minutes", total_minutes),
        ("current_streak", current_streak),
        ("longest_streak", longest_streak),
    ):
        if value < 0:
            raise InvalidInputError(f"{name} must be >= 0, got {value}")
    if longest_streak < current_streak:
        raise InvalidInputError("longest_streak cannot be below current_streak")
    if total_days is None:
        total_days = max(math.ceil(total_sessions / 1.5), current_streak)
    elif total_days < 0:
        raise InvalidInputError(f"total_days must be >= 0, got {total_days}")

    average = total_minutes / total_sessions if total_sessions else 0.0

    return ProgressSnapshot(
        total_sessions=total_sessions,
        total_minutes=total_minutes,
        current_streak=current_streak,
        longest_streak=longest_streak,
        average_session_length=average,
        completion_rate=_completion_rate(total_sessions),
        total_days=total_days,
        mindfulness_score=_mindfulness_score(total_sessions, current_streak),
        completed_today=completed_today,
        level_tier=level_tier(total_sessions, config),
    )


def after_session(
    snapshot: ProgressSnapshot,
    session_minutes: int,
    config: ScalingConfig = DEFAULT_SCALING_CONFIG,
) -> ProgressSnapshot:
    """Snapshot after one more completed session today.

    The first session of a day extends the streak by one; later ones don't.
    """
    if session_minutes < 0:
        raise InvalidInputError(f"session_minutes must be >= 0, got {session_minutes}")
    streak = snapshot.current_streak if snapshot.completed_today else snapshot.current_streak + 1
    return build_snapshot(
        snapshot.total_sessions + 1,
        snapshot.total_minutes + session_minutes,
        streak,
        max(snapshot.longest_streak, streak),
        completed_today=True,
        config=config,
    )
