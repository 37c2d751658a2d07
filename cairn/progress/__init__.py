"""Progress scoring package."""

from .streaks import (
    ActivityType,
    ActivityRecord,
    StreakState,
    StreakSnapshot,
    update_streak,
    streak_from_records,
)
from .snapshot import ProgressSnapshot, build_snapshot, after_session
from .scaling import (
    MilestoneTarget,
    AdaptiveGoals,
    scaling_level,
    next_milestone,
    adaptive_goals,
    recommendations,
    scaled_progress,
)
from .achievements import (
    CATALOG,
    AchievementTemplate,
    Achievement,
    UserStats,
    evaluate,
    claim_reward,
    progress_toward_locked,
)
from .goals import Goal, GoalInsight, GoalAdjustment, classify, auto_adjust, apply_adjustment
from .trends import EmotionalMetric, MoodEntry, average_and_trend, recommendation

__all__ = [
    "ActivityType",
    "ActivityRecord",
    "StreakState",
    "StreakSnapshot",
    "update_streak",
    "streak_from_records",
    "ProgressSnapshot",
    "build_snapshot",
    "after_session",
    "MilestoneTarget",
    "AdaptiveGoals",
    "scaling_level",
    "next_milestone",
    "adaptive_goals",
    "recommendations",
    "scaled_progress",
    "CATALOG",
    "AchievementTemplate",
    "Achievement",
    "UserStats",
    "evaluate",
    "claim_reward",
    "progress_toward_locked",
    "Goal",
    "GoalInsight",
    "GoalAdjustment",
    "classify",
    "auto_adjust",
    "apply_adjustment",
    "EmotionalMetric",
    "MoodEntry",
    "average_and_trend",
    "recommendation",
]
