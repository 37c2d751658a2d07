"""Database package."""

from .db import get_session, init_db, configure_engine
from .models import (
    MeditationSession, UserProgress, ActivityLog, StreakRow,
    EarnedAchievement, MoodRow, EIMetricRow,
)

__all__ = [
    "get_session", "init_db", "configure_engine",
    "MeditationSession", "UserProgress", "ActivityLog", "StreakRow",
    "EarnedAchievement", "MoodRow", "EIMetricRow",
]
