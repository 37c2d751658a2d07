"""SQLAlchemy ORM models for the local Cairn store."""

from datetime import datetime
from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, Date, Float, JSON
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class MeditationSession(Base):
    """One completed meditation session."""

    __tablename__ = "sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    completed_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    duration_minutes = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<MeditationSession id={self.id} at={self.completed_at} "
            f"minutes={self.duration_minutes}>"
        )


class UserProgress(Base):
    """Single-row table of running totals."""

    __tablename__ = "user_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    total_sessions = Column(Integer, nullable=False, default=0)
    total_minutes = Column(Integer, nullable=False, default=0)
    completed_courses = Column(Integer, nullable=False, default=0)

    def __repr__(self) -> str:
        return (
            f"<UserProgress sessions={self.total_sessions} "
            f"minutes={self.total_minutes}>"
        )


class ActivityLog(Base):
    """Append-only log of qualifying activities (one row per call)."""

    __tablename__ = "activity_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    activity_date = Column(Date, nullable=False)
    activity_type = Column(String(20), nullable=False)   # meditation | mood_tracking | course_study | mindfulness
    recorded_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class StreakRow(Base):
    """Latest streak state per activity type."""

    __tablename__ = "streaks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    activity_type = Column(String(20), nullable=False, unique=True)
    current_streak = Column(Integer, nullable=False, default=0)
    longest_streak = Column(Integer, nullable=False, default=0)
    last_activity_date = Column(Date, nullable=False)
    start_date = Column(Date, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    snapshots = Column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return (
            f"<StreakRow type={self.activity_type} "
            f"current={self.current_streak} longest={self.longest_streak}>"
        )


class EarnedAchievement(Base):
    """An unlocked achievement; rewards are stored as a JSON list."""

    __tablename__ = "achievements"

    id = Column(Integer, primary_key=True, autoincrement=True)
    achievement_id = Column(String(64), nullable=False, unique=True)
    title = Column(String(255), nullable=False)
    unlocked_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    rarity = Column(String(20), nullable=False)
    category = Column(String(64), nullable=False)
    points = Column(Integer, nullable=False, default=0)
    rewards = Column(JSON, nullable=False, default=list)

    def __repr__(self) -> str:
        return f"<EarnedAchievement id={self.achievement_id} points={self.points}>"


class MoodRow(Base):
    """One mood check-in, each field on a 1-5 scale."""

    __tablename__ = "mood_entries"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recorded_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    energy = Column(Integer, nullable=False)
    stress = Column(Integer, nullable=False)
    focus = Column(Integer, nullable=False)
    happiness = Column(Integer, nullable=False)
    anxiety = Column(Integer, nullable=False)
    gratitude = Column(Integer, nullable=False)


class EIMetricRow(Base):
    """One emotional-intelligence assessment, each score on a 1-10 scale."""

    __tablename__ = "ei_metrics"

    id = Column(Integer, primary_key=True, autoincrement=True)
    recorded_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    self_awareness = Column(Float, nullable=False)
    self_regulation = Column(Float, nullable=False)
    motivation = Column(Float, nullable=False)
    empathy = Column(Float, nullable=False)
    social_skills = Column(Float, nullable=False)
    overall_score = Column(Float, nullable=False)
    data_source = Column(String(32), nullable=False, default="self_assessment")
