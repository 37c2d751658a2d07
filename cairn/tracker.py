"""Local progress tracker: the glue between the store and the scoring code.

``ProgressTracker`` loads raw records from the SQLAlchemy store, hands them
to the pure functions in :mod:`cairn.progress`, and appends the results.
None of the scoring modules know this file exists; a cloud-backed caller
would do the same job against its own backend.

Typical flow after a meditation session::

    tracker = ProgressTracker()
    result = tracker.record_session(duration_minutes=12)
    result["streak"].current_streak
    result["new_achievements"]

Achievements are checked after every recorded session, mood entry and
course completion.  Unlocks are stored once and never removed.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from .database.db import get_session
from .database.models import (
    ActivityLog,
    EarnedAchievement,
    EIMetricRow,
    MeditationSession,
    MoodRow,
    StreakRow,
    UserProgress,
)
from .errors import CairnError, InvalidInputError, NotFoundError
from .progress.achievements import (
    CATALOG,
    Achievement,
    AchievementTemplate,
    Reward,
    UserStats,
    claim_reward,
    evaluate,
    progress_toward_locked,
)
from .progress.scaling import ScaledProgress, scaled_progress
from .progress.snapshot import ProgressSnapshot, build_snapshot
from .progress.streaks import (
    ActivityType,
    StreakSnapshot,
    StreakState,
    update_streak,
)
from .progress.trends import (
    EI_DIMENSIONS,
    EmotionalMetric,
    GrowthInsight,
    MoodEntry,
    ei_growth_insights,
    mood_trends,
    period_bounds,
)
from .settings import Settings

logger = logging.getLogger(__name__)


# ── row <-> value conversions ────────────────────────────────────────────


def _streak_from_row(row: StreakRow) -> StreakState:
    return StreakState(
        current_streak=row.current_streak,
        longest_streak=row.longest_streak,
        last_activity_date=row.last_activity_date,
        start_date=row.start_date,
        is_active=row.is_active,
        snapshots=tuple(
            StreakSnapshot(
                date=date.fromisoformat(s["date"]),
                streak_count=s["streak_count"],
                activities=tuple(s["activities"]),
            )
            for s in row.snapshots
        ),
        activity_type=ActivityType(row.activity_type),
    )


def _write_streak(row: StreakRow, state: StreakState) -> None:
    row.current_streak = state.current_streak
    row.longest_streak = state.longest_streak
    row.last_activity_date = state.last_activity_date
    row.start_date = state.start_date
    row.is_active = state.is_active
    row.snapshots = [
        {
            "date": s.date.isoformat(),
            "streak_count": s.streak_count,
            "activities": list(s.activities),
        }
        for s in state.snapshots
    ]


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value is not None else None


def _rewards_to_json(rewards: tuple[Reward, ...]) -> list[dict]:
    return [
        {
            "id": r.id,
            "type": r.type,
            "title": r.title,
            "description": r.description,
            "value": r.value,
            "valid_until": _iso(r.valid_until),
            "claimed": r.claimed,
            "claimed_at": _iso(r.claimed_at),
        }
        for r in rewards
    ]


def _achievement_from_row(row: EarnedAchievement) -> Achievement:
    return Achievement(
        id=row.achievement_id,
        title=row.title,
        unlocked_at=row.unlocked_at,
        rewards=tuple(
            Reward(
                id=r["id"],
                type=r["type"],
                title=r["title"],
                description=r["description"],
                value=r["value"],
                valid_until=_parse(r["valid_until"]),
                claimed=r["claimed"],
                claimed_at=_parse(r["claimed_at"]),
            )
            for r in row.rewards
        ),
        rarity=row.rarity,
        category=row.category,
        points=row.points,
    )


# ── tracker ──────────────────────────────────────────────────────────────


class ProgressTracker:
    """Records activity for the single local user and derives progress."""

    def __init__(
        self,
        settings: Settings | None = None,
        templates: tuple[AchievementTemplate, ...] = CATALOG,
    ) -> None:
        self._settings = settings or Settings()
        self._templates = templates

    # ── activities & streaks ─────────────────────────────────────────

    def _fold_activity(
        self,
        db,
        activity_date: date | datetime,
        kind: ActivityType,
    ) -> StreakState:
        """Update *kind*'s streak inside an open session; no commit.

        Raises before touching any row, so callers run this first and
        the whole write is dropped on a rejected date.
        """
        row = db.query(StreakRow).filter_by(activity_type=kind.value).first()
        previous = _streak_from_row(row) if row is not None else None
        try:
            state = update_streak(
                previous, activity_date, kind,
                retention=self._settings.snapshot_retention,
            )
        except InvalidInputError as exc:
            logger.warning("Rejected %s activity: %s", kind.value, exc)
            raise

        db.add(ActivityLog(
            activity_date=state.last_activity_date, activity_type=kind.value,
        ))
        if row is None:
            row = StreakRow(activity_type=kind.value)
            db.add(row)
        _write_streak(row, state)

        logger.info(
            "Recorded %s on %s: streak %d (longest %d)",
            kind.value, state.last_activity_date,
            state.current_streak, state.longest_streak,
        )
        return state

    def record_activity(
        self,
        activity_date: date | datetime,
        activity_type: ActivityType | str = ActivityType.MEDITATION,
    ) -> StreakState:
        """Log one activity and fold it into that type's streak."""
        kind = ActivityType(activity_type)
        with get_session() as db:
            state = self._fold_activity(db, activity_date, kind)
            db.commit()
        return state

    def get_streak(
        self, activity_type: ActivityType | str = ActivityType.MEDITATION,
    ) -> StreakState | None:
        kind = ActivityType(activity_type)
        with get_session() as db:
            row = db.query(StreakRow).filter_by(activity_type=kind.value).first()
            return _streak_from_row(row) if row is not None else None

    # ── sessions, courses, mood, EI ──────────────────────────────────

    def record_session(
        self,
        duration_minutes: int,
        completed_at: datetime | None = None,
    ) -> dict:
        """Store a completed session, update totals and streak, check unlocks.

        Returns a dict with ``streak``, ``new_achievements`` and ``progress``.
        """
        if completed_at is None:
            completed_at = datetime.now()
        if duration_minutes < 0:
            raise InvalidInputError(f"duration_minutes must be >= 0, got {duration_minutes}")

        with get_session() as db:
            streak = self._fold_activity(db, completed_at, ActivityType.MEDITATION)
            totals: UserProgress = db.query(UserProgress).first()
            totals.total_sessions += 1
            totals.total_minutes += duration_minutes
            db.add(MeditationSession(
                completed_at=completed_at, duration_minutes=duration_minutes,
            ))
            db.commit()

        new = self.check_achievements(completed_at)
        return {
            "streak": streak,
            "new_achievements": new,
            "progress": self.scaled_progress(completed_at.date()),
        }

    def complete_course(self, now: datetime | None = None) -> list[Achievement]:
        if now is None:
            now = datetime.now()
        with get_session() as db:
            self._fold_activity(db, now, ActivityType.COURSE_STUDY)
            totals: UserProgress = db.query(UserProgress).first()
            totals.completed_courses += 1
            db.commit()
        return self.check_achievements(now)

    def record_mood(self, entry: MoodEntry) -> list[Achievement]:
        with get_session() as db:
            self._fold_activity(db, entry.date, ActivityType.MOOD_TRACKING)
            db.add(MoodRow(
                recorded_at=entry.date,
                energy=entry.energy,
                stress=entry.stress,
                focus=entry.focus,
                happiness=entry.happiness,
                anxiety=entry.anxiety,
                gratitude=entry.gratitude,
            ))
            db.commit()
        return self.check_achievements(entry.date)

    def record_assessment(self, metric: EmotionalMetric) -> float:
        """Store an EI assessment; returns its overall score."""
        with get_session() as db:
            db.add(EIMetricRow(
                recorded_at=metric.date,
                overall_score=metric.overall_score,
                data_source=metric.data_source,
                **{name: getattr(metric, name) for name in EI_DIMENSIONS},
            ))
            db.commit()
        return metric.overall_score

    # ── derived views ────────────────────────────────────────────────

    def user_stats(self, now: datetime) -> UserStats:
        week_ago = now - timedelta(days=7)
        with get_session() as db:
            totals: UserProgress = db.query(UserProgress).first()
            weekly = (
                db.query(MeditationSession)
                .filter(MeditationSession.completed_at >= week_ago)
                .count()
            )
            moods = db.query(MoodRow).count()
            row = db.query(StreakRow).filter_by(
                activity_type=ActivityType.MEDITATION.value,
            ).first()
            return UserStats(
                total_sessions=totals.total_sessions,
                total_minutes=totals.total_minutes,
                current_streak=self._live_streak(row, now.date()),
                longest_streak=row.longest_streak if row else 0,
                completed_courses=totals.completed_courses,
                mood_entries=moods,
                weekly_sessions=weekly,
            )

    @staticmethod
    def _live_streak(row: StreakRow | None, today: date) -> int:
        """Stored streak, or 0 once a full day has been missed."""
        if row is None or (today - row.last_activity_date).days > 1:
            return 0
        return row.current_streak

    def snapshot(self, today: date | None = None) -> ProgressSnapshot:
        if today is None:
            today = date.today()
        stats = self.user_stats(datetime.combine(today, datetime.max.time()))
        with get_session() as db:
            completed_today = (
                db.query(ActivityLog)
                .filter_by(
                    activity_date=today,
                    activity_type=ActivityType.MEDITATION.value,
                )
                .count() > 0
            )
            active_days = (
                db.query(ActivityLog.activity_date)
                .filter_by(activity_type=ActivityType.MEDITATION.value)
                .distinct()
                .count()
            )
        return build_snapshot(
            stats.total_sessions,
            stats.total_minutes,
            stats.current_streak,
            max(stats.longest_streak, stats.current_streak),
            total_days=active_days,
            completed_today=completed_today,
            config=self._settings.scaling,
        )

    def scaled_progress(self, today: date | None = None) -> ScaledProgress:
        return scaled_progress(self.snapshot(today), self._settings.scaling)

    # ── achievements ─────────────────────────────────────────────────

    def earned(self) -> list[Achievement]:
        with get_session() as db:
            rows = (
                db.query(EarnedAchievement)
                .order_by(EarnedAchievement.unlocked_at.desc())
                .all()
            )
            return [_achievement_from_row(r) for r in rows]

    def check_achievements(self, now: datetime | None = None) -> list[Achievement]:
        """Unlock everything the user qualifies for but hasn't received yet."""
        if now is None:
            now = datetime.now()
        stats = self.user_stats(now)
        with get_session() as db:
            earned_ids = {
                a.achievement_id for a in db.query(EarnedAchievement).all()
            }
            unlocked = evaluate(self._templates, earned_ids, stats, now)
            for achievement in unlocked:
                db.add(EarnedAchievement(
                    achievement_id=achievement.id,
                    title=achievement.title,
                    unlocked_at=achievement.unlocked_at,
                    rarity=achievement.rarity,
                    category=achievement.category,
                    points=achievement.points,
                    rewards=_rewards_to_json(achievement.rewards),
                ))
            db.commit()

        for achievement in unlocked:
            logger.info("Achievement unlocked: %s", achievement.id)
        return unlocked

    def locked_progress(self, now: datetime | None = None) -> list:
        if now is None:
            now = datetime.now()
        stats = self.user_stats(now)
        earned_ids = {a.id for a in self.earned()}
        return progress_toward_locked(self._templates, earned_ids, stats)

    def claim(
        self,
        achievement_id: str,
        reward_id: str,
        now: datetime | None = None,
    ) -> tuple[str, str | None]:
        """Claim a reward and return its ``(type, value)`` effect."""
        if now is None:
            now = datetime.now()
        with get_session() as db:
            row = (
                db.query(EarnedAchievement)
                .filter_by(achievement_id=achievement_id)
                .first()
            )
            if row is None:
                raise NotFoundError(f"achievement {achievement_id!r} not earned")
            try:
                result = claim_reward(_achievement_from_row(row), reward_id, now)
            except CairnError as exc:
                logger.warning("Claim of %s failed: %s", reward_id, exc)
                raise
            row.rewards = _rewards_to_json(result.achievement.rewards)
            db.commit()

        logger.info("Reward %s claimed from %s", reward_id, achievement_id)
        return result.effect

    # ── trends ───────────────────────────────────────────────────────

    def mood_trends(self, now: datetime, days: int = 30) -> dict[str, dict]:
        cutoff = now - timedelta(days=days)
        with get_session() as db:
            rows = (
                db.query(MoodRow)
                .filter(MoodRow.recorded_at >= cutoff)
                .order_by(MoodRow.recorded_at)
                .all()
            )
            entries = [
                MoodEntry(
                    date=r.recorded_at, energy=r.energy, stress=r.stress,
                    focus=r.focus, happiness=r.happiness, anxiety=r.anxiety,
                    gratitude=r.gratitude,
                )
                for r in rows
            ]
        return mood_trends(entries, now, days, self._settings.trends)

    def _metrics_between(self, db, start: datetime, end: datetime) -> list[EmotionalMetric]:
        rows = (
            db.query(EIMetricRow)
            .filter(EIMetricRow.recorded_at >= start, EIMetricRow.recorded_at < end)
            .order_by(EIMetricRow.recorded_at)
            .all()
        )
        return [
            EmotionalMetric(
                date=r.recorded_at,
                data_source=r.data_source,
                **{name: getattr(r, name) for name in EI_DIMENSIONS},
            )
            for r in rows
        ]

    def ei_insights(self, timeframe: str, now: datetime) -> list[GrowthInsight]:
        current_start, previous_start = period_bounds(timeframe, now)
        with get_session() as db:
            current = self._metrics_between(db, current_start, now + timedelta(microseconds=1))
            previous = self._metrics_between(db, previous_start, current_start)
        return ei_growth_insights(current, previous, self._settings.trends)
