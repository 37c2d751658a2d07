"""Achievement catalog, unlock evaluation, and reward claiming.

Catalog
-------
``CATALOG`` is a static tuple of ``AchievementTemplate`` definitions.  A
template unlocks once every one of its requirements holds at the same time
against the user's aggregate ``UserStats``.  Earned achievements are never
revoked: templates already in ``earned_ids`` are skipped, whatever the
current stats say.

Requirement types
-----------------
    sessions_count      completed sessions
    total_minutes       total meditation minutes
    streak_days         best streak reached (longest streak)
    course_completion   completed courses
    mood_tracking       mood entries recorded
    consistency_score   sessions in the last 7 days

Rewards
-------
Each template lists reward templates.  On unlock they are materialised with
``claimed=False``; a reward with ``valid_for_days`` expires that many days
after the unlock.  Claiming returns the effect the caller must apply
(content unlock, feature flag, discount code, certificate, badge).
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Iterable

from ..errors import AlreadyClaimedError, ExpiredError, InvalidInputError, NotFoundError

logger = logging.getLogger(__name__)


REQUIREMENT_TYPES = frozenset({
    "sessions_count",
    "total_minutes",
    "streak_days",
    "course_completion",
    "mood_tracking",
    "consistency_score",
})

REWARD_TYPES = frozenset({
    "content_unlock", "feature_access", "badge", "discount", "certificate",
})

RARE_RARITIES = frozenset({"rare", "epic", "legendary"})


# ── catalog dataclasses ──────────────────────────────────────────────────


@dataclass(frozen=True)
class Requirement:
    type: str
    value: int
    description: str = ""

    def __post_init__(self) -> None:
        if self.type not in REQUIREMENT_TYPES:
            raise InvalidInputError(f"unknown requirement type {self.type!r}")
        if self.value <= 0:
            raise InvalidInputError(f"requirement value must be > 0, got {self.value}")


@dataclass(frozen=True)
class RewardTemplate:
    type: str
    title: str
    description: str = ""
    value: str | None = None
    valid_for_days: int | None = None


@dataclass(frozen=True)
class AchievementTemplate:
    id: str
    title: str
    description: str
    achievement_type: str     # streak | milestone | skill | consistency | exploration | mastery
    requirements: tuple[Requirement, ...]
    rewards: tuple[RewardTemplate, ...]
    rarity: str               # common | uncommon | rare | epic | legendary
    category: str
    points: int
    is_active: bool = True


# ── earned instances ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class Reward:
    id: str
    type: str
    title: str
    description: str = ""
    value: str | None = None
    valid_until: datetime | None = None
    claimed: bool = False
    claimed_at: datetime | None = None


@dataclass(frozen=True)
class Achievement:
    id: str
    title: str
    unlocked_at: datetime
    rewards: tuple[Reward, ...]
    rarity: str
    category: str
    points: int


@dataclass(frozen=True)
class ClaimResult:
    achievement: Achievement
    reward: Reward
    effect: tuple[str, str | None]    # (reward type, reward value)


@dataclass(frozen=True)
class UserStats:
    total_sessions: int = 0
    total_minutes: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    completed_courses: int = 0
    mood_entries: int = 0
    weekly_sessions: int = 0

    def __post_init__(self) -> None:
        for name in self.__dataclass_fields__:
            if getattr(self, name) < 0:
                raise InvalidInputError(f"{name} must be >= 0")


@dataclass(frozen=True)
class RequirementProgress:
    type: str
    description: str
    current: int
    target: int
    completed: bool


@dataclass(frozen=True)
class AchievementProgress:
    id: str
    title: str
    progress_percent: int
    per_requirement: tuple[RequirementProgress, ...]


# ── the catalog ──────────────────────────────────────────────────────────

CATALOG: tuple[AchievementTemplate, ...] = (
    AchievementTemplate(
        id="first_week_streak",
        title="One Week Strong",
        description="Meditate every day for 7 days in a row.",
        achievement_type="streak",
        requirements=(Requirement("streak_days", 7, "7-day meditation streak"),),
        rewards=(
            RewardTemplate("badge", "Consistency Starter"),
            RewardTemplate("content_unlock", "Advanced Breathing",
                           "Deeper breathing sessions", "advanced_breathing"),
        ),
        rarity="common", category="consistency", points=100,
    ),
    AchievementTemplate(
        id="month_streak_master",
        title="Monthly Consistency Master",
        description="Meditate every day for 30 days in a row.",
        achievement_type="streak",
        requirements=(Requirement("streak_days", 30, "30-day meditation streak"),),
        rewards=(
            RewardTemplate("certificate", "Consistency Master Certificate"),
            RewardTemplate("feature_access", "Session Builder Pro",
                           "Advanced custom session builder", "session_builder_pro"),
            RewardTemplate("discount", "25% Premium Discount",
                           "Discount on the premium upgrade", "25_percent_off",
                           valid_for_days=30),
        ),
        rarity="epic", category="consistency", points=1000,
    ),
    AchievementTemplate(
        id="hundred_sessions",
        title="Meditation Centurion",
        description="Complete 100 meditation sessions.",
        achievement_type="milestone",
        requirements=(Requirement("sessions_count", 100, "100 sessions completed"),),
        rewards=(
            RewardTemplate("badge", "Centurion"),
            RewardTemplate("content_unlock", "Master Class Collection",
                           "The master class library", "master_classes"),
        ),
        rarity="rare", category="milestone", points=500,
    ),
    AchievementTemplate(
        id="ten_hours_meditation",
        title="Ten Hours of Stillness",
        description="Spend a total of 10 hours in meditation.",
        achievement_type="milestone",
        requirements=(Requirement("total_minutes", 600, "600 minutes in total"),),
        rewards=(
            RewardTemplate("badge", "Deep Dedication"),
            RewardTemplate("content_unlock", "Deep Meditation Sessions",
                           "Longer, more intensive sessions", "deep_sessions"),
        ),
        rarity="uncommon", category="milestone", points=300,
    ),
    AchievementTemplate(
        id="technique_explorer",
        title="Technique Explorer",
        description="Try 5 meditation sessions.",
        achievement_type="skill",
        requirements=(Requirement("sessions_count", 5, "5 sessions completed"),),
        rewards=(
            RewardTemplate("badge", "Explorer"),
            RewardTemplate("content_unlock", "Hidden Techniques",
                           "Lesser-known meditation techniques", "secret_techniques"),
        ),
        rarity="common", category="exploration", points=150,
    ),
    AchievementTemplate(
        id="perfect_week",
        title="Perfect Week",
        description="At least 5 sessions within a single week.",
        achievement_type="consistency",
        requirements=(
            Requirement("sessions_count", 5, "At least 5 sessions"),
            Requirement("consistency_score", 5, "5 sessions in the last 7 days"),
        ),
        rewards=(RewardTemplate("badge", "Perfectionist"),),
        rarity="uncommon", category="consistency", points=200,
    ),
    AchievementTemplate(
        id="course_graduate",
        title="First Graduate",
        description="Finish your first course.",
        achievement_type="mastery",
        requirements=(Requirement("course_completion", 1, "1 course completed"),),
        rewards=(
            RewardTemplate("certificate", "Course Completion Certificate"),
            RewardTemplate("content_unlock", "Advanced Courses",
                           "Access to advanced courses", "advanced_courses"),
        ),
        rarity="rare", category="mastery", points=400,
    ),
    AchievementTemplate(
        id="mood_tracker_champion",
        title="Mood Tracking Champion",
        description="Log your mood 30 times.",
        achievement_type="consistency",
        requirements=(Requirement("mood_tracking", 30, "30 mood entries"),),
        rewards=(
            RewardTemplate("badge", "Mood Master"),
            RewardTemplate("feature_access", "Advanced Mood Analytics",
                           "In-depth mood analysis", "mood_analytics_pro"),
        ),
        rarity="rare", category="consistency", points=350,
    ),
    AchievementTemplate(
        id="mindfulness_sage",
        title="Mindfulness Sage",
        description="A full year of daily practice, 500 sessions and 3 courses.",
        achievement_type="mastery",
        requirements=(
            Requirement("streak_days", 365, "365-day streak"),
            Requirement("sessions_count", 500, "500 sessions completed"),
            Requirement("course_completion", 3, "3 courses completed"),
        ),
        rewards=(
            RewardTemplate("badge", "Sage"),
            RewardTemplate("certificate", "Master of Mindfulness Certificate"),
            RewardTemplate("feature_access", "Mentor Program",
                           "Mentor newer practitioners", "mentor_program"),
        ),
        rarity="legendary", category="mastery", points=5000,
    ),
)

_CATALOG_MAP: dict[str, AchievementTemplate] = {t.id: t for t in CATALOG}


def get_template(template_id: str) -> AchievementTemplate | None:
    """Return the catalog template for *template_id*, or ``None``."""
    return _CATALOG_MAP.get(template_id)


# ── requirement evaluation ───────────────────────────────────────────────


def requirement_value(requirement: Requirement, stats: UserStats) -> int:
    """The user's current value for the requirement's measure."""
    kind = requirement.type
    if kind == "sessions_count":
        return stats.total_sessions
    if kind == "total_minutes":
        return stats.total_minutes
    if kind == "streak_days":
        return max(stats.longest_streak, stats.current_streak)
    if kind == "course_completion":
        return stats.completed_courses
    if kind == "mood_tracking":
        return stats.mood_entries
    if kind == "consistency_score":
        return stats.weekly_sessions
    raise InvalidInputError(f"unknown requirement type {kind!r}")


def meets_requirements(template: AchievementTemplate, stats: UserStats) -> bool:
    return all(
        requirement_value(req, stats) >= req.value for req in template.requirements
    )


def _materialise(template: AchievementTemplate, now: datetime) -> Achievement:
    rewards = tuple(
        Reward(
            id=f"{template.id}:{index}",
            type=r.type,
            title=r.title,
            description=r.description,
            value=r.value,
            valid_until=(
                now + timedelta(days=r.valid_for_days)
                if r.valid_for_days is not None else None
            ),
        )
        for index, r in enumerate(template.rewards)
    )
    return Achievement(
        id=template.id,
        title=template.title,
        unlocked_at=now,
        rewards=rewards,
        rarity=template.rarity,
        category=template.category,
        points=template.points,
    )


def evaluate(
    templates: Iterable[AchievementTemplate],
    earned_ids: Iterable[str],
    stats: UserStats,
    now: datetime | None = None,
) -> list[Achievement]:
    """Return achievements newly unlocked by *stats*, in catalog order."""
    if now is None:
        now = datetime.now()
    earned = set(earned_ids)

    unlocked: list[Achievement] = []
    for template in templates:
        if not template.is_active or template.id in earned:
            continue
        if meets_requirements(template, stats):
            logger.debug("Unlocked achievement %s", template.id)
            unlocked.append(_materialise(template, now))
    return unlocked


# ── rewards ──────────────────────────────────────────────────────────────


def claim_reward(
    achievement: Achievement,
    reward_id: str,
    now: datetime | None = None,
) -> ClaimResult:
    """Mark one reward claimed.

    Raises ``NotFoundError``, ``AlreadyClaimedError`` or ``ExpiredError``.
    The returned achievement is a new instance; the input is untouched.
    """
    if now is None:
        now = datetime.now()

    for index, reward in enumerate(achievement.rewards):
        if reward.id == reward_id:
            break
    else:
        raise NotFoundError(f"reward {reward_id!r} not found on {achievement.id!r}")

    if reward.claimed:
        raise AlreadyClaimedError(f"reward {reward_id!r} already claimed")
    if reward.valid_until is not None and reward.valid_until < now:
        raise ExpiredError(f"reward {reward_id!r} expired at {reward.valid_until}")

    claimed = replace(reward, claimed=True, claimed_at=now)
    rewards = achievement.rewards[:index] + (claimed,) + achievement.rewards[index + 1:]
    return ClaimResult(
        achievement=replace(achievement, rewards=rewards),
        reward=claimed,
        effect=(claimed.type, claimed.value),
    )


# ── progress & stats ─────────────────────────────────────────────────────


def progress_toward_locked(
    templates: Iterable[AchievementTemplate],
    earned_ids: Iterable[str],
    stats: UserStats,
) -> list[AchievementProgress]:
    """Partial progress for every unearned active template, best first."""
    earned = set(earned_ids)
    results: list[AchievementProgress] = []

    for template in templates:
        if not template.is_active or template.id in earned:
            continue
        parts = []
        for req in template.requirements:
            value = requirement_value(req, stats)
            parts.append(RequirementProgress(
                type=req.type,
                description=req.description,
                current=min(value, req.value),
                target=req.value,
                completed=value >= req.value,
            ))
        ratio = sum(p.current / p.target for p in parts) / len(parts) if parts else 1.0
        results.append(AchievementProgress(
            id=template.id,
            title=template.title,
            progress_percent=round(ratio * 100),
            per_requirement=tuple(parts),
        ))

    results.sort(key=lambda p: p.progress_percent, reverse=True)
    return results


def achievement_stats(
    earned: Iterable[Achievement],
    templates: Iterable[AchievementTemplate] = CATALOG,
    now: datetime | None = None,
) -> dict:
    """Summary numbers for an achievements screen."""
    if now is None:
        now = datetime.now()
    earned = sorted(earned, key=lambda a: a.unlocked_at, reverse=True)
    active_count = sum(1 for t in templates if t.is_active)
    week_ago = now - timedelta(days=7)

    return {
        "total_achievements": len(earned),
        "total_points": sum(a.points for a in earned),
        "unclaimed_rewards": sum(
            1 for a in earned for r in a.rewards if not r.claimed
        ),
        "rare_achievements": sum(1 for a in earned if a.rarity in RARE_RARITIES),
        "recent_achievements": [a for a in earned if a.unlocked_at >= week_ago][:5],
        "category_breakdown": dict(Counter(a.category for a in earned)),
        "rarity_breakdown": dict(Counter(a.rarity for a in earned)),
        "completion_rate": (
            round(len(earned) / active_count * 100) if active_count else 0
        ),
    }
