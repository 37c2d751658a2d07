"""Tests for scaling level, milestone ladders, adaptive goals and recommendations."""

from __future__ import annotations

from datetime import date, timedelta

import pytest

from cairn.progress.scaling import (
    DAILY_MINUTES_CAP,
    MAX_RECOMMENDATIONS,
    MONTHLY_CHALLENGES,
    adaptive_goals,
    next_milestone,
    next_minute_target,
    next_session_target,
    next_streak_target,
    predict_milestones,
    recommendations,
    scaled_progress,
    scaling_level,
    tune_config,
)
from cairn.progress.snapshot import ADVANCED, BEGINNER, build_snapshot
from cairn.settings import DEFAULT_SCALING_CONFIG, ScalingConfig


# ═══════════════════════════════════════════════════════════════════════
#  SCALING LEVEL
# ═══════════════════════════════════════════════════════════════════════


class TestScalingLevel:

    def test_new_user_is_level_zero(self):
        assert scaling_level(build_snapshot(0, 0, 0, 0)) == 0

    def test_formula(self):
        # 2*10 + 0.1*100 + 3*2 + 1.5*4 = 42 -> floor(log2(42)) = 5
        assert scaling_level(build_snapshot(10, 100, 2, 4)) == 5

    def test_monotonic_in_sessions(self):
        levels = [scaling_level(build_snapshot(n, 0)) for n in range(0, 300, 7)]
        assert levels == sorted(levels)

    def test_never_negative(self):
        assert scaling_level(build_snapshot(0, 1)) == 0


# ═══════════════════════════════════════════════════════════════════════
#  LADDERS
# ═══════════════════════════════════════════════════════════════════════


class TestLadders:

    @pytest.mark.parametrize("current, target", [
        (0, 10), (9, 10), (10, 50), (50, 200), (200, 250),
    ])
    def test_session_ladder(self, current, target):
        assert next_session_target(current) == target

    @pytest.mark.parametrize("current, target", [
        (0, 30), (30, 60), (599, 600), (2400, 3600),
    ])
    def test_minute_ladder(self, current, target):
        assert next_minute_target(current) == target

    @pytest.mark.parametrize("current, target", [
        (0, 3), (3, 7), (29, 30), (365, 450),
    ])
    def test_streak_ladder(self, current, target):
        assert next_streak_target(current) == target

    @pytest.mark.parametrize("current", [0, 1, 9, 10, 199, 200, 1_234, 99_999])
    def test_target_always_above_current(self, current):
        assert next_session_target(current) > current
        assert next_minute_target(current) > current
        assert next_streak_target(current) > current

    def test_session_ladder_follows_config(self):
        config = ScalingConfig(beginner_threshold=5)
        assert next_session_target(0, config) == 5


# ═══════════════════════════════════════════════════════════════════════
#  NEXT MILESTONE
# ═══════════════════════════════════════════════════════════════════════


class TestNextMilestone:

    def test_all_zero_tie_goes_to_streak(self):
        milestone = next_milestone(build_snapshot(0, 0, 0, 0))
        assert milestone.type == "streak"
        assert milestone.target == 3
        assert milestone.progress_percent == 0

    def test_closest_weighted_dimension_wins(self):
        # streak 1/3*1.5 = 0.5, sessions 9/10 = 0.9, minutes 10/30
        milestone = next_milestone(build_snapshot(9, 10, 1, 1))
        assert milestone.type == "sessions"
        assert milestone.current == 9
        assert milestone.target == 10
        assert milestone.progress_percent == 90

    def test_streak_weight_applies(self):
        # streak 2/3*1.5 = 1.0 beats sessions 9/10
        milestone = next_milestone(build_snapshot(9, 10, 2, 2))
        assert milestone.type == "streak"

    def test_target_above_current(self):
        snap = build_snapshot(1_000, 50_000, 400, 400)
        milestone = next_milestone(snap)
        assert milestone.target > milestone.current


# ═══════════════════════════════════════════════════════════════════════
#  ADAPTIVE GOALS
# ═══════════════════════════════════════════════════════════════════════


class TestAdaptiveGoals:

    def test_new_user_floor(self):
        goals = adaptive_goals(build_snapshot(0, 0))
        assert goals.daily_minutes == 10
        assert goals.weekly_goal == 70
        assert goals.monthly_challenge == MONTHLY_CHALLENGES[BEGINNER]

    def test_scaled_by_engagement_bonus(self):
        goals = adaptive_goals(build_snapshot(4, 80))
        assert goals.daily_minutes == 23
        assert goals.weekly_goal == 161

    def test_short_sessions_use_minimum(self):
        assert adaptive_goals(build_snapshot(4, 12)).daily_minutes == 6

    def test_capped(self):
        assert adaptive_goals(build_snapshot(4, 400)).daily_minutes == DAILY_MINUTES_CAP

    def test_consistency_reward_for_week_streak(self):
        goals = adaptive_goals(build_snapshot(7, 140, 7, 7))
        assert goals.daily_minutes == 29
        assert goals.weekly_goal == 201

    def test_challenge_by_tier(self):
        goals = adaptive_goals(build_snapshot(60, 600))
        assert goals.monthly_challenge == MONTHLY_CHALLENGES[ADVANCED]


# ═══════════════════════════════════════════════════════════════════════
#  RECOMMENDATIONS
# ═══════════════════════════════════════════════════════════════════════


class TestRecommendations:

    def test_beginner_without_streak(self):
        recs = recommendations(build_snapshot(2, 20, 1, 1), 0)
        assert len(recs) == 2
        assert any("3 days" in r for r in recs)

    def test_capped_at_three(self):
        snap = build_snapshot(9, 2500)
        level = scaling_level(snap)
        assert level >= 8
        recs = recommendations(snap, level)
        assert len(recs) == MAX_RECOMMENDATIONS

    def test_deterministic(self):
        snap = build_snapshot(30, 300, 5, 9)
        assert recommendations(snap, 6) == recommendations(snap, 6)

    def test_advanced_long_streak(self):
        recs = recommendations(build_snapshot(300, 6000, 40, 40), 4)
        assert any("mentoring" in r for r in recs)


class TestScaledProgress:

    def test_bundles_everything(self):
        snap = build_snapshot(12, 180, 3, 5)
        result = scaled_progress(snap)
        assert result.snapshot is snap
        assert result.scaling_level == scaling_level(snap)
        assert result.next_milestone == next_milestone(snap)
        assert result.adaptive_goals == adaptive_goals(snap)

    def test_repeatable(self):
        snap = build_snapshot(12, 180, 3, 5)
        assert scaled_progress(snap) == scaled_progress(snap)


# ═══════════════════════════════════════════════════════════════════════
#  TUNING & PREDICTIONS
# ═══════════════════════════════════════════════════════════════════════


class TestTuneConfig:

    def test_busy_population(self):
        config = tune_config(
            DEFAULT_SCALING_CONFIG,
            total_users=20_000,
            average_sessions_per_user=30,
            retention_rate=0.8,
            engagement_score=0.9,
        )
        assert config.beginner_threshold == 15
        assert config.consistency_reward == pytest.approx(1.375)
        assert config.engagement_bonus == pytest.approx(1.2075)
        assert config.user_growth_factor == pytest.approx(1.122)

    def test_quiet_population_unchanged(self):
        config = tune_config(
            DEFAULT_SCALING_CONFIG,
            total_users=50,
            average_sessions_per_user=2,
            retention_rate=0.3,
            engagement_score=0.1,
        )
        assert config == DEFAULT_SCALING_CONFIG


class TestPredictMilestones:

    def test_weekly_projection(self):
        today = date(2024, 3, 1)
        snap = build_snapshot(14, 140, 7, 7, total_days=7)
        predictions = predict_milestones(snap, today)
        assert len(predictions) == 5
        first = predictions[0]
        assert first.date == today + timedelta(days=1)
        assert first.predicted_sessions == 16
        assert first.predicted_minutes == 160
        assert first.predicted_streak == 8
        assert first.likelihood == 95

    def test_empty_history(self):
        predictions = predict_milestones(build_snapshot(0, 0), date(2024, 1, 1), days=7)
        assert [p.predicted_sessions for p in predictions] == [0]
        assert predictions[0].likelihood == 0
