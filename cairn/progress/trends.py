"""Mood and emotional-intelligence trend analysis.

Trend rule
----------
Split a time-ordered series in two by count (midpoint ``n // 2``) and
compare the means::

    change = mean(second_half) - mean(first_half)

For higher-is-better metrics ``change > +0.3`` is *improving* and
``change < -0.3`` *declining*.  ``stress`` and ``anxiety`` are inverted:
a falling value is an improvement.  Fewer than two points is *stable*.

Recommendations
---------------
Each ``(metric, trend)`` pair maps to a few equally valid canned strings.
The pick is a stable hash of the pair and a seed, so the same inputs always
give the same text.
"""

from __future__ import annotations

import zlib
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable, Mapping, Sequence

import numpy as np

from ..errors import InvalidInputError
from ..settings import TrendSettings


IMPROVING = "improving"
DECLINING = "declining"
STABLE = "stable"

INVERTED_METRICS = frozenset({"stress", "anxiety"})
MOOD_METRICS = ("energy", "stress", "focus", "happiness", "anxiety", "gratitude")
EI_DIMENSIONS = (
    "self_awareness", "self_regulation", "motivation", "empathy", "social_skills",
)

DEFAULT_TREND_SETTINGS = TrendSettings()
NEUTRAL_EI_SCORE = 5.0
FALLBACK_RECOMMENDATION = "Keep up a consistent meditation practice"


# ── data ─────────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class TrendResult:
    average: float
    trend: str
    change: float


@dataclass(frozen=True)
class MoodEntry:
    date: datetime
    energy: int
    stress: int
    focus: int
    happiness: int
    anxiety: int
    gratitude: int

    def __post_init__(self) -> None:
        for name in MOOD_METRICS:
            value = getattr(self, name)
            if not 1 <= value <= 5:
                raise InvalidInputError(f"{name} must be within 1-5, got {value}")


@dataclass(frozen=True)
class EmotionalMetric:
    date: datetime
    self_awareness: float
    self_regulation: float
    motivation: float
    empathy: float
    social_skills: float
    data_source: str = "self_assessment"

    def __post_init__(self) -> None:
        for name in EI_DIMENSIONS:
            value = getattr(self, name)
            if not 1 <= value <= 10:
                raise InvalidInputError(f"{name} must be within 1-10, got {value}")

    @property
    def overall_score(self) -> float:
        return round(float(np.mean([getattr(self, n) for n in EI_DIMENSIONS])), 1)


@dataclass(frozen=True)
class GrowthInsight:
    metric: str
    current_score: float
    previous_score: float
    change: float
    trend: str
    recommendation: str


# ── core trend math ──────────────────────────────────────────────────────


def _point_value(point):
    if isinstance(point, Mapping):
        try:
            return point["value"]
        except KeyError:
            raise InvalidInputError(f"data point {point!r} has no 'value'") from None
    if isinstance(point, (tuple, list)):
        if len(point) != 2:
            raise InvalidInputError(f"expected a (date, value) pair, got {point!r}")
        return point[1]
    return point


def _values(series: Iterable) -> np.ndarray:
    """Accept ``(date, value)`` pairs, ``{"date", "value"}`` mappings or bare numbers."""
    return np.asarray([_point_value(p) for p in series], dtype=float)


def classify_change(
    change: float,
    metric: str = "",
    settings: TrendSettings = DEFAULT_TREND_SETTINGS,
) -> str:
    if metric in INVERTED_METRICS:
        change = -change
    if change > settings.change_threshold:
        return IMPROVING
    if change < -settings.change_threshold:
        return DECLINING
    return STABLE


def average_and_trend(
    series: Iterable,
    metric: str = "",
    settings: TrendSettings = DEFAULT_TREND_SETTINGS,
) -> TrendResult:
    """Mean and half-over-half trend of a time-ordered series."""
    values = _values(series)
    if values.size == 0:
        raise InvalidInputError("cannot compute a trend of an empty series")
    average = float(values.mean())
    if values.size < 2:
        return TrendResult(average=average, trend=STABLE, change=0.0)

    midpoint = values.size // 2
    change = float(values[midpoint:].mean() - values[:midpoint].mean())
    return TrendResult(
        average=average,
        trend=classify_change(change, metric, settings),
        change=change,
    )


def rolling_average(values: Sequence[float], window: int) -> list[float]:
    """Trailing means over *window* points; shorter series give ``[]``."""
    if window < 1:
        raise InvalidInputError(f"window must be >= 1, got {window}")
    data = np.asarray(values, dtype=float)
    if data.size < window:
        return []
    kernel = np.ones(window) / window
    return np.convolve(data, kernel, mode="valid").tolist()


# ── mood trends ──────────────────────────────────────────────────────────


def mood_trends(
    entries: Iterable[MoodEntry],
    now: datetime,
    days: int = 30,
    settings: TrendSettings = DEFAULT_TREND_SETTINGS,
) -> dict[str, dict]:
    """Per-metric average, trend and chart data over the last *days*."""
    cutoff = now - timedelta(days=days)
    recent = sorted((e for e in entries if e.date >= cutoff), key=lambda e: e.date)
    if not recent:
        return {}

    trends = {}
    for metric in MOOD_METRICS:
        series = [(e.date, getattr(e, metric)) for e in recent]
        result = average_and_trend(series, metric, settings)
        trends[metric] = {
            "average": round(result.average, 1),
            "trend": result.trend,
            "change": round(result.change, 1),
            "data": series,
        }
    return trends


# ── emotional intelligence ───────────────────────────────────────────────


def average_scores(metrics: Sequence[EmotionalMetric]) -> dict[str, float]:
    """Mean of each EI dimension; neutral 5.0 when there is no data."""
    if not metrics:
        return {name: NEUTRAL_EI_SCORE for name in EI_DIMENSIONS}
    matrix = np.array([[getattr(m, n) for n in EI_DIMENSIONS] for m in metrics], dtype=float)
    return dict(zip(EI_DIMENSIONS, matrix.mean(axis=0).tolist()))


def ei_growth_insights(
    current: Sequence[EmotionalMetric],
    previous: Sequence[EmotionalMetric],
    settings: TrendSettings = DEFAULT_TREND_SETTINGS,
) -> list[GrowthInsight]:
    """Compare two periods per EI dimension, biggest movers first."""
    if not current:
        return []
    now_avg = average_scores(current)
    before_avg = average_scores(previous) if previous else now_avg

    insights = []
    for name in EI_DIMENSIONS:
        change = now_avg[name] - before_avg[name]
        trend = classify_change(change, name, settings)
        insights.append(GrowthInsight(
            metric=name,
            current_score=round(now_avg[name], 1),
            previous_score=round(before_avg[name], 1),
            change=round(change, 1),
            trend=trend,
            recommendation=recommendation(name, trend, settings.recommendation_seed),
        ))
    insights.sort(key=lambda i: abs(i.change), reverse=True)
    return insights


def period_bounds(timeframe: str, now: datetime) -> tuple[datetime, datetime]:
    """Start of the current period and of the one before it."""
    spans = {"week": 7, "month": 30, "quarter": 91, "year": 365}
    if timeframe not in spans:
        raise InvalidInputError(f"unknown timeframe {timeframe!r}")
    span = timedelta(days=spans[timeframe])
    return now - span, now - 2 * span


# ── recommendations ──────────────────────────────────────────────────────

RECOMMENDATIONS: dict[str, dict[str, tuple[str, ...]]] = {
    "self_awareness": {
        IMPROVING: (
            "Keep practising mindfulness to deepen self-awareness",
            "Try a body scan to sharpen awareness",
            "Stay consistent with mood tracking",
        ),
        DECLINING: (
            "Add more mindfulness sessions",
            "Start a daily reflection journal",
            "Focus on present-moment awareness",
        ),
        STABLE: (
            "Vary your meditation techniques",
            "Try a longer meditation session",
            "Add a short reflection after each session",
        ),
    },
    "self_regulation": {
        IMPROVING: (
            "Explore more advanced breathing techniques",
            "Practise flexible responses in difficult moments",
            "Use meditation as an anchor when emotions run high",
        ),
        DECLINING: (
            "Focus on breathing techniques for emotional regulation",
            "Add body scan sessions for relaxation",
            "Use loving-kindness practice for self-compassion",
        ),
        STABLE: (
            "Try 4-7-8 breathing for emotional control",
            "Build mindful breaks into your day",
            "Practise STOP: stop, take a breath, observe, proceed",
        ),
    },
    "motivation": {
        IMPROVING: (
            "Set more challenging practice goals",
            "Explore the philosophy behind meditation",
            "Share your progress with the community",
        ),
        DECLINING: (
            "Revisit why you started meditating",
            "Vary techniques to avoid boredom",
            "Join a meditation group for motivation",
        ),
        STABLE: (
            "Set small, achievable daily goals",
            "Try guided meditations with inspiring themes",
            "Read about the benefits of meditation",
        ),
    },
    "empathy": {
        IMPROVING: (
            "Deepen your loving-kindness meditation",
            "Practise compassion for yourself and others",
            "Try tonglen (giving and receiving) meditation",
        ),
        DECLINING: (
            "Begin with loving-kindness toward yourself",
            "Practise forgiveness meditation",
            "Reflect on the interconnectedness of all beings",
        ),
        STABLE: (
            "Vary the focus of loving-kindness: family, friends, strangers",
            "Try metta meditation with visualisation",
            "Practise gratitude for the people in your life",
        ),
    },
    "social_skills": {
        IMPROVING: (
            "Bring mindfulness into social interactions",
            "Practise active listening",
            "Communicate with compassion",
        ),
        DECLINING: (
            "Start with mindful communication exercises",
            "Stay present while talking with others",
            "Practise patience and understanding",
        ),
        STABLE: (
            "Try group meditation",
            "Practise non-judgmental awareness of others",
            "Take a breathing space before responding in conversation",
        ),
    },
}


def recommendation(metric: str, trend: str, seed: int = 0) -> str:
    """Canned advice for *metric* moving in *trend*; deterministic."""
    options = RECOMMENDATIONS.get(metric, {}).get(trend)
    if not options:
        return FALLBACK_RECOMMENDATION
    index = zlib.crc32(f"{metric}:{trend}:{seed}".encode()) % len(options)
    return options[index]
