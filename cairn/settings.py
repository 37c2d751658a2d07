"""Tunable scoring configuration with JSON persistence.

Settings are stored at:
    ~/.cairn/settings.json   (or ``$CAIRN_HOME/settings.json``)

Usage::

    settings = load_settings()
    settings.scaling = replace(settings.scaling, engagement_bonus=1.2)
    save_settings(settings)

Every value here is a product-tuning default, not a contract.  Callers may
hand a per-user ``ScalingConfig`` straight to the scaling functions.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, asdict, field, fields
from pathlib import Path

logger = logging.getLogger(__name__)


APP_SUPPORT_DIR = Path(os.environ.get("CAIRN_HOME", Path.home() / ".cairn"))
SETTINGS_PATH = APP_SUPPORT_DIR / "settings.json"


@dataclass(frozen=True)
class ScalingConfig:
    """Multipliers and thresholds driving milestones and adaptive goals."""

    # ── base multipliers ──────────────────────────────────────────────
    session_multiplier: float = 1.0
    time_multiplier: float = 1.0
    streak_multiplier: float = 1.2

    # ── session-count tiers ───────────────────────────────────────────
    beginner_threshold: int = 10
    intermediate_threshold: int = 50
    advanced_threshold: int = 200

    # ── dynamic scaling ───────────────────────────────────────────────
    user_growth_factor: float = 1.1
    engagement_bonus: float = 1.15
    consistency_reward: float = 1.25


DEFAULT_SCALING_CONFIG = ScalingConfig()


@dataclass(frozen=True)
class TrendSettings:
    """Trend detection knobs."""

    change_threshold: float = 0.3     # min half-over-half change to count
    rolling_window: int = 7           # points per rolling average
    recommendation_seed: int = 0      # varies the canned-text pick


@dataclass
class Settings:
    """All persisted configuration."""

    scaling: ScalingConfig = field(default_factory=ScalingConfig)
    trends: TrendSettings = field(default_factory=TrendSettings)

    # ── streaks ───────────────────────────────────────────────────────
    snapshot_retention: int = 100     # streak snapshots kept per state


def _known_keys(cls, data: dict) -> dict:
    """Only use keys that exist in the dataclass."""
    valid_keys = {f.name for f in fields(cls)}
    return {k: v for k, v in data.items() if k in valid_keys}


def _from_dict(data: dict) -> Settings:
    if not isinstance(data, dict):
        raise TypeError("settings root must be a JSON object")
    data = _known_keys(Settings, data)
    if isinstance(data.get("scaling"), dict):
        data["scaling"] = ScalingConfig(**_known_keys(ScalingConfig, data["scaling"]))
    if isinstance(data.get("trends"), dict):
        data["trends"] = TrendSettings(**_known_keys(TrendSettings, data["trends"]))
    return Settings(**data)


def load_settings() -> Settings:
    """Load settings from disk, falling back to defaults."""
    if not SETTINGS_PATH.exists():
        return Settings()
    try:
        data = json.loads(SETTINGS_PATH.read_text(encoding="utf-8"))
        return _from_dict(data)
    except (OSError, ValueError, TypeError) as exc:
        logger.warning("Ignoring unreadable settings at %s: %s", SETTINGS_PATH, exc)
        return Settings()


def save_settings(settings: Settings) -> None:
    """Write settings to disk as JSON."""
    APP_SUPPORT_DIR.mkdir(parents=True, exist_ok=True)
    SETTINGS_PATH.write_text(
        json.dumps(asdict(settings), indent=2) + "\n",
        encoding="utf-8",
    )
