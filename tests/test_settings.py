"""Tests for settings persistence."""

from __future__ import annotations

import json
from dataclasses import replace

import pytest

from cairn import settings as settings_mod
from cairn.settings import ScalingConfig, Settings, TrendSettings, load_settings, save_settings


@pytest.fixture
def settings_path(tmp_path, monkeypatch):
    """Redirect the settings file into a temp directory."""
    path = tmp_path / "settings.json"
    monkeypatch.setattr(settings_mod, "APP_SUPPORT_DIR", tmp_path)
    monkeypatch.setattr(settings_mod, "SETTINGS_PATH", path)
    return path


class TestDefaults:

    def test_scaling_defaults(self):
        config = ScalingConfig()
        assert config.beginner_threshold == 10
        assert config.intermediate_threshold == 50
        assert config.advanced_threshold == 200
        assert config.engagement_bonus == 1.15
        assert config.consistency_reward == 1.25

    def test_trend_defaults(self):
        assert TrendSettings().change_threshold == 0.3

    def test_missing_file_gives_defaults(self, settings_path):
        assert load_settings() == Settings()


class TestPersistence:

    def test_save_then_load(self, settings_path):
        custom = Settings(
            scaling=replace(ScalingConfig(), engagement_bonus=1.3),
            trends=TrendSettings(recommendation_seed=7),
            snapshot_retention=30,
        )
        save_settings(custom)
        assert settings_path.exists()
        assert load_settings() == custom

    def test_unknown_keys_ignored(self, settings_path):
        settings_path.write_text(json.dumps({
            "snapshot_retention": 12,
            "theme": "dark",
            "scaling": {"beginner_threshold": 4, "bogus": 1},
        }))
        loaded = load_settings()
        assert loaded.snapshot_retention == 12
        assert loaded.scaling.beginner_threshold == 4
        assert loaded.trends == TrendSettings()

    def test_corrupt_file_falls_back(self, settings_path, caplog):
        settings_path.write_text("{not json")
        assert load_settings() == Settings()
        assert "Ignoring unreadable settings" in caplog.text

    def test_non_object_root_falls_back(self, settings_path):
        settings_path.write_text("[1, 2, 3]")
        assert load_settings() == Settings()
