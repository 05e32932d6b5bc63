import logging
from datetime import date

import pytest

from lifeflow.config import GeometrySettings, Granularity, JunctionPolicy, LayoutConfig
from lifeflow.models import Size


def test_defaults():
    config = LayoutConfig()
    assert config.zoom_multiplier == 1.0
    assert config.selected_type_filters == frozenset()
    assert config.show_nodes
    assert config.junction_policy == JunctionPolicy.EXPLICIT
    assert config.granularity is None


def test_from_settings_converts_loose_values(caplog):
    with caplog.at_level(logging.WARNING, logger="lifeflow"):
        config = LayoutConfig.from_settings({
            "zoom_multiplier": "2.5",
            "viewport_width": "800",
            "selected_type_filters": "photo; milestone",
            "granularity": "week",
            "junction_policy": "co_occurrence",
            "date_from": "2024-01-01",
            "show_private_events": "false",
            "bogus": 1,
        })

    assert config.zoom_multiplier == 2.5
    assert config.viewport_size == Size(800.0, 600.0)
    assert config.selected_type_filters == {"photo", "milestone"}
    assert config.granularity == Granularity.WEEK
    assert config.junction_policy == JunctionPolicy.CO_OCCURRENCE
    assert config.date_from == date(2024, 1, 1)
    assert config.show_private_events is False
    assert "bogus" in caplog.text


@pytest.mark.parametrize(
    "settings",
    [
        {"granularity": "fortnight"},
        {"junction_policy": "sometimes"},
        {"date_to": "yesterday"},
        {"zoom_multiplier": "fast"},
    ],
)
def test_from_settings_rejects_malformed_values(settings):
    with pytest.raises(ValueError):
        LayoutConfig.from_settings(settings)


def test_clamped_zoom():
    settings = GeometrySettings()
    assert LayoutConfig(zoom_multiplier=0).clamped_zoom(settings) == settings.min_zoom
    assert LayoutConfig(zoom_multiplier=-1).clamped_zoom(settings) == settings.min_zoom
    assert LayoutConfig(zoom_multiplier=float("nan")).clamped_zoom(settings) == settings.min_zoom
    assert LayoutConfig(zoom_multiplier=50).clamped_zoom(settings) == settings.max_zoom
    assert LayoutConfig(zoom_multiplier=2).clamped_zoom(settings) == 2


def test_with_helpers_return_new_configs():
    config = LayoutConfig()
    changed = config.with_filters(["photo", ""]).with_viewport(640, 480).with_focus("2024-01")

    assert changed.selected_type_filters == {"photo"}
    assert changed.viewport_size == Size(640.0, 480.0)
    assert changed.focus_bucket_key == "2024-01"
    assert config == LayoutConfig()


def test_geometry_from_env(monkeypatch):
    monkeypatch.setenv("LIFEFLOW_BASE_HEIGHT", "2400")
    monkeypatch.setenv("LIFEFLOW_MAX_PX_PER_DAY", "not-a-number")

    settings = GeometrySettings.from_env()
    assert settings.base_height == 2400.0
    assert settings.max_px_per_day == GeometrySettings.max_px_per_day


def test_geometry_from_env_rejects_inverted_bounds(monkeypatch):
    monkeypatch.setenv("LIFEFLOW_MIN_PX_PER_DAY", "50")
    monkeypatch.setenv("LIFEFLOW_MAX_PX_PER_DAY", "5")

    settings = GeometrySettings.from_env()
    assert settings.min_px_per_day == GeometrySettings.min_px_per_day
    assert settings.max_px_per_day == GeometrySettings.max_px_per_day
