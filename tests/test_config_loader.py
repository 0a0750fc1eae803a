"""Tests for YAML settings overrides."""

import pytest

from dayplan.core.config import EngineSettings
from dayplan.core.engine.operations import edit_set
from dayplan.core.engine.validation import SetInput
from dayplan.core.engine.config_loader import (
    get_dayplan_home,
    get_settings,
    load_settings,
    settings_from_dict,
)


def test_defaults_without_user_file(isolated_home):
    assert get_dayplan_home() == isolated_home
    assert load_settings() == EngineSettings()


def test_partial_override_keeps_other_defaults():
    settings = settings_from_dict({"intensity": {"rir_max": 4}, "workout": {"default_rest_seconds": 150}})
    assert settings.rir_max == 4
    assert settings.rir_min == 0
    assert settings.rpe_max == 10
    assert settings.default_rest_seconds == 150
    assert settings.default_set == EngineSettings().default_set


def test_user_yaml_is_merged(isolated_home):
    isolated_home.mkdir(parents=True)
    (isolated_home / "config.yaml").write_text(
        "default_set:\n"
        "  reps_min: 6\n"
        "  reps_max: 10\n"
        "notes:\n"
        "  extra_sets: 'Bonus sets: {name}'\n"
    )
    settings = get_settings()
    assert settings.default_set.reps_min == 6
    assert settings.default_set.reps_max == 10
    assert settings.default_set.rir == 2
    assert settings.extra_sets_note_template == "Bonus sets: {name}"


@pytest.mark.parametrize(
    "text",
    [
        "intensity: [1, 2\n",
        "intensity:\n  rir_min: 4\n  rir_max: 2\n",
        "default_set:\n  reps_min: 0\n",
        "workout:\n  default_rest_seconds: lots\n",
    ],
)
def test_invalid_yaml_falls_back_to_defaults(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    assert load_settings(path) == EngineSettings()


def test_narrower_rir_range_is_enforced(plan):
    settings = settings_from_dict({"intensity": {"rir_max": 3}})
    result = edit_set(plan, 0, 0, SetInput(8, 12, 20, "RIR", 4), settings)
    assert result.error.field == "intensity"
    assert edit_set(plan, 0, 0, SetInput(8, 12, 20, "RIR", 3), settings).ok


@pytest.mark.parametrize(
    "intensity",
    [{"rir_max": 9}, {"rir_min": -1}, {"rpe_max": 11}, {"rpe_min": 0}],
)
def test_intensity_range_cannot_be_widened(intensity):
    with pytest.raises(ValueError):
        settings_from_dict({"intensity": intensity})


def test_widened_range_in_yaml_keeps_editor_limits(tmp_path, plan):
    path = tmp_path / "config.yaml"
    path.write_text("intensity:\n  rir_max: 9\n")
    settings = load_settings(path)
    assert settings == EngineSettings()

    result = edit_set(plan, 0, 0, SetInput(8, 12, 20, "RIR", 9), settings)
    assert not result.ok
    assert result.error.field == "intensity"
    assert result.plan == plan
