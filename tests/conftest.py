"""Shared fixtures: a realistic day snapshot and settings isolated from ~/.dayplan."""

import copy

import pytest

from dayplan.core.config import EngineSettings
from dayplan.core.engine.config_loader import get_settings
from dayplan.io.serializers import snapshot_to_day_plan

PUSH_DAY = {
    "absoluteDay": 12,
    "actualDate": "2026-03-04",
    "routineName": "Push A",
    "routineDescription": "Chest and shoulders",
    "macrocycleId": 3,
    "exercises": [
        {
            "routineExerciseId": 101,
            "exerciseId": 7,
            "exerciseName": "Bench Press",
            "exerciseMuscle": "Chest",
            "order": 1,
            "restBetweenSets": 120,
            "sets": [
                {"setId": 1001, "setNumber": 1, "originalRepsMin": 8, "originalRepsMax": 12,
                 "originalWeight": 20, "originalRir": 2},
                {"setId": 1002, "setNumber": 2, "originalRepsMin": 8, "originalRepsMax": 12,
                 "originalWeight": 20, "originalRir": 2},
                {"setId": 1003, "setNumber": 3, "originalRepsMin": 6, "originalRepsMax": 8,
                 "originalWeight": 25, "originalRir": 1, "originalNotes": "top set"},
            ],
        },
        {
            "routineExerciseId": 102,
            "exerciseId": 9,
            "exerciseName": "Lateral Raise",
            "exerciseMuscle": "Shoulders",
            "order": 2,
            "sets": [
                # Listed out of order on purpose
                {"setId": 1012, "setNumber": 2, "originalRepsMin": 12, "originalRepsMax": 15,
                 "originalWeight": 8, "originalRpe": 8},
                {"setId": 1011, "setNumber": 1, "originalRepsMin": 12, "originalRepsMax": 15,
                 "originalWeight": 8, "originalRpe": 8},
            ],
        },
        {
            "routineExerciseId": 103,
            "exerciseId": 11,
            "exerciseName": "Dips",
            "exerciseMuscle": "Triceps",
            "order": 3,
            "restBetweenSets": 60,
            "sets": [
                {"setId": 1021, "setNumber": 1, "originalRepsMin": 10, "originalRepsMax": 10},
            ],
        },
    ],
}

BENCH, LATERAL, DIPS = 0, 1, 2


def make_snapshot() -> dict:
    return copy.deepcopy(PUSH_DAY)


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Point DAYPLAN_HOME at an empty dir so no user config.yaml is read."""
    home = tmp_path / "dayplan-home"
    monkeypatch.setenv("DAYPLAN_HOME", str(home))
    get_settings.cache_clear()
    yield home
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return EngineSettings()


@pytest.fixture
def snapshot():
    return make_snapshot()


@pytest.fixture
def plan():
    return snapshot_to_day_plan(make_snapshot())
