"""Tests for snapshot parsing, plan output, workout records, the edit journal and the compact set syntax."""

import json
from datetime import datetime

import pytest

from conftest import BENCH, LATERAL, make_snapshot

from dayplan.core.engine.operations import (
    AddExercise,
    AddSet,
    EditSet,
    ExerciseDescriptor,
    RemoveExercise,
    RemoveSet,
    ResetAll,
    add_set,
    edit_set,
    remove_exercise,
    remove_set,
    reset_all,
)
from dayplan.core.engine.validation import SetInput
from dayplan.core.workout import WorkoutSession
from dayplan.io.serializers import (
    ValidationError,
    completion_payload_to_dict,
    day_plan_to_dict,
    json_line_to_operation,
    json_to_day_plan,
    operation_to_json_line,
    parse_reps_range,
    parse_set_inputs,
    snapshot_to_day_plan,
)


class TestSnapshotParsing:
    def test_plan_shape(self, plan):
        assert plan.absolute_day == 12
        assert plan.routine_name == "Push A"
        assert plan.macrocycle_id == 3
        assert [ex.name for ex in plan.exercises] == ["Bench Press", "Lateral Raise", "Dips"]
        assert plan.exercises[BENCH].rest_between_sets == 120
        assert plan.exercises[LATERAL].rest_between_sets is None
        assert not plan.has_changes

    def test_sets_sorted_by_set_number(self, plan):
        assert [s.set_id for s in plan.exercises[LATERAL].sets] == [1011, 1012]

    def test_set_number_gaps_are_closed(self):
        data = make_snapshot()
        data["exercises"][0]["sets"][1]["setNumber"] = 3
        data["exercises"][0]["sets"][2]["setNumber"] = 7
        bench = snapshot_to_day_plan(data).exercises[BENCH]
        assert [s.set_number for s in bench.sets] == [1, 2, 3]
        assert [s.set_id for s in bench.sets] == [1001, 1002, 1003]

    def test_gapped_snapshot_survives_add_then_remove(self, settings):
        data = make_snapshot()
        data["exercises"][1]["sets"][0]["setNumber"] = 3
        plan = snapshot_to_day_plan(data)
        added = add_set(plan, LATERAL, settings).plan
        assert remove_set(added, LATERAL, 2).plan == plan
        assert reset_all(added).plan == plan

    def test_sets_are_pristine_template_sets(self, plan):
        for ex in plan.exercises:
            assert ex.is_original_exercise
            for s in ex.sets:
                assert s.is_from_template
                assert not s.is_customized
                assert s.effective == s.original

    def test_exercises_sorted_by_order(self):
        data = make_snapshot()
        data["exercises"].reverse()
        plan = snapshot_to_day_plan(data)
        assert [ex.order for ex in plan.exercises] == [1, 2, 3]

    def test_routine_style_keys_accepted(self):
        data = {
            "absoluteDay": 1,
            "routineName": "Legs",
            "exercises": [
                {
                    "id": 5,
                    "exerciseId": 2,
                    "name": "Squat",
                    "order": 1,
                    "sets": [{"id": 50, "setNumber": 1, "repsMin": 5, "repsMax": 5, "weight": 100, "rir": 2}],
                }
            ],
        }
        plan = snapshot_to_day_plan(data)
        squat = plan.exercises[0]
        assert squat.routine_exercise_id == 5
        assert squat.sets[0].set_id == 50
        assert squat.sets[0].original.weight == 100.0

    @pytest.mark.parametrize(
        "mutate",
        [
            lambda d: d.update(absoluteDay=0),
            lambda d: d.update(actualDate="04/03/2026"),
            lambda d: d.pop("absoluteDay"),
            lambda d: d["exercises"][0].update(order=0),
            lambda d: d["exercises"][0]["sets"][0].update(originalRepsMin=13),
            lambda d: d["exercises"][0]["sets"][0].update(originalWeight=-5),
            lambda d: d["exercises"][0]["sets"][0].pop("setNumber"),
        ],
    )
    def test_invalid_snapshot_raises(self, mutate):
        data = make_snapshot()
        mutate(data)
        with pytest.raises(ValidationError):
            snapshot_to_day_plan(data)

    def test_invalid_json_raises(self):
        with pytest.raises(ValidationError):
            json_to_day_plan("{not json")
        with pytest.raises(ValidationError):
            json_to_day_plan("[]")


class TestPlanOutput:
    def test_customized_count_excludes_removed_sets(self, plan, settings):
        plan = edit_set(plan, BENCH, 0, SetInput(6, 10, 25.0, "RIR", 1), settings).plan
        plan = edit_set(plan, BENCH, 1, SetInput(6, 10, 25.0, "RIR", 1), settings).plan
        plan = remove_set(plan, BENCH, 1).plan
        d = day_plan_to_dict(plan)
        assert d["exercises"][0]["customizedSetsCount"] == 1
        assert d["totalCustomizations"] == 1

    def test_removed_flags(self, plan):
        plan = remove_set(plan, BENCH, 1).plan
        plan = remove_exercise(plan, LATERAL).plan
        d = day_plan_to_dict(plan)

        assert d["absoluteDay"] == 12
        assert d["removedExerciseIds"] == [9]
        assert d["removedSetIds"] == [1002]
        bench, lateral = d["exercises"][0], d["exercises"][1]
        assert [s["isRemoved"] for s in bench["sets"]] == [False, True, False]
        assert lateral["isRemoved"] is True
        json.dumps(d)


class TestJournal:
    @pytest.mark.parametrize(
        "op",
        [
            EditSet(0, 2, SetInput(6, 10, 25.0, "RPE", 8, "slow")),
            AddSet(1),
            RemoveSet(0, 1),
            RemoveExercise(2),
            ResetAll(),
            AddExercise(
                ExerciseDescriptor(
                    exercise_id=50,
                    name="Cable Fly",
                    order=2,
                    sets=(SetInput(12, 15, 15.0, "RIR", 2),),
                    muscle_group="Chest",
                    rest_between_sets=60,
                )
            ),
        ],
    )
    def test_operation_survives_journal(self, op):
        line = operation_to_json_line(op)
        assert "\n" not in line
        assert json_line_to_operation(line) == op

    @pytest.mark.parametrize(
        "line",
        ['{"op": "explode"}', '{"op": "add_set"}', "not json", '{"op": "edit_set", "exercise_index": 0}'],
    )
    def test_bad_journal_line_raises(self, line):
        with pytest.raises(ValidationError):
            json_line_to_operation(line)


class TestCompactSets:
    def test_reps_range(self):
        assert parse_reps_range("8-12") == (8, 12)
        assert parse_reps_range(" 10 ") == (10, 10)
        with pytest.raises(ValidationError):
            parse_reps_range("eight")

    def test_group_with_count_weight_and_rir(self):
        sets = parse_set_inputs("3x8-12@20 rir1")
        assert sets == [SetInput(8, 12, 20.0, "RIR", 1)] * 3

    def test_rpe_and_defaults(self):
        sets = parse_set_inputs("10@0 rpe8, 6-8, 2x5@72.5kg RPE9")
        assert sets[0] == SetInput(10, 10, 0.0, "RPE", 8)
        assert sets[1] == SetInput(6, 8, 0.0, "RIR", 2)
        assert sets[2] == sets[3] == SetInput(5, 5, 72.5, "RPE", 9)
        assert len(sets) == 4

    @pytest.mark.parametrize("text", ["", "  ", "x8", "8@heavy", "0x8", "3x8 rir"])
    def test_invalid_groups_raise(self, text):
        with pytest.raises(ValidationError):
            parse_set_inputs(text)


class TestCompletedWorkout:
    def test_record_shape(self, plan, settings):
        workout = WorkoutSession.start(plan, started_at=datetime(2026, 3, 4, 18, 0, 5))
        workout = workout.complete_set(BENCH, 0, 10, 20.0, 2, settings).workout
        payload = workout.completion_payload(completed_at=datetime(2026, 3, 4, 19, 2))

        d = completion_payload_to_dict(payload)
        assert d["absoluteDay"] == 12
        assert d["routineName"] == "Push A"
        assert d["startedAt"] == "2026-03-04T18:00:05"
        assert d["completedAt"] == "2026-03-04T19:02:00"
        bench = d["exercises"][0]
        assert bench["exerciseName"] == "Bench Press"
        assert bench["exerciseOrder"] == 1
        assert bench["sets"][0] == {
            "setNumber": 1,
            "targetRepsMin": 8,
            "targetRepsMax": 12,
            "targetWeight": 20.0,
            "targetRir": 2,
            "targetRpe": None,
            "targetNotes": None,
            "actualReps": 10,
            "actualWeight": 20.0,
            "actualRir": 2,
            "completed": True,
            "wasAddedDuringWorkout": False,
        }
        assert bench["sets"][1]["completed"] is False
        assert bench["sets"][1]["actualReps"] is None
        json.dumps(d)
