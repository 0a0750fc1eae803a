"""Tests for the diff builder and the server acceptance check."""

from dataclasses import replace

from conftest import BENCH, DIPS, LATERAL

from dayplan.core.diff import (
    AddedExercise,
    AddedSet,
    DiffPayload,
    SetCustomization,
    build_diff,
    payload_validation_errors,
)
from dayplan.core.engine.operations import (
    ExerciseDescriptor,
    add_exercise,
    add_set,
    edit_set,
    remove_exercise,
    remove_set,
)
from dayplan.core.engine.validation import SetInput
from dayplan.core.models import DaySet, SetOverride, SetValues

NOTE = "Extra sets for {name}"


def _diff(plan):
    return build_diff(plan, extra_sets_note_template=NOTE)


class TestBuildDiff:
    def test_clean_plan_gives_empty_payload(self, plan):
        payload = _diff(plan)
        assert payload.is_empty
        assert payload.absolute_day == 12

    def test_customization_carries_only_selected_metric(self, plan, settings):
        plan = edit_set(plan, BENCH, 0, SetInput(6, 10, 25, "RIR", 1), settings).plan
        payload = _diff(plan)

        assert payload.set_customizations == (
            SetCustomization(
                exercise_set_id=1001,
                custom_reps_min=6,
                custom_reps_max=10,
                custom_weight=25.0,
                custom_rir=1,
                custom_rpe=None,
                custom_notes=None,
            ),
        )
        assert payload.added_exercises == ()

    def test_removed_exercise_is_omitted(self, plan, settings):
        plan = edit_set(plan, LATERAL, 0, SetInput(10, 12, 8, "RPE", 9), settings).plan
        plan = add_set(plan, LATERAL, settings).plan
        plan = remove_exercise(plan, LATERAL).plan
        payload = _diff(plan)

        assert payload.set_customizations == ()
        assert payload.added_exercises == ()
        assert payload.removed_exercise_ids == (9,)

    def test_removed_set_is_listed_not_customized(self, plan, settings):
        plan = edit_set(plan, BENCH, 1, SetInput(6, 10, 25, "RIR", 1), settings).plan
        plan = remove_set(plan, BENCH, 1).plan
        payload = _diff(plan)

        assert payload.set_customizations == ()
        assert payload.removed_set_ids == (1002,)

    def test_extra_sets_become_one_tagged_record(self, plan, settings):
        plan = add_set(plan, BENCH, settings).plan
        plan = add_set(plan, BENCH, settings).plan
        plan = edit_set(plan, BENCH, 4, SetInput(5, 5, 30, "RIR", 0), settings).plan
        payload = _diff(plan)

        assert payload.set_customizations == ()
        (record,) = payload.added_exercises
        assert record.extends_routine_exercise_id == 101
        assert record.exercise_id == 7
        assert record.order == 1
        assert record.notes == "Extra sets for Bench Press"
        assert [s.set_number for s in record.sets] == [1, 2]
        assert record.sets[0] == AddedSet(1, 6, 8, 25.0, rir=1, notes="top set")
        assert record.sets[1] == AddedSet(2, 5, 5, 30.0, rir=0)

    def test_added_exercise_record_uses_original_values(self, plan, settings):
        descriptor = ExerciseDescriptor(
            exercise_id=50,
            name="Cable Fly",
            order=4,
            sets=(SetInput(12, 15, 15, "RIR", 2), SetInput(10, 12, 17.5, "RPE", 9)),
            rest_between_sets=75,
            notes="squeeze",
        )
        plan = add_exercise(plan, descriptor, settings).plan
        plan = add_set(plan, DIPS, settings).plan
        payload = _diff(plan)

        added, extra = payload.added_exercises
        assert added.extends_routine_exercise_id is None
        assert added.exercise_id == 50
        assert added.rest_between_sets == 75
        assert added.notes == "squeeze"
        assert added.sets == (
            AddedSet(1, 12, 15, 15.0, rir=2),
            AddedSet(2, 10, 12, 17.5, rpe=9),
        )
        assert extra.extends_routine_exercise_id == 103
        assert payload.set_customizations == ()

    def test_template_set_without_server_id_is_skipped(self, plan):
        bench = plan.exercises[BENCH]
        orphan = DaySet.create(
            set_id=0,
            set_number=4,
            original=SetValues(8, 12, 20.0, rir=2),
            override=SetOverride(reps_min=5, reps_max=5),
        )
        plan = replace(
            plan,
            exercises=(replace(bench, sets=bench.sets + (orphan,)),) + plan.exercises[1:],
        )
        payload = _diff(plan)
        assert payload.set_customizations == ()

    def test_explicit_removed_ids_take_precedence(self, plan):
        payload = build_diff(
            plan,
            removed_exercise_ids=frozenset({11, 7}),
            removed_set_ids=frozenset({1012}),
            extra_sets_note_template=NOTE,
        )
        assert payload.removed_exercise_ids == (7, 11)
        assert payload.removed_set_ids == (1012,)

    def test_default_note_comes_from_settings(self, plan, settings):
        plan = add_set(plan, DIPS, settings).plan
        payload = build_diff(plan)
        assert payload.added_exercises[0].notes == "Extra sets for Dips"


class TestPayloadValidation:
    def test_built_payload_is_accepted(self, plan, settings):
        plan = edit_set(plan, BENCH, 0, SetInput(6, 10, 25, "RIR", 1), settings).plan
        plan = add_set(plan, DIPS, settings).plan
        plan = remove_set(plan, BENCH, 2).plan
        assert payload_validation_errors(_diff(plan)) == []

    def test_server_accepts_rir_up_to_ten(self):
        payload = DiffPayload(12, set_customizations=(SetCustomization(1001, custom_rir=10),))
        assert payload_validation_errors(payload) == []

    def test_rir_and_rpe_together_rejected(self):
        payload = DiffPayload(
            12, set_customizations=(SetCustomization(1001, custom_rir=2, custom_rpe=8),)
        )
        errors = payload_validation_errors(payload)
        assert len(errors) == 1
        assert "RIR and RPE" in errors[0]

    def test_bad_values_reported(self):
        payload = DiffPayload(
            0,
            set_customizations=(
                SetCustomization(-3, custom_reps_min=10, custom_reps_max=8, custom_rpe=11),
            ),
            added_exercises=(AddedExercise(exercise_id=50, order=0, sets=()),),
        )
        errors = payload_validation_errors(payload)
        assert len(errors) == 6
