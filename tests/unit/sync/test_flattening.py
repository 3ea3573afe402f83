"""Unit tests for the nested-to-flat row projection and its inverse."""

import pytest

from ailment_tracker.models.display_row import DisplayRow, ParentType, RowType
from ailment_tracker.sync.flattening import (
    StaleRowError,
    add_child,
    apply_field_edit,
    find_entity,
    flatten,
    locate,
    remove_entity,
    toggle_expanded,
)

ALL_EXPANDED = {"1", "2", "t1", "t2", "d1", "t3", "d2"}


def _ids(rows: list[DisplayRow]) -> list[str]:
    return [r.id for r in rows]


# --- flatten ---


def test_collapsed_shows_only_ailment_rows(ailments):
    rows = flatten(ailments, set())

    assert _ids(rows) == ["1", "2"]
    assert all(r.row_type is RowType.AILMENT and r.level == 0 for r in rows)
    assert all(r.has_children and not r.is_expanded for r in rows)


def test_expanded_ailment_lists_treatments_then_diagnostics(ailments):
    rows = flatten(ailments, {"1"})
    assert _ids(rows) == ["1", "t1", "t2", "d1", "2"]
    assert rows[0].is_expanded
    assert rows[1].parent_id == "1"
    assert rows[1].level == 1
    assert rows[3].row_type is RowType.DIAGNOSTIC


def test_side_effects_follow_their_parent_directly(ailments):
    rows = flatten(ailments, {"1", "t1"})
    assert _ids(rows) == ["1", "t1", "se1", "t2", "d1", "2"]

    side_effect = rows[2]
    assert side_effect.row_type is RowType.SIDE_EFFECT
    assert side_effect.level == 2
    assert side_effect.parent_id == "t1"
    assert side_effect.grand_parent_id == "1"
    assert side_effect.parent_type is ParentType.TREATMENT
    assert side_effect.severity == 20
    assert side_effect.ailment_id == "1"


def test_fully_expanded_order(ailments):
    rows = flatten(ailments, ALL_EXPANDED)
    assert _ids(rows) == [
        "1", "t1", "se1", "t2", "se2", "d1",
        "2", "t3", "se3", "d2",
    ]  # fmt: skip


def test_collapsed_ailment_hides_descendants_even_if_they_are_expanded(ailments):
    rows = flatten(ailments, {"t1", "t2", "d1", "t3"})
    assert _ids(rows) == ["1", "2"]


def test_has_children_is_computed(ailments):
    rows = {r.id: r for r in flatten(ailments, ALL_EXPANDED)}
    assert rows["t1"].has_children
    assert not rows["d1"].has_children
    assert not rows["se1"].has_children


def test_treatment_row_fields(ailments):
    row = next(r for r in flatten(ailments, {"1"}) if r.id == "t2")
    assert row.name == "Sumatriptan"
    assert row.efficacy == 85
    assert row.application == "oral"
    assert row.type == "symptom-based"
    assert row.setting == "home"
    assert row.is_curative is True
    assert row.severity is None


def test_flatten_is_deterministic_and_pure(ailments):
    before = [a.model_copy(deep=True) for a in ailments]
    assert flatten(ailments, ALL_EXPANDED) == flatten(ailments, ALL_EXPANDED)
    assert ailments == before


def test_toggle_expanded():
    expanded = toggle_expanded(set(), "1")
    assert expanded == {"1"}
    assert toggle_expanded(expanded, "1") == frozenset()


# --- locate ---


def test_every_row_locates_back_to_its_entity(ailments):
    for row in flatten(ailments, ALL_EXPANDED):
        ailment, entity = locate(row, ailments)
        assert entity.id == row.id
        assert ailment.id == row.ailment_id

        fields = entity.ailment if row.row_type is RowType.AILMENT else entity
        assert fields.name == row.name
        assert fields.description == row.description
        assert fields.duration == row.duration
        assert fields.intensity == row.intensity


def test_locate_resolves_against_current_collection(ailments):
    row = flatten(ailments, {"1"})[1]
    renamed = apply_field_edit(ailments[0], RowType.TREATMENT, "t1", "name", "Advil")

    ailment, entity = locate(row, [renamed, ailments[1]])

    assert ailment is renamed
    assert entity.name == "Advil"


def test_locate_stale_when_aggregate_is_gone(ailments):
    row = flatten(ailments, {"1"})[1]
    with pytest.raises(StaleRowError):
        locate(row, ailments[1:])


def test_locate_stale_when_entity_is_gone(ailments):
    row = flatten(ailments, {"1"})[1]
    without = remove_entity(ailments[0], RowType.TREATMENT, "t1", "1")
    with pytest.raises(StaleRowError):
        locate(row, [without])


def test_find_entity_checks_parent_chain(migraine):
    assert find_entity(migraine, RowType.SIDE_EFFECT, "se1", "t1", ParentType.TREATMENT)
    assert (
        find_entity(migraine, RowType.SIDE_EFFECT, "se1", "t2", ParentType.TREATMENT)
        is None
    )
    assert (
        find_entity(migraine, RowType.SIDE_EFFECT, "se1", "t1", ParentType.DIAGNOSTIC)
        is None
    )


# --- cascade delete ---


def test_deleting_an_ailment_leaves_no_orphan_rows(ailments):
    remaining = [a for a in ailments if a.id != "1"]
    rows = flatten(remaining, ALL_EXPANDED)

    migraine_ids = {"1", "t1", "se1", "t2", "se2", "d1"}
    assert not migraine_ids & set(_ids(rows))
    assert all(r.ailment_id == "2" for r in rows)


# --- apply_field_edit ---


def test_edit_changes_one_field_without_mutating_input(migraine):
    edited = apply_field_edit(
        migraine, RowType.SIDE_EFFECT, "se2", "severity", 45, "t2", ParentType.TREATMENT
    )

    assert edited is not migraine
    assert edited.treatments[1].side_effects[0].severity == 45
    assert migraine.treatments[1].side_effects[0].severity == 15
    assert edited.treatments[0] == migraine.treatments[0]
    assert edited.diagnostics == migraine.diagnostics


def test_edit_ailment_row_targets_details(migraine):
    edited = apply_field_edit(migraine, RowType.AILMENT, "1", "name", "Cluster headache")
    assert edited.ailment.name == "Cluster headache"
    assert edited.treatments == migraine.treatments


def test_edit_clamps_percentages(migraine):
    edited = apply_field_edit(migraine, RowType.TREATMENT, "t1", "efficacy", 180)
    assert edited.treatments[0].efficacy == 100


def test_edit_parses_duration_strings(migraine):
    edited = apply_field_edit(migraine, RowType.DIAGNOSTIC, "d1", "duration", "1h 30m")
    assert edited.diagnostics[0].duration == 5400


def test_edit_accepts_camel_case_field(migraine):
    edited = apply_field_edit(migraine, RowType.TREATMENT, "t1", "isCurative", True)
    assert edited.treatments[0].is_curative is True


def test_edit_missing_target_is_noop(migraine):
    assert apply_field_edit(migraine, RowType.TREATMENT, "nope", "name", "x") is migraine


def test_edit_side_effect_under_wrong_parent_is_noop(migraine):
    result = apply_field_edit(
        migraine, RowType.SIDE_EFFECT, "se1", "name", "x", "d1", ParentType.DIAGNOSTIC
    )
    assert result is migraine


def test_edit_non_editable_field_is_noop(migraine):
    assert apply_field_edit(migraine, RowType.TREATMENT, "t1", "id", "t9") is migraine
    assert (
        apply_field_edit(migraine, RowType.DIAGNOSTIC, "d1", "application", "IV")
        is migraine
    )


def test_edit_invalid_value_is_noop(migraine):
    assert (
        apply_field_edit(migraine, RowType.TREATMENT, "t1", "setting", "moon")
        is migraine
    )
    assert (
        apply_field_edit(migraine, RowType.TREATMENT, "t1", "efficacy", "high")
        is migraine
    )


# --- add_child / remove_entity ---


def test_add_treatment(migraine):
    updated, child_id = add_child(migraine, RowType.AILMENT, "1", RowType.TREATMENT)

    assert [t.id for t in updated.treatments][-1] == child_id
    assert len(updated.treatments) == 3
    assert len(migraine.treatments) == 2


def test_add_side_effect_to_diagnostic(migraine):
    updated, child_id = add_child(migraine, RowType.DIAGNOSTIC, "d1", RowType.SIDE_EFFECT)
    assert updated.diagnostics[0].side_effects[0].id == child_id


def test_add_child_impossible_combination(migraine):
    updated, child_id = add_child(migraine, RowType.AILMENT, "1", RowType.SIDE_EFFECT)
    assert child_id is None
    assert updated is migraine


def test_remove_side_effect(migraine):
    updated = remove_entity(
        migraine, RowType.SIDE_EFFECT, "se1", "t1", ParentType.TREATMENT
    )
    assert updated.treatments[0].side_effects == []
    assert len(migraine.treatments[0].side_effects) == 1


def test_remove_diagnostic(migraine):
    updated = remove_entity(migraine, RowType.DIAGNOSTIC, "d1", "1")
    assert updated.diagnostics == []
    assert updated.treatments == migraine.treatments


def test_remove_missing_entity_is_noop(migraine):
    assert remove_entity(migraine, RowType.TREATMENT, "gone", "1") is migraine
