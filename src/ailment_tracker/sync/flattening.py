"""
Projection of nested ailment aggregates into flat grid rows, and the inverse.

``flatten`` is a pure function of the ailment list and the set of expanded
entity ids. Order is stable: ailments in list order; under an expanded
ailment its treatments then its diagnostics; under an expanded treatment or
diagnostic its side effects, directly after the parent row.

The inverse direction (``locate``, ``apply_field_edit``, ``add_child``,
``remove_entity``) always works on the aggregate found by id in the current
collection, never on a row's back reference, and never mutates its input.
Targets that cannot be found are reported as ``StaleRowError`` by ``locate``
and are silent no-ops everywhere else: a delete racing a pending edit is
expected, not exceptional.
"""

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from pydantic import ValidationError
from pydantic.alias_generators import to_snake

from ailment_tracker.helpers.ailment_helpers import (
    find_ailment,
    new_diagnostic,
    new_side_effect,
    new_treatment,
)
from ailment_tracker.models.ailment import (
    Ailment,
    AilmentDetails,
    Diagnostic,
    SideEffect,
    Treatment,
)
from ailment_tracker.models.display_row import DisplayRow, ParentType, RowType

logger = logging.getLogger(__name__)

Entity = Ailment | AilmentDetails | Treatment | Diagnostic | SideEffect

_COMMON_FIELDS = frozenset({"name", "description", "duration", "intensity"})

EDITABLE_FIELDS: dict[RowType, frozenset[str]] = {
    RowType.AILMENT: _COMMON_FIELDS | {"severity"},
    RowType.TREATMENT: _COMMON_FIELDS
    | {
        "application",
        "efficacy",
        "type",
        "setting",
        "is_preventative",
        "is_palliative",
        "is_curative",
    },
    RowType.DIAGNOSTIC: _COMMON_FIELDS | {"efficacy", "type", "setting"},
    RowType.SIDE_EFFECT: _COMMON_FIELDS | {"severity"},
}


class StaleRowError(LookupError):
    """The row's aggregate or entity is no longer in the current collection."""

    def __init__(self, row_id: str, ailment_id: str):
        self.row_id = row_id
        self.ailment_id = ailment_id
        super().__init__(f"Row {row_id} of ailment {ailment_id} is stale")


# ---------------------------------------------------------------------------
# Flatten
# ---------------------------------------------------------------------------


def flatten(ailments: Iterable[Ailment], expanded: Iterable[str]) -> list[DisplayRow]:
    """Project ailments into display rows, honouring the expansion set."""
    expanded = frozenset(expanded)
    rows: list[DisplayRow] = []

    for ailment in ailments:
        rows.append(_ailment_row(ailment, expanded))
        if ailment.id not in expanded:
            continue

        for treatment in ailment.treatments:
            rows.append(_child_row(treatment, RowType.TREATMENT, ailment, expanded))
            if treatment.id in expanded:
                rows.extend(
                    _side_effect_row(s, treatment.id, ParentType.TREATMENT, ailment)
                    for s in treatment.side_effects
                )

        for diagnostic in ailment.diagnostics:
            rows.append(_child_row(diagnostic, RowType.DIAGNOSTIC, ailment, expanded))
            if diagnostic.id in expanded:
                rows.extend(
                    _side_effect_row(s, diagnostic.id, ParentType.DIAGNOSTIC, ailment)
                    for s in diagnostic.side_effects
                )

    return rows


def _ailment_row(ailment: Ailment, expanded: frozenset[str]) -> DisplayRow:
    details = ailment.ailment
    return DisplayRow(
        id=ailment.id,
        row_type=RowType.AILMENT,
        level=0,
        has_children=bool(ailment.treatments or ailment.diagnostics),
        is_expanded=ailment.id in expanded,
        name=details.name,
        description=details.description,
        duration=details.duration,
        intensity=details.intensity,
        severity=details.severity,
        back_reference=ailment,
    )


def _child_row(
    entity: Treatment | Diagnostic,
    row_type: RowType,
    ailment: Ailment,
    expanded: frozenset[str],
) -> DisplayRow:
    row = DisplayRow(
        id=entity.id,
        row_type=row_type,
        level=1,
        parent_id=ailment.id,
        has_children=bool(entity.side_effects),
        is_expanded=entity.id in expanded,
        name=entity.name,
        description=entity.description,
        duration=entity.duration,
        intensity=entity.intensity,
        efficacy=entity.efficacy,
        type=entity.type.value,
        setting=entity.setting.value,
        back_reference=ailment,
    )
    if row_type is RowType.TREATMENT:
        row.application = entity.application.value
        row.is_preventative = entity.is_preventative
        row.is_palliative = entity.is_palliative
        row.is_curative = entity.is_curative
    return row


def _side_effect_row(
    side_effect: SideEffect,
    parent_id: str,
    parent_type: ParentType,
    ailment: Ailment,
) -> DisplayRow:
    return DisplayRow(
        id=side_effect.id,
        row_type=RowType.SIDE_EFFECT,
        level=2,
        parent_id=parent_id,
        grand_parent_id=ailment.id,
        parent_type=parent_type,
        has_children=False,
        name=side_effect.name,
        description=side_effect.description,
        duration=side_effect.duration,
        intensity=side_effect.intensity,
        severity=side_effect.severity,
        back_reference=ailment,
    )


def toggle_expanded(expanded: Iterable[str], entity_id: str) -> frozenset[str]:
    expanded = frozenset(expanded)
    if entity_id in expanded:
        return expanded - {entity_id}
    return expanded | {entity_id}


# ---------------------------------------------------------------------------
# Locate
# ---------------------------------------------------------------------------


def _owner(ailment: Ailment, parent_type: ParentType | None, parent_id: str | None):
    if parent_type is ParentType.TREATMENT:
        collection = ailment.treatments
    elif parent_type is ParentType.DIAGNOSTIC:
        collection = ailment.diagnostics
    else:
        return None
    return next((p for p in collection if p.id == parent_id), None)


def find_entity(
    ailment: Ailment,
    row_type: RowType,
    row_id: str,
    parent_id: str | None = None,
    parent_type: ParentType | None = None,
) -> Entity | None:
    """Find an entity inside ``ailment`` by id along its stated parent chain.

    Returns the ailment itself for ailment rows, or None when the id is not
    present under the given parent.
    """
    row_type = RowType(row_type)
    if row_type is RowType.AILMENT:
        return ailment if ailment.id == row_id else None

    if row_type is RowType.SIDE_EFFECT:
        owner = _owner(
            ailment, ParentType(parent_type) if parent_type else None, parent_id
        )
        if owner is None:
            return None
        return next((s for s in owner.side_effects if s.id == row_id), None)

    if parent_id is not None and parent_id != ailment.id:
        return None
    collection = (
        ailment.treatments if row_type is RowType.TREATMENT else ailment.diagnostics
    )
    return next((e for e in collection if e.id == row_id), None)


def locate(row: DisplayRow, ailments: Sequence[Ailment]) -> tuple[Ailment, Entity]:
    """Resolve a row to its current aggregate and entity.

    The aggregate is looked up by id in ``ailments``; the back reference only
    supplies the id. Raises StaleRowError when either is gone.
    """
    ailment_id = row.back_reference.id if row.back_reference else row.ailment_id
    ailment = find_ailment(list(ailments), ailment_id)
    if ailment is None:
        raise StaleRowError(row.id, ailment_id)

    entity = find_entity(ailment, row.row_type, row.id, row.parent_id, row.parent_type)
    if entity is None:
        raise StaleRowError(row.id, ailment_id)
    return ailment, entity


# ---------------------------------------------------------------------------
# Edits
# ---------------------------------------------------------------------------


def _field_name(row_type: RowType, field: str) -> str | None:
    name = to_snake(field)
    return name if name in EDITABLE_FIELDS[row_type] else None


def apply_field_edit(
    ailment: Ailment,
    row_type: RowType,
    row_id: str,
    field: str,
    value: Any,
    parent_id: str | None = None,
    parent_type: ParentType | None = None,
) -> Ailment:
    """Return a copy of ``ailment`` with one scalar field of one entity changed.

    ``field`` may be snake_case or camelCase. Percentages are clamped and
    durations parsed by the models. The input is returned unchanged when the
    entity is not found, the field is not editable for the row type, or the
    value cannot be interpreted (e.g. an unknown enum member).
    """
    row_type = RowType(row_type)
    name = _field_name(row_type, field)
    if name is None:
        logger.debug("Ignoring edit of non-editable field %r on %s", field, row_type.value)
        return ailment

    clone = ailment.model_copy(deep=True)
    target = find_entity(clone, row_type, row_id, parent_id, parent_type)
    if target is None:
        logger.debug("Ignoring edit of missing %s %s", row_type.value, row_id)
        return ailment
    if isinstance(target, Ailment):
        target = target.ailment

    try:
        setattr(target, name, value)
    except ValidationError as e:
        logger.debug("Ignoring invalid value %r for %s: %s", value, name, e.errors()[0]["msg"])
        return ailment
    return clone


def add_child(
    ailment: Ailment,
    parent_row_type: RowType,
    parent_id: str,
    child_type: RowType,
) -> tuple[Ailment, str | None]:
    """Append a default child under a row.

    Treatments and diagnostics go under the ailment row; side effects under a
    treatment or diagnostic row. Returns the new aggregate and the child's id,
    or the unchanged aggregate and None for an impossible combination.
    """
    parent_row_type = RowType(parent_row_type)
    child_type = RowType(child_type)
    clone = ailment.model_copy(deep=True)

    if parent_row_type is RowType.AILMENT and parent_id == ailment.id:
        if child_type is RowType.TREATMENT:
            child = new_treatment()
            clone.treatments = [*clone.treatments, child]
            return clone, child.id
        if child_type is RowType.DIAGNOSTIC:
            child = new_diagnostic()
            clone.diagnostics = [*clone.diagnostics, child]
            return clone, child.id

    if child_type is RowType.SIDE_EFFECT and parent_row_type in (
        RowType.TREATMENT,
        RowType.DIAGNOSTIC,
    ):
        owner = _owner(clone, ParentType(parent_row_type.value), parent_id)
        if owner is not None:
            child = new_side_effect()
            owner.side_effects = [*owner.side_effects, child]
            return clone, child.id

    logger.debug(
        "Cannot add %s under %s %s", child_type.value, parent_row_type.value, parent_id
    )
    return ailment, None


def remove_entity(
    ailment: Ailment,
    row_type: RowType,
    row_id: str,
    parent_id: str | None = None,
    parent_type: ParentType | None = None,
) -> Ailment:
    """Return a copy of ``ailment`` without one nested entity.

    Ailment rows are not handled here; deleting the aggregate is a separate
    operation. Missing targets leave the aggregate unchanged.
    """
    row_type = RowType(row_type)
    if find_entity(ailment, row_type, row_id, parent_id, parent_type) is None:
        return ailment

    clone = ailment.model_copy(deep=True)
    if row_type is RowType.TREATMENT:
        clone.treatments = [t for t in clone.treatments if t.id != row_id]
    elif row_type is RowType.DIAGNOSTIC:
        clone.diagnostics = [d for d in clone.diagnostics if d.id != row_id]
    elif row_type is RowType.SIDE_EFFECT:
        owner = _owner(clone, ParentType(parent_type), parent_id)
        owner.side_effects = [s for s in owner.side_effects if s.id != row_id]
    else:
        return ailment
    return clone
