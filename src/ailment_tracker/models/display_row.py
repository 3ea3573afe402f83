"""Flat grid row projected from the nested ailment aggregate."""

from dataclasses import dataclass, field
from enum import Enum

from ailment_tracker.models.ailment import Ailment


class RowType(str, Enum):
    AILMENT = "ailment"
    TREATMENT = "treatment"
    DIAGNOSTIC = "diagnostic"
    SIDE_EFFECT = "sideEffect"


class ParentType(str, Enum):
    TREATMENT = "treatment"
    DIAGNOSTIC = "diagnostic"


@dataclass
class DisplayRow:
    """One visible entity at any nesting level.

    Only the fields that apply to ``row_type`` are populated. ``back_reference``
    points at the ailment the row was projected from; it is only a hint for
    finding the aggregate again and must not be kept across state updates.
    """

    id: str
    row_type: RowType
    level: int
    has_children: bool = False
    is_expanded: bool = False
    parent_id: str | None = None
    grand_parent_id: str | None = None
    parent_type: ParentType | None = None

    name: str = ""
    description: str = ""
    duration: int = 0
    intensity: int = 0
    severity: int | None = None

    application: str | None = None
    efficacy: int | None = None
    type: str | None = None
    setting: str | None = None
    is_preventative: bool | None = None
    is_palliative: bool | None = None
    is_curative: bool | None = None

    back_reference: Ailment | None = field(default=None, repr=False, compare=False)

    @property
    def ailment_id(self) -> str:
        """Id of the owning aggregate, whatever the row level."""
        if self.row_type is RowType.AILMENT:
            return self.id
        if self.row_type is RowType.SIDE_EFFECT:
            return self.grand_parent_id or ""
        return self.parent_id or ""
