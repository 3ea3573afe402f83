"""Data models for the ailment tracker."""

from ailment_tracker.models.ailment import (
    Ailment,
    AilmentDetails,
    Application,
    DeleteResponse,
    Diagnostic,
    Setting,
    SideEffect,
    Treatment,
    TreatmentType,
)
from ailment_tracker.models.display_row import DisplayRow, ParentType, RowType
from ailment_tracker.models.events import AilmentChangeEvent, ChangeType

__all__ = [
    "Ailment",
    "AilmentChangeEvent",
    "AilmentDetails",
    "Application",
    "ChangeType",
    "DeleteResponse",
    "Diagnostic",
    "DisplayRow",
    "ParentType",
    "RowType",
    "Setting",
    "SideEffect",
    "Treatment",
    "TreatmentType",
]
