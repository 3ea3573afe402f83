"""Bubble-chart projection of ailments.

Each ailment becomes one bubble: x is its duration, y its intensity, the size
grows with severity, and a small pie shows its top treatment's efficacy and
intensity. Drawing is left to the consumer; this module only shapes the data.
"""

from pydantic import BaseModel

from ailment_tracker.constants import PERCENT_MAX
from ailment_tracker.helpers.ailment_helpers import get_top_treatment
from ailment_tracker.helpers.formatters import format_duration, severity_color
from ailment_tracker.models.ailment import Ailment

BUBBLE_BASE_SIZE: float = 60.0
BUBBLE_SEVERITY_SCALE: float = 0.4

SLICE_COLORS: dict[str, str] = {
    "Efficacy": "#67b7dc",
    "Treatment Intensity": "#fdd400",
    "Remaining": "#eeeeee",
    "No Treatment": "#cccccc",
}


class PieSlice(BaseModel):
    category: str
    value: int
    color: str


class TopTreatment(BaseModel):
    name: str
    efficacy: int
    intensity: int


class BubbleChartPoint(BaseModel):
    id: str
    ailment_name: str
    duration: int
    duration_formatted: str
    intensity: int
    severity: int
    size: float
    color: str
    top_treatment: TopTreatment | None = None
    slices: list[PieSlice]


class BubbleChart(BaseModel):
    points: list[BubbleChartPoint]
    average_intensity: float


def _slice(category: str, value: int) -> PieSlice:
    return PieSlice(category=category, value=value, color=SLICE_COLORS[category])


def pie_slices(top: TopTreatment | None) -> list[PieSlice]:
    if top is None:
        return [_slice("No Treatment", PERCENT_MAX)]
    return [
        _slice("Efficacy", top.efficacy),
        _slice("Treatment Intensity", top.intensity),
        _slice("Remaining", max(0, PERCENT_MAX - top.efficacy - top.intensity)),
    ]


def bubble_point(ailment: Ailment) -> BubbleChartPoint:
    details = ailment.ailment
    treatment = get_top_treatment(ailment)
    top = (
        TopTreatment(
            name=treatment.name,
            efficacy=treatment.efficacy,
            intensity=treatment.intensity,
        )
        if treatment
        else None
    )
    return BubbleChartPoint(
        id=ailment.id,
        ailment_name=details.name or "Unnamed Ailment",
        duration=details.duration,
        duration_formatted=format_duration(details.duration),
        intensity=details.intensity,
        severity=details.severity,
        size=BUBBLE_BASE_SIZE + details.severity * BUBBLE_SEVERITY_SCALE,
        color=severity_color(details.severity),
        top_treatment=top,
        slices=pie_slices(top),
    )


def build_bubble_chart(ailments: list[Ailment]) -> BubbleChart:
    """Project ``ailments`` into bubble points plus the average intensity line."""
    points = [bubble_point(a) for a in ailments]
    average = sum(p.intensity for p in points) / len(points) if points else 0.0
    return BubbleChart(points=points, average_intensity=average)
