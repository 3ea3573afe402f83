"""Normalize loosely typed nested payloads into canonical entities.

One explicit mapping per level. Every field is filled from the input or its
default, missing ids are generated, out-of-range percentages are clamped, and
values that cannot be interpreted (unknown enum members, non-numeric
percentages) fall back to the default.
"""

import logging
from enum import Enum
from typing import Any, TypeVar

from ailment_tracker.helpers.formatters import coerce_duration, coerce_percent
from ailment_tracker.models.ailment import (
    AilmentDetails,
    Application,
    Diagnostic,
    Setting,
    SideEffect,
    Treatment,
    TreatmentType,
    new_id,
)

logger = logging.getLogger(__name__)

_E = TypeVar("_E", bound=Enum)


def _get(raw: dict[str, Any], snake: str, camel: str | None = None) -> Any:
    if camel and camel in raw:
        return raw[camel]
    return raw.get(snake)


def _text(value: Any) -> str:
    return "" if value is None else str(value)


def _percent(value: Any) -> int:
    try:
        return coerce_percent(value)
    except ValueError:
        if value is not None:
            logger.debug("Replacing unreadable percentage %r with 0", value)
        return 0


def _duration(value: Any) -> int:
    try:
        return coerce_duration(value)
    except ValueError:
        logger.debug("Replacing unreadable duration %r with 0", value)
        return 0


def _choice(enum_cls: type[_E], value: Any, default: _E) -> _E:
    if value is None:
        return default
    try:
        return enum_cls(value)
    except ValueError:
        logger.warning(
            "Unknown %s %r, using %s", enum_cls.__name__, value, default.value
        )
        return default


def normalize_side_effect(raw: dict[str, Any]) -> SideEffect:
    return SideEffect(
        id=raw.get("id") or new_id(),
        name=_text(raw.get("name")),
        description=_text(raw.get("description")),
        duration=_duration(raw.get("duration")),
        intensity=_percent(raw.get("intensity")),
        severity=_percent(raw.get("severity")),
    )


def normalize_side_effects(raw: list[dict[str, Any]] | None) -> list[SideEffect]:
    return [normalize_side_effect(s) for s in raw or []]


def normalize_treatment(raw: dict[str, Any]) -> Treatment:
    return Treatment(
        id=raw.get("id") or new_id(),
        name=_text(raw.get("name")),
        description=_text(raw.get("description")),
        application=_choice(Application, raw.get("application"), Application.ORAL),
        efficacy=_percent(raw.get("efficacy")),
        duration=_duration(raw.get("duration")),
        intensity=_percent(raw.get("intensity")),
        type=_choice(TreatmentType, raw.get("type"), TreatmentType.SYMPTOM_BASED),
        side_effects=normalize_side_effects(_get(raw, "side_effects", "sideEffects")),
        setting=_choice(Setting, raw.get("setting"), Setting.CLINIC),
        is_preventative=bool(_get(raw, "is_preventative", "isPreventative")),
        is_palliative=bool(_get(raw, "is_palliative", "isPalliative")),
        is_curative=bool(_get(raw, "is_curative", "isCurative")),
    )


def normalize_diagnostic(raw: dict[str, Any]) -> Diagnostic:
    return Diagnostic(
        id=raw.get("id") or new_id(),
        name=_text(raw.get("name")),
        description=_text(raw.get("description")),
        efficacy=_percent(raw.get("efficacy")),
        duration=_duration(raw.get("duration")),
        intensity=_percent(raw.get("intensity")),
        type=_choice(TreatmentType, raw.get("type"), TreatmentType.SYMPTOM_BASED),
        side_effects=normalize_side_effects(_get(raw, "side_effects", "sideEffects")),
        setting=_choice(Setting, raw.get("setting"), Setting.CLINIC),
    )


def normalize_details(raw: dict[str, Any]) -> AilmentDetails:
    return AilmentDetails(
        name=_text(raw.get("name")),
        description=_text(raw.get("description")),
        duration=_duration(raw.get("duration")),
        intensity=_percent(raw.get("intensity")),
        severity=_percent(raw.get("severity")),
    )
