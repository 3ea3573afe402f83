"""Pydantic models for the ailment aggregate.

An Ailment is the unit of persistence: its treatments, diagnostics and their
side effects are owned by it and always written back together. Documents use
camelCase keys on the wire and in the store (``sideEffects``,
``isPreventative``); Python code uses the snake_case attribute names.
"""

from enum import Enum
from typing import Any
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from ailment_tracker.helpers.formatters import coerce_duration, coerce_percent


class Application(str, Enum):
    ORAL = "oral"
    IV = "IV"
    TOPICAL = "topical"
    SURGICAL = "surgical"


class TreatmentType(str, Enum):
    HOLISTIC = "holistic"
    SYMPTOM_BASED = "symptom-based"

    @classmethod
    def _missing_(cls, value: object) -> "TreatmentType | None":
        # Grid clients send "symptom_based"
        if isinstance(value, str):
            normalized = value.strip().lower().replace("_", "-")
            for member in cls:
                if member.value == normalized:
                    return member
        return None


class Setting(str, Enum):
    HOSPITAL = "hospital"
    CLINIC = "clinic"
    HOME = "home"


def new_id() -> str:
    return str(uuid4())


class DocumentModel(BaseModel):
    """Shared config: camelCase aliases, validation on every assignment."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        validate_assignment=True,
    )

    @model_validator(mode="before")
    @classmethod
    def coerce_nones(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        values = dict(values)
        for field_name, field_info in cls.model_fields.items():
            key = field_info.alias if field_info.alias in values else field_name
            if values.get(key, ...) is None and not field_info.is_required():
                values[key] = field_info.get_default(call_default_factory=True)
        return values

    def to_document(self) -> dict[str, Any]:
        """JSON-ready dict with camelCase keys, as stored and published."""
        return self.model_dump(mode="json", by_alias=True)


class _Measured(DocumentModel):
    """Fields shared by every level: name, description, duration, intensity."""

    name: str = ""
    description: str = ""
    duration: int = 0  # seconds
    intensity: int = 0  # 0-100

    @field_validator("duration", mode="before")
    @classmethod
    def _duration(cls, value: Any) -> int:
        return coerce_duration(value)

    @field_validator("intensity", "severity", "efficacy", mode="before", check_fields=False)
    @classmethod
    def _percent(cls, value: Any) -> int:
        return coerce_percent(value)


class SideEffect(_Measured):
    """A side effect owned by exactly one treatment or diagnostic."""

    id: str = Field(default_factory=new_id)
    severity: int = 0  # 0-100


class _Procedure(_Measured):
    """Fields shared by treatments and diagnostics."""

    id: str = Field(default_factory=new_id)
    efficacy: int = 0  # 0-100
    type: TreatmentType = TreatmentType.SYMPTOM_BASED
    side_effects: list[SideEffect] = []
    setting: Setting = Setting.CLINIC


class Diagnostic(_Procedure):
    """A diagnostic procedure for an ailment."""


class Treatment(_Procedure):
    """A treatment for an ailment, with its application and intent flags."""

    application: Application = Application.ORAL
    is_preventative: bool = False
    is_palliative: bool = False
    is_curative: bool = False


class AilmentDetails(_Measured):
    """Embedded descriptive value of an ailment; not independently addressable."""

    severity: int = 0  # 0-100


class Ailment(DocumentModel):
    """Aggregate root.

    ``version`` is assigned by the service on every write and lets push
    consumers discard payloads older than the one they already hold.
    """

    id: str = Field(default_factory=new_id)
    ailment: AilmentDetails = Field(default_factory=AilmentDetails)
    treatments: list[Treatment] = []
    diagnostics: list[Diagnostic] = []
    version: int = 0

    @property
    def name(self) -> str:
        return self.ailment.name


class DeleteResponse(DocumentModel):
    """Result of a delete mutation; also the payload of the deleted push stream."""

    id: str
    success: bool
    message: str | None = None
