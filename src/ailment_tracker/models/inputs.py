"""Write-path inputs for create/update mutations.

Nested payloads are deliberately loose (plain dicts); the service normalizes
them into canonical entities on every write.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from ailment_tracker.models.ailment import Ailment


class _Input(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class CreateAilmentInput(_Input):
    """``id`` is optional; an existing id is overwritten, not rejected."""

    id: str | None = None
    ailment: dict[str, Any]
    treatments: list[dict[str, Any]] | None = None
    diagnostics: list[dict[str, Any]] | None = None

    @classmethod
    def from_ailment(cls, ailment: Ailment) -> "CreateAilmentInput":
        document = ailment.to_document()
        return cls(
            id=ailment.id,
            ailment=document["ailment"],
            treatments=document["treatments"],
            diagnostics=document["diagnostics"],
        )


class UpdateAilmentInput(_Input):
    """Each group present replaces the stored group wholesale; absent groups are kept."""

    ailment: dict[str, Any] | None = None
    treatments: list[dict[str, Any]] | None = None
    diagnostics: list[dict[str, Any]] | None = None

    @classmethod
    def from_ailment(cls, ailment: Ailment) -> "UpdateAilmentInput":
        document = ailment.to_document()
        return cls(
            ailment=document["ailment"],
            treatments=document["treatments"],
            diagnostics=document["diagnostics"],
        )

    def to_body(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
