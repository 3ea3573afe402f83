"""Push event models for aggregate create/update/delete notifications."""

from enum import Enum

from pydantic import BaseModel, model_validator

from ailment_tracker.constants import AILMENT_CREATED, AILMENT_DELETED, AILMENT_UPDATED
from ailment_tracker.models.ailment import Ailment


class ChangeType(str, Enum):
    CREATE = "CREATE"
    UPDATE = "UPDATE"
    DELETE = "DELETE"

    @property
    def channel(self) -> str:
        return CHANNEL_BY_CHANGE[self]

    @classmethod
    def from_channel(cls, channel: str) -> "ChangeType":
        for change, name in CHANNEL_BY_CHANGE.items():
            if name == channel:
                return change
        raise ValueError(f"Unknown channel: {channel}")


CHANNEL_BY_CHANGE: dict[ChangeType, str] = {
    ChangeType.CREATE: AILMENT_CREATED,
    ChangeType.UPDATE: AILMENT_UPDATED,
    ChangeType.DELETE: AILMENT_DELETED,
}


class AilmentChangeEvent(BaseModel):
    """A remote-origin change.

    CREATE and UPDATE carry the full aggregate; DELETE carries only the id
    and whether the store actually removed it.
    """

    type: ChangeType
    ailment_id: str
    ailment: Ailment | None = None
    success: bool = True

    @model_validator(mode="after")
    def check_payload(self) -> "AilmentChangeEvent":
        if self.type is not ChangeType.DELETE and self.ailment is None:
            raise ValueError(f"{self.type.value} event requires an ailment")
        return self

    @classmethod
    def from_payload(cls, channel: str, payload: dict) -> "AilmentChangeEvent":
        """Build an event from a push-channel message body."""
        change = ChangeType.from_channel(channel)
        if change is ChangeType.DELETE:
            return cls(
                type=change,
                ailment_id=payload["id"],
                success=bool(payload.get("success", False)),
            )
        ailment = Ailment.model_validate(payload)
        return cls(type=change, ailment_id=ailment.id, ailment=ailment)
