from datetime import datetime, timezone

from sqlalchemy import JSON, DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from ailment_tracker.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AilmentRecord(Base):
    """One ailment aggregate stored as a single JSON document keyed by id."""

    __tablename__ = "ailments"

    id: Mapped[str] = mapped_column(Text, primary_key=True)
    document: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )
