"""Keyed document store for ailment aggregates.

Keyed access and full scans only: no filtering, no pagination, no partial
writes. A put always replaces the whole aggregate.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from ailment_tracker.data_sources.base_client import DataSourceError
from ailment_tracker.models.ailment import Ailment
from ailment_tracker.sqlalchemy.ailments import AilmentRecord

logger = logging.getLogger(__name__)


class StoreError(DataSourceError):
    """Raised when the underlying database fails."""

    def __init__(self, message: str):
        super().__init__("store", message)


class AilmentStore:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get(self, ailment_id: str) -> Ailment | None:
        try:
            with self._session_factory() as db:
                record = db.get(AilmentRecord, ailment_id)
                return Ailment.model_validate(record.document) if record else None
        except SQLAlchemyError as e:
            raise StoreError(f"get {ailment_id} failed: {e}") from e

    def put(self, ailment: Ailment) -> Ailment:
        try:
            with self._session_factory() as db:
                record = db.get(AilmentRecord, ailment.id)
                if record is None:
                    db.add(AilmentRecord(id=ailment.id, document=ailment.to_document()))
                else:
                    record.document = ailment.to_document()
                db.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"put {ailment.id} failed: {e}") from e
        logger.debug("Stored ailment %s (version %d)", ailment.id, ailment.version)
        return ailment

    def delete(self, ailment_id: str) -> bool:
        """Delete by id. Returns False when nothing was stored under the id."""
        try:
            with self._session_factory() as db:
                result = db.execute(
                    delete(AilmentRecord).where(AilmentRecord.id == ailment_id)
                )
                db.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"delete {ailment_id} failed: {e}") from e
        return result.rowcount > 0

    def scan(self) -> list[Ailment]:
        """Every stored aggregate, in insertion order of the table."""
        try:
            with self._session_factory() as db:
                records = db.scalars(select(AilmentRecord)).all()
                return [Ailment.model_validate(r.document) for r in records]
        except SQLAlchemyError as e:
            raise StoreError(f"scan failed: {e}") from e

    def truncate(self) -> int:
        try:
            with self._session_factory() as db:
                result = db.execute(delete(AilmentRecord))
                db.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"truncate failed: {e}") from e
        return result.rowcount
