"""Ailment service: normalize, version and persist whole aggregates.

Reads go through the cache; every write replaces the stored aggregate and
then drops the affected cache keys. The cache is advisory, so a cache
failure never fails a request, while a store failure always does.
"""

import logging

from pydantic import ValidationError

from ailment_tracker.config import get_settings
from ailment_tracker.constants import AILMENT_CACHE_KEY, ALL_AILMENTS_CACHE_KEY
from ailment_tracker.db.session import get_session_factory
from ailment_tracker.models.ailment import Ailment, new_id
from ailment_tracker.models.inputs import CreateAilmentInput, UpdateAilmentInput
from ailment_tracker.services.normalization import (
    normalize_details,
    normalize_diagnostic,
    normalize_treatment,
)
from ailment_tracker.store.document_store import AilmentStore
from ailment_tracker.utils.cache import AilmentCache

logger = logging.getLogger(__name__)


class AilmentService:
    def __init__(self, store: AilmentStore, cache: AilmentCache | None = None):
        self.store = store
        self.cache = cache or AilmentCache(enabled=False)

    @classmethod
    def from_settings(cls) -> "AilmentService":
        """Build a service on the configured database and cache directory."""
        settings = get_settings()
        return cls(
            AilmentStore(get_session_factory()),
            AilmentCache(
                settings.cache_dir,
                ttl=settings.cache_ttl,
                enabled=settings.cache_enabled,
            ),
        )

    # -- Reads ----------------------------------------------------------------

    def find_all(self) -> list[Ailment]:
        key = ALL_AILMENTS_CACHE_KEY
        documents = self.cache.get_or_compute(
            key, lambda: [a.to_document() for a in self.store.scan()]
        )
        try:
            return [Ailment.model_validate(d) for d in documents]
        except (TypeError, ValidationError) as e:
            logger.warning("Discarding malformed cache entry %s: %s", key, e)
            self.cache.invalidate(key)
            return self.store.scan()

    def find_one(self, ailment_id: str) -> Ailment | None:
        key = AILMENT_CACHE_KEY.format(id=ailment_id)

        def load():
            ailment = self.store.get(ailment_id)
            return ailment.to_document() if ailment else None

        document = self.cache.get_or_compute(key, load)
        if document is None:
            return None
        try:
            return Ailment.model_validate(document)
        except ValidationError as e:
            logger.warning("Discarding malformed cache entry %s: %s", key, e)
            self.cache.invalidate(key)
            return self.store.get(ailment_id)

    # -- Writes ---------------------------------------------------------------

    def create(self, data: CreateAilmentInput) -> Ailment:
        """Store a new aggregate.

        A client-supplied id is kept; if it is already stored, the stored
        aggregate is overwritten and its version continues from the old one.
        """
        ailment_id = data.id or new_id()
        existing = self.store.get(ailment_id)
        if existing is not None:
            logger.info("Create for existing ailment %s overwrites it", ailment_id)

        ailment = Ailment(
            id=ailment_id,
            ailment=normalize_details(data.ailment),
            treatments=[normalize_treatment(t) for t in data.treatments or []],
            diagnostics=[normalize_diagnostic(d) for d in data.diagnostics or []],
            version=existing.version + 1 if existing else 1,
        )
        self.store.put(ailment)
        self._invalidate(ailment_id)
        logger.info("Created ailment %s (%s)", ailment_id, ailment.name or "unnamed")
        return ailment

    def update(self, ailment_id: str, data: UpdateAilmentInput) -> Ailment | None:
        """Replace each group present in ``data``; None if the id is not stored."""
        existing = self.store.get(ailment_id)
        if existing is None:
            logger.info("Update for unknown ailment %s", ailment_id)
            return None

        ailment = Ailment(
            id=ailment_id,
            ailment=(
                normalize_details(data.ailment)
                if data.ailment is not None
                else existing.ailment
            ),
            treatments=(
                [normalize_treatment(t) for t in data.treatments]
                if data.treatments is not None
                else existing.treatments
            ),
            diagnostics=(
                [normalize_diagnostic(d) for d in data.diagnostics]
                if data.diagnostics is not None
                else existing.diagnostics
            ),
            version=existing.version + 1,
        )
        self.store.put(ailment)
        self._invalidate(ailment_id)
        logger.info("Updated ailment %s to version %d", ailment_id, ailment.version)
        return ailment

    def delete(self, ailment_id: str) -> bool:
        removed = self.store.delete(ailment_id)
        self._invalidate(ailment_id)
        if removed:
            logger.info("Deleted ailment %s", ailment_id)
        else:
            logger.info("Delete for unknown ailment %s", ailment_id)
        return removed

    def seed(self, ailments: list[Ailment]) -> int:
        """Store ``ailments`` as given (ids and contents kept), replacing any held."""
        for ailment in ailments:
            existing = self.store.get(ailment.id)
            version = existing.version + 1 if existing else max(ailment.version, 1)
            self.store.put(ailment.model_copy(update={"version": version}))
        self.cache.invalidate("ailment*")
        return len(ailments)

    def _invalidate(self, ailment_id: str) -> None:
        self.cache.invalidate(ALL_AILMENTS_CACHE_KEY)
        self.cache.invalidate(AILMENT_CACHE_KEY.format(id=ailment_id))
