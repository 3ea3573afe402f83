"""Query/mutation surface over the ailment service.

Every successful mutation is published on its push channel after the store
write. The plain methods are blocking and are what the REST handlers call
from FastAPI's threadpool. ``AilmentOperations`` also implements
``AilmentApi``, so an in-process view can use it directly in place of the
REST client.
"""

import logging

from ailment_tracker.constants import (
    AILMENT_CREATED,
    AILMENT_DELETED,
    AILMENT_UPDATED,
    DELETE_FAILURE_MESSAGE,
    DELETE_SUCCESS_MESSAGE,
)
from ailment_tracker.models.ailment import Ailment, DeleteResponse
from ailment_tracker.models.inputs import CreateAilmentInput, UpdateAilmentInput
from ailment_tracker.services.ailment_service import AilmentService
from ailment_tracker.services.events import EventBroker
from ailment_tracker.sync.transport import AilmentApi

logger = logging.getLogger(__name__)


class AilmentOperations(AilmentApi):
    def __init__(self, service: AilmentService, broker: EventBroker | None = None):
        self.service = service
        self.broker = broker or EventBroker()

    # -- Blocking -------------------------------------------------------------

    def list_all(self) -> list[Ailment]:
        return self.service.find_all()

    def get(self, ailment_id: str) -> Ailment | None:
        return self.service.find_one(ailment_id)

    def create(self, data: CreateAilmentInput) -> Ailment:
        ailment = self.service.create(data)
        self.broker.publish(AILMENT_CREATED, ailment.to_document())
        return ailment

    def update(self, ailment_id: str, data: UpdateAilmentInput) -> Ailment | None:
        ailment = self.service.update(ailment_id, data)
        if ailment is not None:
            self.broker.publish(AILMENT_UPDATED, ailment.to_document())
        return ailment

    def delete(self, ailment_id: str) -> DeleteResponse:
        """Delete by id; the deleted event is only published for a real removal."""
        success = self.service.delete(ailment_id)
        response = DeleteResponse(
            id=ailment_id,
            success=success,
            message=DELETE_SUCCESS_MESSAGE if success else DELETE_FAILURE_MESSAGE,
        )
        if success:
            self.broker.publish(AILMENT_DELETED, response.to_document())
        return response

    # -- AilmentApi -----------------------------------------------------------

    async def list_ailments(self) -> list[Ailment]:
        return self.list_all()

    async def get_ailment(self, ailment_id: str) -> Ailment | None:
        return self.get(ailment_id)

    async def create_ailment(self, data: CreateAilmentInput) -> Ailment:
        return self.create(data)

    async def update_ailment(
        self, ailment_id: str, data: UpdateAilmentInput
    ) -> Ailment | None:
        return self.update(ailment_id, data)

    async def delete_ailment(self, ailment_id: str) -> DeleteResponse:
        return self.delete(ailment_id)
