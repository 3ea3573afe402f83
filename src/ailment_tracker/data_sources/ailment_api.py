"""REST client for a remote ailment API."""

import logging
from typing import Any

from pydantic import ValidationError

from ailment_tracker.config import get_settings
from ailment_tracker.data_sources.base_client import (
    BaseClient,
    ClientConfig,
    DataSourceError,
    RequestContext,
)
from ailment_tracker.models.ailment import Ailment, DeleteResponse
from ailment_tracker.models.inputs import CreateAilmentInput, UpdateAilmentInput
from ailment_tracker.sync.transport import AilmentApi

logger = logging.getLogger(__name__)


class AilmentApiClient(BaseClient, AilmentApi):
    """Client for the ailment REST routes served by ``ailment_tracker.api.main``."""

    def __init__(self, base_url: str | None = None, config: ClientConfig | None = None):
        super().__init__(config)
        self.base_url = (base_url or get_settings().api_base_url).rstrip("/")

    @property
    def _source_name(self) -> str:
        return "ailment_api"

    async def _call(
        self,
        method: str,
        path: str,
        operation: str,
        json_body: dict[str, Any] | None = None,
    ) -> Any:
        result = await self._request(
            method,
            f"{self.base_url}{path}",
            json_body=json_body,
            context=RequestContext(source=self._source_name, method=operation),
        )
        if not result.is_complete:
            raise DataSourceError(self._source_name, "; ".join(result.errors))
        return result.data

    def _parse(self, data: Any, operation: str) -> Ailment:
        try:
            return Ailment.model_validate(data)
        except ValidationError as e:
            raise DataSourceError(
                self._source_name, f"Unexpected response shape from {operation}: {e}"
            )

    async def list_ailments(self) -> list[Ailment]:
        data = await self._call("GET", "/ailments", "list_ailments")
        if not isinstance(data, list):
            raise DataSourceError(
                self._source_name, "Unexpected response shape from list_ailments"
            )
        return [self._parse(item, "list_ailments") for item in data]

    async def get_ailment(self, ailment_id: str) -> Ailment | None:
        try:
            data = await self._call("GET", f"/ailments/{ailment_id}", "get_ailment")
        except DataSourceError as e:
            if e.status_code == 404:
                return None
            raise
        return self._parse(data, "get_ailment")

    async def create_ailment(self, data: CreateAilmentInput) -> Ailment:
        body = data.model_dump(by_alias=True, exclude_none=True)
        created = await self._call("POST", "/ailments", "create_ailment", body)
        return self._parse(created, "create_ailment")

    async def update_ailment(
        self, ailment_id: str, data: UpdateAilmentInput
    ) -> Ailment | None:
        try:
            updated = await self._call(
                "PUT", f"/ailments/{ailment_id}", "update_ailment", data.to_body()
            )
        except DataSourceError as e:
            if e.status_code == 404:
                return None
            raise
        return self._parse(updated, "update_ailment")

    async def delete_ailment(self, ailment_id: str) -> DeleteResponse:
        data = await self._call("DELETE", f"/ailments/{ailment_id}", "delete_ailment")
        try:
            return DeleteResponse.model_validate(data)
        except ValidationError as e:
            raise DataSourceError(
                self._source_name, f"Unexpected response shape from delete_ailment: {e}"
            )
