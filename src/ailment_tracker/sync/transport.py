"""Contracts a view needs from the remote side.

``AilmentApi`` is the request/response surface; ``PushChannel`` delivers
out-of-band change notifications. Both are implemented in-process (by the
API operations and the event broker) and over the network (by the REST
client and the websocket channel).
"""

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from ailment_tracker.models.ailment import Ailment, DeleteResponse
from ailment_tracker.models.inputs import CreateAilmentInput, UpdateAilmentInput

OnData = Callable[[dict[str, Any]], None]
OnError = Callable[[Exception], None]


class AilmentApi(ABC):
    """Query/mutation surface for ailment aggregates."""

    @abstractmethod
    async def list_ailments(self) -> list[Ailment]: ...

    @abstractmethod
    async def get_ailment(self, ailment_id: str) -> Ailment | None: ...

    @abstractmethod
    async def create_ailment(self, data: CreateAilmentInput) -> Ailment: ...

    @abstractmethod
    async def update_ailment(
        self, ailment_id: str, data: UpdateAilmentInput
    ) -> Ailment | None: ...

    @abstractmethod
    async def delete_ailment(self, ailment_id: str) -> DeleteResponse: ...


class Subscription(ABC):
    @abstractmethod
    def unsubscribe(self) -> None: ...


class PushChannel(ABC):
    """Source of push events, one named stream per change type."""

    @abstractmethod
    def subscribe(
        self, channel: str, on_data: OnData, on_error: OnError | None = None
    ) -> Subscription: ...
