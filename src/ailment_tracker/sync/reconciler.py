"""Merge push-delivered changes into a view's local collection.

Events are applied in arrival order with no buffering:

* CREATE is ignored when the id is already held (the echo of our own
  create, or a duplicate delivery), otherwise appended.
* UPDATE replaces the held aggregate unconditionally, unless version checks
  are on and the pushed version is older than the one held.
* DELETE removes the aggregate if present and the store reported success.

Replaying any event is harmless, so at-least-once delivery is fine.
"""

import logging
from collections.abc import Callable
from typing import Any

from pydantic import ValidationError

from ailment_tracker.models.events import AilmentChangeEvent, ChangeType
from ailment_tracker.sync.coordinator import Notifier, log_notifier
from ailment_tracker.sync.state import AilmentCollection

logger = logging.getLogger(__name__)


class RemoteChangeReconciler:
    def __init__(
        self,
        collection: AilmentCollection,
        version_check: bool = True,
        notify: Notifier | None = None,
    ):
        self.collection = collection
        self.version_check = version_check
        self.notify = notify or log_notifier

    def apply(self, event: AilmentChangeEvent) -> bool:
        """Apply one event. Returns True if local state changed."""
        if event.type is ChangeType.CREATE:
            return self._created(event)
        if event.type is ChangeType.UPDATE:
            return self._updated(event)
        return self._deleted(event)

    def _created(self, event: AilmentChangeEvent) -> bool:
        if event.ailment_id in self.collection:
            logger.debug("Ignoring CREATE echo for %s", event.ailment_id)
            return False
        self.collection.upsert(event.ailment)
        self.notify(f"New ailment added: {event.ailment.name or 'Unknown'}", "info")
        return True

    def _updated(self, event: AilmentChangeEvent) -> bool:
        held = self.collection.get(event.ailment_id)
        if held is None:
            logger.debug("Ignoring UPDATE for unknown ailment %s", event.ailment_id)
            return False
        if self.version_check and event.ailment.version < held.version:
            logger.info(
                "Ignoring stale UPDATE for %s (version %d < %d)",
                event.ailment_id,
                event.ailment.version,
                held.version,
            )
            return False
        self.collection.upsert(event.ailment)
        return True

    def _deleted(self, event: AilmentChangeEvent) -> bool:
        if not event.success:
            return False
        if self.collection.remove(event.ailment_id) is None:
            return False
        self.notify("Ailment deleted by another user", "info")
        return True

    # -- Push channel callbacks -----------------------------------------------

    def handle(self, channel: str, payload: dict[str, Any]) -> bool:
        """Parse a raw push message and apply it; malformed messages are dropped."""
        try:
            event = AilmentChangeEvent.from_payload(channel, payload)
        except (ValidationError, KeyError, ValueError) as e:
            logger.warning("Dropping malformed %s message: %s", channel, e)
            return False
        return self.apply(event)

    def callback(self, channel: str) -> Callable[[dict[str, Any]], None]:
        def on_data(payload: dict[str, Any]) -> None:
            self.handle(channel, payload)

        return on_data
