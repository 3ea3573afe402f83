"""
Optimistic mutation coordinator.

Every user edit is applied to the local collection first, synchronously, and
then written remotely as a background task carrying the whole aggregate.
Each write ends in one of two states:

* Confirmed: nothing to do locally; the pending marker is cleared.
* RolledBack: depends on the operation.
  - update: re-fetch everything from the remote side (intervening remote
    changes make inverting the local patch unsafe);
  - create: drop the optimistically added aggregate;
  - delete: reinstate the pre-delete snapshot at its old position.

No lock is taken. A second edit to the same aggregate before the first
resolves overwrites local state and issues a second write; the store keeps
whichever lands last.
"""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from ailment_tracker.data_sources.base_client import DataSourceError
from ailment_tracker.models.ailment import Ailment
from ailment_tracker.models.inputs import CreateAilmentInput, UpdateAilmentInput
from ailment_tracker.sync.state import AilmentCollection, PendingChanges
from ailment_tracker.sync.transport import AilmentApi

logger = logging.getLogger(__name__)

# notify(message, level) with level one of "success", "info", "error"
Notifier = Callable[[str, str], None]


def log_notifier(message: str, level: str) -> None:
    logger.log(logging.ERROR if level == "error" else logging.INFO, message)


class MutationCoordinator:
    def __init__(
        self,
        collection: AilmentCollection,
        api: AilmentApi,
        pending: PendingChanges | None = None,
        notify: Notifier | None = None,
    ):
        self.collection = collection
        self.api = api
        self.pending = pending or PendingChanges()
        self.notify = notify or log_notifier
        self._in_flight: set[asyncio.Task] = set()

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro)
        self._in_flight.add(task)
        task.add_done_callback(self._in_flight.discard)
        return task

    async def drain(self) -> None:
        """Wait for every in-flight write to resolve."""
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight))

    # -- Save (create or update) ----------------------------------------------

    def save(self, ailment: Ailment) -> asyncio.Task:
        """Apply ``ailment`` locally and start the matching remote write.

        Creates when the id is not held locally, updates otherwise. Returns
        the task resolving the write; callers need not await it.
        """
        exists = ailment.id in self.collection
        self.collection.upsert(ailment)
        self.pending.begin(ailment.id)
        if exists:
            return self._spawn(self._update(ailment))
        return self._spawn(self._create(ailment))

    async def _create(self, ailment: Ailment) -> None:
        try:
            await self.api.create_ailment(CreateAilmentInput.from_ailment(ailment))
        except DataSourceError as e:
            logger.warning("Create of %s failed, removing it locally: %s", ailment.id, e)
            self.collection.remove(ailment.id)
            self.notify(f"Error creating ailment: {e}", "error")
        else:
            logger.info("Created ailment %s", ailment.id)
            self.notify("Ailment created successfully", "success")
        finally:
            self.pending.end(ailment.id)

    async def _update(self, ailment: Ailment) -> None:
        try:
            result = await self.api.update_ailment(
                ailment.id, UpdateAilmentInput.from_ailment(ailment)
            )
        except DataSourceError as e:
            logger.warning("Update of %s failed, re-fetching: %s", ailment.id, e)
            self.notify(f"Error updating ailment: {e}", "error")
            await self.refetch()
        else:
            if result is None:
                # Deleted remotely while the edit was in flight
                logger.debug("Ailment %s no longer exists remotely", ailment.id)
                await self.refetch()
            else:
                logger.info("Updated ailment %s", ailment.id)
                self.notify("Ailment updated successfully", "success")
        finally:
            self.pending.end(ailment.id)

    # -- Delete ---------------------------------------------------------------

    def delete(self, ailment_id: str) -> asyncio.Task | None:
        """Remove an aggregate locally and start the remote delete.

        Returns None when the id is not held; there is nothing to delete.
        """
        position = self.collection.index(ailment_id)
        snapshot = self.collection.remove(ailment_id)
        if snapshot is None:
            logger.debug("Delete of unknown ailment %s ignored", ailment_id)
            return None
        self.pending.begin(ailment_id)
        return self._spawn(self._delete(snapshot, position or 0))

    async def _delete(self, snapshot: Ailment, position: int) -> None:
        try:
            await self.api.delete_ailment(snapshot.id)
        except DataSourceError as e:
            logger.warning("Delete of %s failed, reinstating: %s", snapshot.id, e)
            self.collection.insert(position, snapshot)
            self.notify(f"Error deleting ailment: {e}", "error")
        else:
            logger.info("Deleted ailment %s", snapshot.id)
            self.notify("Ailment deleted successfully", "success")
        finally:
            self.pending.end(snapshot.id)

    # -- Refetch --------------------------------------------------------------

    async def refetch(self) -> bool:
        """Replace local state with the remote list. Returns False on failure."""
        try:
            ailments = await self.api.list_ailments()
        except DataSourceError as e:
            logger.error("Re-fetch failed: %s", e)
            self.notify(f"Error loading data: {e}", "error")
            return False
        self.collection.replace_all(ailments)
        logger.debug("Loaded %d ailments", len(ailments))
        return True
