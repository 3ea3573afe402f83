"""A view session over the ailment collection.

The view owns the collection, the expansion set and the pending-changes
counter, and passes them explicitly to the coordinator, the reconciler and
``flatten``. It holds the three push subscriptions (created, updated,
deleted) for its lifetime and drops them together on close.

All handlers run on the event loop thread; remote writes resolve as later,
independent turns of the loop.
"""

import asyncio
import logging
from collections.abc import Iterable

from ailment_tracker.constants import CHANNELS
from ailment_tracker.helpers.ailment_helpers import new_ailment
from ailment_tracker.models.ailment import Ailment
from ailment_tracker.models.display_row import DisplayRow, RowType
from ailment_tracker.sync.coordinator import MutationCoordinator, Notifier
from ailment_tracker.sync.flattening import (
    StaleRowError,
    add_child,
    apply_field_edit,
    flatten,
    locate,
    remove_entity,
    toggle_expanded,
)
from ailment_tracker.sync.reconciler import RemoteChangeReconciler
from ailment_tracker.sync.state import AilmentCollection, PendingChanges
from ailment_tracker.sync.transport import AilmentApi, PushChannel, Subscription

logger = logging.getLogger(__name__)


class AilmentView:
    def __init__(
        self,
        api: AilmentApi,
        push: PushChannel | None = None,
        *,
        notify: Notifier | None = None,
        version_check: bool = True,
    ):
        self.api = api
        self.push = push
        self.collection = AilmentCollection()
        self.pending = PendingChanges()
        self.expanded: frozenset[str] = frozenset()
        self.coordinator = MutationCoordinator(
            self.collection, api, self.pending, notify
        )
        self.reconciler = RemoteChangeReconciler(
            self.collection, version_check, notify
        )
        self._subscriptions: list[Subscription] = []

    @property
    def ailments(self) -> tuple[Ailment, ...]:
        return self.collection.ailments

    @property
    def is_active(self) -> bool:
        return bool(self._subscriptions)

    def rows(self) -> list[DisplayRow]:
        return flatten(self.collection.ailments, self.expanded)

    # -- Lifecycle ------------------------------------------------------------

    async def load(self) -> bool:
        """Initial (or manual) full load from the remote side."""
        return await self.coordinator.refetch()

    def activate(self) -> None:
        """Subscribe to all three change streams, or to none of them."""
        if self.push is None or self._subscriptions:
            return
        subscriptions: list[Subscription] = []
        try:
            for channel in CHANNELS:
                subscriptions.append(
                    self.push.subscribe(
                        channel, self.reconciler.callback(channel), self._on_push_error
                    )
                )
        except Exception:
            for subscription in subscriptions:
                subscription.unsubscribe()
            raise
        self._subscriptions = subscriptions
        logger.info("Real-time subscriptions active")

    def close(self) -> None:
        """Tear down every subscription held by this view."""
        subscriptions, self._subscriptions = self._subscriptions, []
        for subscription in subscriptions:
            subscription.unsubscribe()
        if subscriptions:
            logger.info("Real-time subscriptions disconnected")

    async def __aenter__(self) -> "AilmentView":
        await self.load()
        self.activate()
        return self

    async def __aexit__(self, *exc) -> None:
        self.close()

    def _on_push_error(self, error: Exception) -> None:
        logger.warning("Subscription error: %s", error)

    # -- Expansion ------------------------------------------------------------

    def toggle(self, entity_id: str) -> None:
        self.expanded = toggle_expanded(self.expanded, entity_id)

    def expand(self, entity_ids: Iterable[str]) -> None:
        self.expanded = self.expanded | frozenset(entity_ids)

    # -- User actions ---------------------------------------------------------

    def add_ailment(self, ailment: Ailment | None = None) -> asyncio.Task:
        """Create an aggregate (a blank one by default)."""
        return self.coordinator.save(ailment or new_ailment())

    def edit(self, row: DisplayRow, field: str, value: object) -> asyncio.Task | None:
        """Commit one cell edit and save the whole aggregate.

        Returns None when the row is stale or the edit changed nothing.
        """
        try:
            ailment, _ = locate(row, self.collection.ailments)
        except StaleRowError as e:
            logger.debug("Edit skipped: %s", e)
            return None
        edited = apply_field_edit(
            ailment, row.row_type, row.id, field, value, row.parent_id, row.parent_type
        )
        if edited == ailment:
            return None
        return self.coordinator.save(edited)

    def add_child(self, row: DisplayRow, child_type: RowType) -> asyncio.Task | None:
        """Append a default child under ``row`` and expand the row."""
        try:
            ailment, _ = locate(row, self.collection.ailments)
        except StaleRowError as e:
            logger.debug("Add skipped: %s", e)
            return None
        updated, child_id = add_child(ailment, row.row_type, row.id, child_type)
        if child_id is None:
            return None
        self.expand([row.id])
        return self.coordinator.save(updated)

    def delete_row(self, row: DisplayRow) -> asyncio.Task | None:
        """Delete the aggregate for ailment rows, else remove one nested entity."""
        if row.row_type is RowType.AILMENT:
            return self.coordinator.delete(row.id)
        try:
            ailment, _ = locate(row, self.collection.ailments)
        except StaleRowError as e:
            logger.debug("Delete skipped: %s", e)
            return None
        updated = remove_entity(
            ailment, row.row_type, row.id, row.parent_id, row.parent_type
        )
        if updated is ailment:
            return None
        return self.coordinator.save(updated)
