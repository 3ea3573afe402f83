"""View-owned local state.

The ailment collection is the only shared mutable resource of a view. It is
never mutated in place: every transition swaps in a new tuple, so a reader
always sees a complete snapshot.
"""

import logging
from collections import Counter
from collections.abc import Callable, Iterable

from ailment_tracker.models.ailment import Ailment

logger = logging.getLogger(__name__)

Listener = Callable[[tuple[Ailment, ...]], None]


class AilmentCollection:
    """Ordered, id-unique snapshot of the ailments a view holds."""

    def __init__(self, ailments: Iterable[Ailment] = ()):
        self._ailments: tuple[Ailment, ...] = tuple(ailments)
        self._listeners: list[Listener] = []

    @property
    def ailments(self) -> tuple[Ailment, ...]:
        return self._ailments

    def __len__(self) -> int:
        return len(self._ailments)

    def __contains__(self, ailment_id: object) -> bool:
        return any(a.id == ailment_id for a in self._ailments)

    def get(self, ailment_id: str) -> Ailment | None:
        return next((a for a in self._ailments if a.id == ailment_id), None)

    def index(self, ailment_id: str) -> int | None:
        return next(
            (i for i, a in enumerate(self._ailments) if a.id == ailment_id), None
        )

    def on_change(self, listener: Listener) -> Callable[[], None]:
        """Register a listener called with each new snapshot; returns a remover."""
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    # -- Transitions ----------------------------------------------------------

    def _swap(self, ailments: tuple[Ailment, ...]) -> None:
        self._ailments = ailments
        for listener in list(self._listeners):
            listener(ailments)

    def replace_all(self, ailments: Iterable[Ailment]) -> None:
        self._swap(tuple(ailments))

    def upsert(self, ailment: Ailment) -> None:
        """Replace the ailment with the same id, or append it."""
        if ailment.id in self:
            self._swap(
                tuple(ailment if a.id == ailment.id else a for a in self._ailments)
            )
        else:
            self._swap(self._ailments + (ailment,))

    def insert(self, position: int, ailment: Ailment) -> None:
        """Insert an ailment that is not already held; no-op if it is."""
        if ailment.id in self:
            return
        position = max(0, min(position, len(self._ailments)))
        self._swap(self._ailments[:position] + (ailment,) + self._ailments[position:])

    def remove(self, ailment_id: str) -> Ailment | None:
        """Drop an ailment by id and return it; absence is not an error."""
        removed = self.get(ailment_id)
        if removed is not None:
            self._swap(tuple(a for a in self._ailments if a.id != ailment_id))
        return removed


class PendingChanges:
    """Advisory count of in-flight writes per aggregate id, for UI feedback only."""

    def __init__(self) -> None:
        self._counts: Counter[str] = Counter()

    def begin(self, ailment_id: str) -> None:
        self._counts[ailment_id] += 1

    def end(self, ailment_id: str) -> None:
        self._counts[ailment_id] -= 1
        if self._counts[ailment_id] <= 0:
            del self._counts[ailment_id]

    def __contains__(self, ailment_id: object) -> bool:
        return ailment_id in self._counts

    def __len__(self) -> int:
        return len(self._counts)

    @property
    def ids(self) -> frozenset[str]:
        return frozenset(self._counts)
