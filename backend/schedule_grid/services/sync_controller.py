"""Owner of the canonical grid snapshot.

The controller is the only holder of the current :class:`GridSnapshot`.
Remote fetches replace it wholesale; the mutation engine changes it through
:meth:`GridController.apply`. Each fetch takes a request token before it
suspends, and a response is applied only if no newer fetch was started in
the meantime, so quick successive filter changes cannot resurrect an older
grid.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from schedule_grid.core.exceptions import RemoteOperationError
from schedule_grid.schemas.grid import GridFilters, GridSnapshot
from schedule_grid.services.cell_layout import CellLayout, ForceSplitTable, layout_for_slot
from schedule_grid.services.gateway import ScheduleGateway
from schedule_grid.services.grid_model import find_lessons
from schedule_grid.services.index_resolver import IdentityIndex

logger = logging.getLogger(__name__)

Subscriber = Callable[[GridSnapshot], None]
Mutation = Callable[[GridSnapshot], GridSnapshot]


class GridController:
    def __init__(
        self,
        gateway: ScheduleGateway,
        faculty_id: int,
        filters: GridFilters | None = None,
        snapshot: GridSnapshot | None = None,
    ) -> None:
        self._gateway = gateway
        self.faculty_id = faculty_id
        self._filters = filters or GridFilters()
        self._snapshot = snapshot or GridSnapshot.empty(faculty_id)
        self._identity_index = IdentityIndex.build(self._snapshot.faculty)
        self._force_split = ForceSplitTable()
        self._subscribers: list[Subscriber] = []
        self._version = 0
        self._latest_token = 0
        self._in_flight = 0
        self._mounted = False
        self._has_error = False

    @property
    def snapshot(self) -> GridSnapshot:
        return self._snapshot

    @property
    def filters(self) -> GridFilters:
        return self._filters

    @property
    def version(self) -> int:
        return self._version

    @property
    def loading(self) -> bool:
        return self._in_flight > 0

    @property
    def has_error(self) -> bool:
        return self._has_error

    @property
    def mounted(self) -> bool:
        return self._mounted

    @property
    def identity_index(self) -> IdentityIndex:
        return self._identity_index

    @property
    def force_split(self) -> ForceSplitTable:
        return self._force_split

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def load(self) -> bool:
        self._mounted = True
        return await self.refresh()

    async def set_filters(
        self, group_ids: Iterable[int] | None = None, hour_ids: Iterable[int] | None = None
    ) -> bool:
        """Store new filters and re-fetch when they changed after mount."""
        filters = GridFilters(group_ids=group_ids, hour_ids=hour_ids)
        if filters == self._filters:
            return False
        self._filters = filters
        if not self._mounted:
            return False
        return await self.refresh()

    async def refresh(self) -> bool:
        self._latest_token += 1
        token = self._latest_token
        filters = self._filters
        self._in_flight += 1
        try:
            snapshot = await self._gateway.fetch_grid(self.faculty_id, filters)
        except RemoteOperationError:
            if token != self._latest_token:
                logger.info("Ignoring failure of superseded grid fetch %d", token)
                return False
            self._has_error = True
            logger.warning("Grid fetch for faculty %s failed", self.faculty_id, exc_info=True)
            raise
        finally:
            self._in_flight -= 1

        if token != self._latest_token:
            logger.info("Discarding stale grid response %d (latest is %d)", token, self._latest_token)
            return False
        self._has_error = False
        self.replace(snapshot)
        return True

    def replace(self, snapshot: GridSnapshot) -> None:
        self._force_split.clear()
        self._commit(snapshot)

    def apply(self, mutation: Mutation) -> bool:
        updated = mutation(self._snapshot)
        if updated is self._snapshot:
            return False
        self._commit(updated)
        return True

    def cell_layout(self, group_id: int, day_id: int, hour_id: int) -> CellLayout:
        lessons = find_lessons(self._snapshot.faculty, group_id, day_id, hour_id)
        return layout_for_slot(self._force_split, (group_id, day_id, hour_id), lessons)

    def _commit(self, snapshot: GridSnapshot) -> None:
        self._snapshot = snapshot
        self._identity_index = IdentityIndex.build(snapshot.faculty)
        self._version += 1
        for callback in list(self._subscribers):
            callback(snapshot)
