import anyio
import pytest
from anyio import wait_all_tasks_blocked

from schedule_grid.core.exceptions import RemoteOperationError
from schedule_grid.schemas.grid import GridFilters, WeekType
from schedule_grid.services.cell_layout import CellMode
from schedule_grid.services.grid_model import find_lessons
from schedule_grid.services.mutation_engine import apply_local_add
from schedule_grid.services.sync_controller import GridController


class ControlledGateway:
    """Fetches block until the test resolves them, in any order."""

    def __init__(self):
        self.pending: list[dict] = []

    async def fetch_grid(self, faculty_id, filters):
        call = {"faculty_id": faculty_id, "filters": filters, "event": anyio.Event(), "result": None}
        self.pending.append(call)
        await call["event"].wait()
        if isinstance(call["result"], Exception):
            raise call["result"]
        return call["result"]

    def resolve(self, index, result):
        self.pending[index]["result"] = result
        self.pending[index]["event"].set()


class ImmediateGateway:
    def __init__(self, snapshot):
        self.snapshot = snapshot
        self.calls: list[GridFilters] = []

    async def fetch_grid(self, faculty_id, filters):
        self.calls.append(filters)
        return self.snapshot


@pytest.mark.anyio
async def test_filter_change_before_mount_does_not_fetch(snapshot_factory):
    gateway = ImmediateGateway(snapshot_factory({}))
    controller = GridController(gateway, faculty_id=1)

    assert await controller.set_filters(group_ids=[2, 1]) is False
    assert gateway.calls == []
    assert controller.filters.group_ids == (1, 2)

    assert await controller.load() is True
    assert gateway.calls == [GridFilters(group_ids=[1, 2])]


@pytest.mark.anyio
async def test_filter_change_after_mount_refetches_only_on_change(snapshot_factory):
    gateway = ImmediateGateway(snapshot_factory({}))
    controller = GridController(gateway, faculty_id=1)
    await controller.load()

    assert await controller.set_filters(hour_ids=[3, 1, 3]) is True
    assert await controller.set_filters(hour_ids=[1, 3]) is False
    assert await controller.set_filters() is True
    assert gateway.calls == [GridFilters(), GridFilters(hour_ids=[1, 3]), GridFilters()]


@pytest.mark.anyio
async def test_stale_fetch_response_is_discarded(snapshot_factory, entry_factory):
    gateway = ControlledGateway()
    controller = GridController(gateway, faculty_id=1)
    older = snapshot_factory({(1, 1, 1): [entry_factory(1)]})
    newer = snapshot_factory({(1, 1, 1): [entry_factory(2)]})
    results = {}

    async def run(name):
        results[name] = await controller.refresh()

    async with anyio.create_task_group() as tg:
        tg.start_soon(run, "first")
        await wait_all_tasks_blocked()
        tg.start_soon(run, "second")
        await wait_all_tasks_blocked()
        assert controller.loading
        gateway.resolve(1, newer)
        await wait_all_tasks_blocked()
        gateway.resolve(0, older)

    assert results == {"first": False, "second": True}
    assert controller.snapshot is newer
    assert controller.version == 1
    assert not controller.loading


@pytest.mark.anyio
async def test_superseded_fetch_failure_is_ignored(snapshot_factory):
    gateway = ControlledGateway()
    controller = GridController(gateway, faculty_id=1)
    latest = snapshot_factory({})
    results = {}

    async def run(name):
        results[name] = await controller.refresh()

    async with anyio.create_task_group() as tg:
        tg.start_soon(run, "first")
        await wait_all_tasks_blocked()
        tg.start_soon(run, "second")
        await wait_all_tasks_blocked()
        gateway.resolve(0, RemoteOperationError("fetch_grid", "timeout"))
        await wait_all_tasks_blocked()
        gateway.resolve(1, latest)

    assert results == {"first": False, "second": True}
    assert not controller.has_error


@pytest.mark.anyio
async def test_fetch_error_keeps_previous_snapshot(snapshot_factory):
    gateway = ControlledGateway()
    initial = snapshot_factory({})
    controller = GridController(gateway, faculty_id=1, snapshot=initial)

    async def run():
        with pytest.raises(RemoteOperationError):
            await controller.refresh()

    async with anyio.create_task_group() as tg:
        tg.start_soon(run)
        await wait_all_tasks_blocked()
        gateway.resolve(0, RemoteOperationError("fetch_grid", "Grid unavailable"))

    assert controller.has_error
    assert controller.snapshot is initial
    assert controller.version == 0


def test_replace_clears_force_split_and_notifies(snapshot_factory, entry_factory):
    controller = GridController(ImmediateGateway(None), faculty_id=1)
    seen = []
    unsubscribe = controller.subscribe(seen.append)
    controller.force_split.mark((1, 1, 1), WeekType.upper)
    replacement = snapshot_factory({(1, 1, 1): [entry_factory(1, schedule_group_id=3)]})

    controller.replace(replacement)

    assert not controller.force_split.is_forced((1, 1, 1))
    assert seen == [replacement]
    assert (1, 3) in controller.identity_index
    assert controller.cell_layout(1, 1, 1).mode == CellMode.single

    unsubscribe()
    controller.replace(snapshot_factory({}))
    assert len(seen) == 1


def test_apply_rebuilds_index_and_skips_noops(snapshot_factory, entry_factory):
    controller = GridController(ImmediateGateway(None), faculty_id=1, snapshot=snapshot_factory({}))

    assert controller.apply(lambda snapshot: apply_local_add(snapshot, 9, 1, 1, entry_factory(1))) is False
    assert controller.version == 0

    assert controller.apply(lambda snapshot: apply_local_add(snapshot, 1, 1, 1, entry_factory(1, WeekType.upper))) is True
    assert controller.version == 1
    assert (1, None) in controller.identity_index
    assert [entry.schedule_id for entry in find_lessons(controller.snapshot.faculty, 1, 1, 1)] == [1]
    assert controller.cell_layout(1, 1, 1).mode == CellMode.split
    assert controller.cell_layout(1, 1, 2).mode == CellMode.empty
