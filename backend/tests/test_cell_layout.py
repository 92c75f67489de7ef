import pytest

from schedule_grid.core.exceptions import PolicyViolation
from schedule_grid.schemas.grid import WeekType
from schedule_grid.services.cell_layout import (
    CellMode,
    ForceSplitTable,
    add_beside,
    choose_empty_week_type,
    decide_cell_layout,
    layout_for_slot,
)


@pytest.mark.parametrize(
    ("week_types", "force_split", "expected"),
    [
        ([WeekType.permanent], False, CellMode.single),
        ([WeekType.permanent], True, CellMode.split),
        ([WeekType.upper], False, CellMode.split),
        ([WeekType.lower], False, CellMode.split),
        ([WeekType.permanent, WeekType.upper], False, CellMode.single),
        ([], False, CellMode.empty),
        ([], True, CellMode.split),
    ],
)
def test_mode_table(entry_factory, week_types, force_split, expected):
    entries = [entry_factory(index + 1, week_type) for index, week_type in enumerate(week_types)]
    assert decide_cell_layout(entries, force_split).mode == expected


def test_single_mode_hides_week_entries(entry_factory):
    entries = [entry_factory(1), entry_factory(2, WeekType.upper), entry_factory(3)]
    layout = decide_cell_layout(entries)

    assert [entry.schedule_id for entry in layout.permanent] == [1, 3]
    assert [entry.schedule_id for entry in layout.upper] == [2]
    assert [(week_type, len(bucket)) for week_type, bucket in layout.sections()] == [(WeekType.permanent, 2)]
    assert layout.add_targets() == []


def test_forced_split_ignores_permanent_bucket(entry_factory):
    layout = decide_cell_layout([entry_factory(1)], force_split=True)

    assert layout.sections() == [(WeekType.upper, ()), (WeekType.lower, ())]
    assert layout.add_targets() == [WeekType.upper, WeekType.lower]


def test_split_offers_add_only_on_empty_section(entry_factory):
    layout = decide_cell_layout([entry_factory(1, WeekType.lower)])
    assert layout.add_targets() == [WeekType.upper]
    assert layout.bucket(WeekType.lower)[0].schedule_id == 1


def test_empty_offers_three_way_chooser():
    layout = decide_cell_layout(None)
    assert layout.mode == CellMode.empty
    assert layout.sections() == []
    assert layout.add_targets() == [WeekType.permanent, WeekType.upper, WeekType.lower]


def test_add_beside_locked_lesson_forces_split(entry_factory):
    table = ForceSplitTable()
    slot = (1, 2, 3)
    locked = entry_factory(1, blocked=True)

    assert add_beside(table, slot, locked, WeekType.upper) == WeekType.upper
    assert table.is_forced(slot)
    assert layout_for_slot(table, slot, [locked]).mode == CellMode.split
    assert not table.is_forced((1, 2, 4))


def test_add_beside_permanent_keeps_single_cell(entry_factory):
    table = ForceSplitTable()
    slot = (1, 2, 3)
    locked = entry_factory(1, blocked=True)
    add_beside(table, slot, locked, WeekType.upper)

    assert add_beside(table, slot, locked) == WeekType.permanent
    assert not table.is_forced(slot)
    assert layout_for_slot(table, slot, [locked]).mode == CellMode.single


def test_add_beside_requires_locked_anchor(entry_factory):
    table = ForceSplitTable()
    with pytest.raises(PolicyViolation):
        add_beside(table, (1, 1, 1), entry_factory(1), WeekType.lower)
    assert len(table) == 0


def test_empty_chooser_marks_force_split():
    table = ForceSplitTable()
    choose_empty_week_type(table, (1, 1, 1), WeekType.lower)
    choose_empty_week_type(table, (1, 1, 2), WeekType.permanent)

    assert table.is_forced((1, 1, 1))
    assert not table.is_forced((1, 1, 2))

    table.clear()
    assert not table.is_forced((1, 1, 1))
