from schedule_grid.schemas.grid import Group, Hour, WeekType
from schedule_grid.services.grid_model import (
    active_groups,
    find_day,
    find_entry,
    find_group,
    find_hour_slot,
    find_lessons,
    iter_entries,
    split_shifts,
)


def test_lookups_fail_softly(snapshot_factory, entry_factory):
    snapshot = snapshot_factory({(1, 1, 1): [entry_factory(1)]})
    faculty = snapshot.faculty

    assert find_group(faculty, 99) is None
    assert find_day(find_group(faculty, 1), 3) is None
    assert find_hour_slot(find_day(find_group(faculty, 1), 1), 5) is None
    assert find_day(None, 1) is None
    assert find_hour_slot(None, 1) is None
    assert find_entry(None, 0) is None
    assert find_lessons(faculty, 2, 1, 1) == []
    assert find_lessons(None, 1, 1, 1) == []


def test_find_entry_uses_week_type_view(snapshot_factory, entry_factory):
    lessons = [
        entry_factory(1, WeekType.upper),
        entry_factory(2, WeekType.lower),
        entry_factory(3, WeekType.upper),
    ]
    snapshot = snapshot_factory({(1, 2, 3): lessons})
    slot = find_hour_slot(find_day(find_group(snapshot.faculty, 1), 2), 3)

    assert find_entry(slot, 1, WeekType.upper).schedule_id == 3
    assert find_entry(slot, 0, WeekType.lower).schedule_id == 2
    assert find_entry(slot, 1, WeekType.lower) is None
    assert find_entry(slot, 2).schedule_id == 3
    assert find_entry(slot, -1) is None


def test_iter_entries_walks_every_occurrence(snapshot_factory, entry_factory):
    snapshot = snapshot_factory(
        {
            (1, 1, 1): [entry_factory(1), entry_factory(2, WeekType.upper)],
            (2, 4, 2): [entry_factory(3)],
        }
    )
    rows = [(group_id, day_id, hour_id, position, entry.schedule_id) for group_id, day_id, hour_id, position, entry in iter_entries(snapshot.faculty)]
    assert rows == [(1, 1, 1, 0, 1), (1, 1, 1, 1, 2), (2, 4, 2, 0, 3)]


def test_active_groups_only_lists_groups_with_lessons_in_shift(snapshot_factory, entry_factory):
    snapshot = snapshot_factory({(1, 1, 1): [entry_factory(1)], (2, 3, 5): [entry_factory(2)]}, group_ids=(1, 2, 3))

    assert [group.group_id for group in active_groups(snapshot.faculty, [1, 2, 3])] == [1]
    assert [group.group_id for group in active_groups(snapshot.faculty, [4, 5, 6])] == [2]


def test_group_days_accept_mapping_keyed_by_day():
    group = Group.model_validate(
        {
            "group_id": 7,
            "group_name": "A",
            "days": {"3": {"hours": [{"hour_id": 1, "lessons": []}]}, "1": {"hours": []}},
        }
    )
    assert [day.day_id for day in group.days] == [1, 3]


def test_split_shifts():
    hours = [Hour(id=index, name=str(index)) for index in range(1, 8)]
    morning, afternoon = split_shifts(hours)
    assert [hour.id for hour in morning] == [1, 2, 3]
    assert [hour.id for hour in afternoon] == [4, 5, 6]
