"""Structural lookups over a grid snapshot.

Every lookup fails softly: a missing group, day, hour or index yields
``None`` (or an empty list) so callers racing a snapshot replacement
degrade to a no-op instead of crashing.
"""
from __future__ import annotations

from collections.abc import Iterable, Iterator

from schedule_grid.schemas.grid import (
    DAY_IDS,
    Day,
    Faculty,
    Group,
    Hour,
    HourSlot,
    LessonEntry,
    WeekType,
)

MORNING_SHIFT_SIZE = 3
AFTERNOON_SHIFT_SIZE = 3


def find_group(faculty: Faculty | None, group_id: int) -> Group | None:
    if faculty is None:
        return None
    for group in faculty.groups:
        if group.group_id == group_id:
            return group
    return None


def find_day(group: Group | None, day_id: int) -> Day | None:
    if group is None:
        return None
    for day in group.days:
        if day.day_id == day_id:
            return day
    return None


def find_hour_slot(day: Day | None, hour_id: int) -> HourSlot | None:
    if day is None:
        return None
    for slot in day.hours:
        if slot.hour_id == hour_id:
            return slot
    return None


def find_entry(slot: HourSlot | None, filtered_index: int, week_type: WeekType | None = None) -> LessonEntry | None:
    if slot is None:
        return None
    lessons = slot.lessons
    if week_type is not None:
        lessons = [lesson for lesson in lessons if lesson.week_type_id == week_type]
    if filtered_index < 0 or filtered_index >= len(lessons):
        return None
    return lessons[filtered_index]


def find_slot(faculty: Faculty | None, group_id: int, day_id: int, hour_id: int) -> HourSlot | None:
    return find_hour_slot(find_day(find_group(faculty, group_id), day_id), hour_id)


def find_lessons(faculty: Faculty | None, group_id: int, day_id: int, hour_id: int) -> list[LessonEntry]:
    slot = find_slot(faculty, group_id, day_id, hour_id)
    return list(slot.lessons) if slot is not None else []


def iter_entries(faculty: Faculty) -> Iterator[tuple[int, int, int, int, LessonEntry]]:
    for group in faculty.groups:
        for day in group.days:
            for slot in day.hours:
                for position, entry in enumerate(slot.lessons):
                    yield group.group_id, day.day_id, slot.hour_id, position, entry


def active_groups(faculty: Faculty, hour_ids: Iterable[int]) -> list[Group]:
    """Groups with at least one lesson in the given hours on a working day."""
    wanted = set(hour_ids)
    result: list[Group] = []
    for group in faculty.groups:
        if any(
            slot.lessons
            for day in group.days
            if day.day_id in DAY_IDS
            for slot in day.hours
            if slot.hour_id in wanted
        ):
            result.append(group)
    return result


def split_shifts(hours: list[Hour]) -> tuple[list[Hour], list[Hour]]:
    morning = hours[:MORNING_SHIFT_SIZE]
    afternoon = hours[MORNING_SHIFT_SIZE : MORNING_SHIFT_SIZE + AFTERNOON_SHIFT_SIZE]
    return morning, afternoon
