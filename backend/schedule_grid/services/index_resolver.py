"""Mapping between week-type views of a slot and absolute positions."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass

from schedule_grid.core.exceptions import DuplicateIdentityError
from schedule_grid.schemas.grid import Faculty, LessonEntry, WeekType
from schedule_grid.services.grid_model import iter_entries

LockKey = tuple[int, int | None]


def filter_by_week_type(lessons: list[LessonEntry], week_type: WeekType) -> list[LessonEntry]:
    return [lesson for lesson in lessons if lesson.week_type_id == week_type]


def assert_unique_identities(lessons: list[LessonEntry]) -> None:
    seen: set[tuple[str, int]] = set()
    for lesson in lessons:
        if lesson.identity in seen:
            raise DuplicateIdentityError(lesson.identity)
        seen.add(lesson.identity)


def resolve_absolute_index(lessons: list[LessonEntry], week_type: WeekType, filtered_index: int) -> int | None:
    """Return the position in ``lessons`` of the ``filtered_index``-th entry of ``week_type``.

    The match is made by identity rather than by counting, so the result
    stays correct for callers that captured the filtered view earlier.
    Raises :class:`DuplicateIdentityError` when the slot holds two entries
    with the same identity, since the answer would be ambiguous.
    """
    filtered = filter_by_week_type(lessons, week_type)
    if filtered_index < 0 or filtered_index >= len(filtered):
        return None
    assert_unique_identities(lessons)
    target = filtered[filtered_index].identity
    for position, lesson in enumerate(lessons):
        if lesson.identity == target:
            return position
    return None


@dataclass(frozen=True)
class EntryLocation:
    group_id: int
    day_id: int
    hour_id: int
    position: int


class IdentityIndex:
    """Secondary index from ``(schedule_id, schedule_group_id)`` to every occurrence."""

    def __init__(self) -> None:
        self._locations: dict[LockKey, list[EntryLocation]] = {}

    @classmethod
    def build(cls, faculty: Faculty) -> "IdentityIndex":
        index = cls()
        locations: dict[LockKey, list[EntryLocation]] = defaultdict(list)
        for group_id, day_id, hour_id, position, entry in iter_entries(faculty):
            locations[entry.lock_key].append(EntryLocation(group_id, day_id, hour_id, position))
        index._locations = dict(locations)
        return index

    def locations(self, key: LockKey) -> list[EntryLocation]:
        return list(self._locations.get(key, ()))

    def keys(self) -> list[LockKey]:
        return list(self._locations)

    def __contains__(self, key: object) -> bool:
        return key in self._locations

    def __len__(self) -> int:
        return len(self._locations)
