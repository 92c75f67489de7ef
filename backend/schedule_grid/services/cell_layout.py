"""Per-slot presentation decision: one merged cell, a week split, or empty."""
from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from schedule_grid.core.exceptions import PolicyViolation
from schedule_grid.schemas.grid import LessonEntry, WeekType

SlotKey = tuple[int, int, int]


class CellMode(str, Enum):
    single = "single"
    split = "split"
    empty = "empty"


@dataclass(frozen=True)
class CellLayout:
    mode: CellMode
    permanent: tuple[LessonEntry, ...] = ()
    upper: tuple[LessonEntry, ...] = ()
    lower: tuple[LessonEntry, ...] = ()

    def bucket(self, week_type: WeekType) -> tuple[LessonEntry, ...]:
        if week_type == WeekType.permanent:
            return self.permanent
        if week_type == WeekType.upper:
            return self.upper
        return self.lower

    def sections(self) -> list[tuple[WeekType, tuple[LessonEntry, ...]]]:
        if self.mode == CellMode.single:
            return [(WeekType.permanent, self.permanent)]
        if self.mode == CellMode.split:
            return [(WeekType.upper, self.upper), (WeekType.lower, self.lower)]
        return []

    def add_targets(self) -> list[WeekType]:
        if self.mode == CellMode.split:
            return [week_type for week_type, bucket in self.sections() if not bucket]
        if self.mode == CellMode.empty:
            return [WeekType.permanent, WeekType.upper, WeekType.lower]
        return []


def decide_cell_layout(entries: list[LessonEntry] | None, force_split: bool = False) -> CellLayout:
    entries = entries or []
    permanent = tuple(entry for entry in entries if entry.week_type_id == WeekType.permanent)
    upper = tuple(entry for entry in entries if entry.week_type_id == WeekType.upper)
    lower = tuple(entry for entry in entries if entry.week_type_id == WeekType.lower)

    if permanent and not force_split:
        mode = CellMode.single
    elif upper or lower or force_split:
        mode = CellMode.split
    else:
        mode = CellMode.empty
    return CellLayout(mode=mode, permanent=permanent, upper=upper, lower=lower)


@dataclass
class ForceSplitTable:
    """Client-side force-split flags keyed by ``(group_id, day_id, hour_id)``.

    Nothing here is persisted; the owner clears it whenever the grid is
    replaced.
    """

    _flags: dict[SlotKey, bool] = field(default_factory=dict)

    def is_forced(self, slot: SlotKey) -> bool:
        return self._flags.get(slot, False)

    def mark(self, slot: SlotKey, week_type: WeekType) -> None:
        if week_type == WeekType.permanent:
            self._flags.pop(slot, None)
        else:
            self._flags[slot] = True

    def clear(self) -> None:
        self._flags.clear()

    def __len__(self) -> int:
        return len(self._flags)


def choose_empty_week_type(table: ForceSplitTable, slot: SlotKey, week_type: WeekType) -> WeekType:
    """Seed an empty cell from the three-way chooser."""
    table.mark(slot, week_type)
    return week_type


def add_beside(
    table: ForceSplitTable,
    slot: SlotKey,
    anchor: LessonEntry,
    week_type: WeekType | None = None,
) -> WeekType:
    if not anchor.blocked:
        raise PolicyViolation(
            "Lessons can only be added beside a locked lesson",
            details={"schedule_id": anchor.schedule_id},
        )
    chosen = anchor.week_type_id if week_type is None else week_type
    table.mark(slot, chosen)
    return chosen


def layout_for_slot(table: ForceSplitTable, slot: SlotKey, entries: list[LessonEntry] | None) -> CellLayout:
    return decide_cell_layout(entries, table.is_forced(slot))
