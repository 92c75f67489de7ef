from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from schedule_grid.core.exceptions import MergedLessonEditError, RemoteOperationError
from schedule_grid.schemas.grid import DAY_IDS, Day, GridSnapshot, Group, HourSlot, LessonEntry, WeekType
from schedule_grid.schemas.schedule import ScheduleCreate, ScheduleUpdate
from schedule_grid.services.gateway import ConfirmDestructive, LoggingNotifier, NotificationKind, Notifier, ScheduleGateway
from schedule_grid.services.grid_model import find_slot
from schedule_grid.services.index_resolver import IdentityIndex, resolve_absolute_index

if TYPE_CHECKING:
    from schedule_grid.services.sync_controller import GridController

logger = logging.getLogger(__name__)

DELETE_PROMPT = "Delete this lesson? This cannot be undone."
MERGED_EDIT_WARNING = "This lesson belongs to a merged group and must be edited from its parent group"


@dataclass(frozen=True)
class LocalDeleteResult:
    snapshot: GridSnapshot
    removed: LessonEntry | None = None


class DeleteOutcome(str, Enum):
    deleted = "deleted"
    noop = "noop"
    cancelled = "cancelled"
    failed = "failed"


def _position(items: list, attr: str, value: int) -> int | None:
    for position, item in enumerate(items):
        if getattr(item, attr) == value:
            return position
    return None


def _with_group(snapshot: GridSnapshot, group_pos: int, group: Group) -> GridSnapshot:
    groups = list(snapshot.faculty.groups)
    groups[group_pos] = group
    faculty = snapshot.faculty.model_copy(update={"groups": groups})
    return snapshot.model_copy(update={"faculty": faculty})


def _update_slot(
    snapshot: GridSnapshot,
    group_id: int,
    day_id: int,
    hour_id: int,
    transform: Callable[[list[LessonEntry]], list[LessonEntry] | None],
) -> GridSnapshot | None:
    """Copy the path to one slot and replace its lessons.

    Returns ``None`` when the path does not exist or ``transform`` refuses
    the change. Empty slots are pruned, then empty days.
    """
    group_pos = _position(snapshot.faculty.groups, "group_id", group_id)
    if group_pos is None:
        return None
    group = snapshot.faculty.groups[group_pos]
    day_pos = _position(group.days, "day_id", day_id)
    if day_pos is None:
        return None
    day = group.days[day_pos]
    hour_pos = _position(day.hours, "hour_id", hour_id)
    if hour_pos is None:
        return None
    slot = day.hours[hour_pos]

    lessons = transform(list(slot.lessons))
    if lessons is None:
        return None

    hours = list(day.hours)
    if lessons:
        hours[hour_pos] = slot.model_copy(update={"lessons": lessons})
    else:
        del hours[hour_pos]
    days = list(group.days)
    if hours:
        days[day_pos] = day.model_copy(update={"hours": hours})
    else:
        del days[day_pos]
    return _with_group(snapshot, group_pos, group.model_copy(update={"days": days}))


def apply_local_add(
    snapshot: GridSnapshot, group_id: int, day_id: int, hour_id: int, entry: LessonEntry
) -> GridSnapshot:
    group_pos = _position(snapshot.faculty.groups, "group_id", group_id)
    if group_pos is None or day_id not in DAY_IDS:
        logger.debug("Ignoring add for missing path group=%s day=%s hour=%s", group_id, day_id, hour_id)
        return snapshot
    group = snapshot.faculty.groups[group_pos]

    days = list(group.days)
    day_pos = _position(days, "day_id", day_id)
    if day_pos is None:
        days.append(Day(day_id=day_id, hours=[HourSlot(hour_id=hour_id, lessons=[entry])]))
        days.sort(key=lambda item: item.day_id)
    else:
        day = days[day_pos]
        hours = list(day.hours)
        hour_pos = _position(hours, "hour_id", hour_id)
        if hour_pos is None:
            hours.append(HourSlot(hour_id=hour_id, lessons=[entry]))
            hours.sort(key=lambda item: item.hour_id)
        else:
            slot = hours[hour_pos]
            hours[hour_pos] = slot.model_copy(update={"lessons": [*slot.lessons, entry]})
        days[day_pos] = day.model_copy(update={"hours": hours})

    return _with_group(snapshot, group_pos, group.model_copy(update={"days": days}))


def apply_local_edit(
    snapshot: GridSnapshot, group_id: int, day_id: int, hour_id: int, index: int, entry: LessonEntry
) -> GridSnapshot:
    """Replace the lesson at absolute ``index``.

    Raises :class:`MergedLessonEditError` if the current lesson came from a
    merge; nothing is changed in that case.
    """
    slot = find_slot(snapshot.faculty, group_id, day_id, hour_id)
    if slot is None or index < 0 or index >= len(slot.lessons):
        logger.debug("Ignoring edit for missing path group=%s day=%s hour=%s index=%s", group_id, day_id, hour_id, index)
        return snapshot
    current = slot.lessons[index]
    if current.is_merged:
        raise MergedLessonEditError(current.schedule_id, current.parent_group)

    def replace(lessons: list[LessonEntry]) -> list[LessonEntry]:
        lessons[index] = entry
        return lessons

    return _update_slot(snapshot, group_id, day_id, hour_id, replace) or snapshot


def apply_local_delete(
    snapshot: GridSnapshot, group_id: int, day_id: int, hour_id: int, index: int
) -> LocalDeleteResult:
    removed: list[LessonEntry] = []

    def remove(lessons: list[LessonEntry]) -> list[LessonEntry] | None:
        if index < 0 or index >= len(lessons):
            return None
        removed.append(lessons.pop(index))
        return lessons

    updated = _update_slot(snapshot, group_id, day_id, hour_id, remove)
    if updated is None:
        logger.debug("Ignoring delete for missing path group=%s day=%s hour=%s index=%s", group_id, day_id, hour_id, index)
        return LocalDeleteResult(snapshot=snapshot)
    return LocalDeleteResult(snapshot=updated, removed=removed[0])


def apply_lock_confirmed(
    snapshot: GridSnapshot,
    schedule_id: int,
    schedule_group_id: int | None,
    blocked: bool,
    index: IdentityIndex | None = None,
) -> GridSnapshot:
    """Set ``blocked`` on every occurrence of the lesson across the faculty."""
    key = (schedule_id, schedule_group_id)
    if index is None:
        index = IdentityIndex.build(snapshot.faculty)
    slots = {(loc.group_id, loc.day_id, loc.hour_id) for loc in index.locations(key)}

    def relock(lessons: list[LessonEntry]) -> list[LessonEntry]:
        return [
            lesson.model_copy(update={"blocked": blocked}) if lesson.lock_key == key else lesson
            for lesson in lessons
        ]

    for group_id, day_id, hour_id in sorted(slots):
        snapshot = _update_slot(snapshot, group_id, day_id, hour_id, relock) or snapshot
    return snapshot


def apply_local_remove_group(
    snapshot: GridSnapshot, schedule_group_id: int, index: IdentityIndex | None = None
) -> GridSnapshot:
    """Drop every remaining occurrence of a deleted schedule group."""
    if index is None:
        index = IdentityIndex.build(snapshot.faculty)
    slots = {
        (loc.group_id, loc.day_id, loc.hour_id)
        for key in index.keys()
        if key[1] == schedule_group_id
        for loc in index.locations(key)
    }

    def prune(lessons: list[LessonEntry]) -> list[LessonEntry] | None:
        kept = [lesson for lesson in lessons if lesson.schedule_group_id != schedule_group_id]
        return kept if len(kept) != len(lessons) else None

    for group_id, day_id, hour_id in sorted(slots):
        snapshot = _update_slot(snapshot, group_id, day_id, hour_id, prune) or snapshot
    return snapshot


def apply_local_replace(
    snapshot: GridSnapshot, group_id: int, day_id: int, hour_id: int, current: LessonEntry, updated: LessonEntry
) -> GridSnapshot:
    """Swap `current` for `updated` by identity, wherever it sits in the slot now."""

    def replace(lessons: list[LessonEntry]) -> list[LessonEntry] | None:
        for position, lesson in enumerate(lessons):
            if lesson.identity == current.identity:
                lessons[position] = updated
                return lessons
        return None

    return _update_slot(snapshot, group_id, day_id, hour_id, replace) or snapshot


class MutationEngine:
    """Runs grid mutations against the controller's snapshot and the remote service."""

    def __init__(
        self,
        controller: GridController,
        gateway: ScheduleGateway,
        notifier: Notifier | None = None,
        confirm: ConfirmDestructive | None = None,
    ) -> None:
        self._controller = controller
        self._gateway = gateway
        self._notifier = notifier or LoggingNotifier()
        self._confirm = confirm

    def add_lesson(self, group_id: int, day_id: int, hour_id: int, entry: LessonEntry) -> bool:
        return self._controller.apply(lambda snapshot: apply_local_add(snapshot, group_id, day_id, hour_id, entry))

    async def create_lesson(self, payload: ScheduleCreate) -> LessonEntry:
        try:
            created = await self._gateway.create_lesson(payload)
        except RemoteOperationError as exc:
            logger.warning("Lesson create failed: %s", exc.message)
            self._notifier.notify(NotificationKind.error, exc.message)
            raise

        self.add_lesson(payload.group_id, payload.day_id, payload.hour_id, created)
        if payload.other_groups:
            shared = created.model_copy(update={"parent_group": payload.group_id})
            for group_id in payload.other_groups:
                self.add_lesson(group_id, payload.day_id, payload.hour_id, shared)
        self._notifier.notify(NotificationKind.success, "Lesson added")
        return created

    def edit_lesson(self, group_id: int, day_id: int, hour_id: int, index: int, entry: LessonEntry) -> bool:
        try:
            return self._controller.apply(
                lambda snapshot: apply_local_edit(snapshot, group_id, day_id, hour_id, index, entry)
            )
        except MergedLessonEditError as exc:
            logger.info("Blocked edit of merged lesson %s", exc.details.get("schedule_id"))
            self._notifier.notify(NotificationKind.warning, MERGED_EDIT_WARNING)
            return False

    def edit_lesson_in_view(
        self,
        group_id: int,
        day_id: int,
        hour_id: int,
        week_type: WeekType,
        filtered_index: int,
        entry: LessonEntry,
    ) -> bool:
        index = self._resolve(group_id, day_id, hour_id, week_type, filtered_index)
        if index is None:
            return False
        return self.edit_lesson(group_id, day_id, hour_id, index, entry)

    async def update_lesson(
        self, group_id: int, day_id: int, hour_id: int, index: int, payload: ScheduleUpdate
    ) -> LessonEntry | None:
        """Persist an edit, then re-read the grid.

        Merged lessons are refused with a warning before anything is sent.
        When the lesson stays in its slot the local copy is replaced right
        away so the grid does not wait on the refresh.
        """
        slot = find_slot(self._controller.snapshot.faculty, group_id, day_id, hour_id)
        if slot is None or index < 0 or index >= len(slot.lessons):
            return None
        current = slot.lessons[index]
        if current.is_merged:
            logger.info("Blocked update of merged lesson %s", current.schedule_id)
            self._notifier.notify(NotificationKind.warning, MERGED_EDIT_WARNING)
            return None

        remote_key = current.schedule_group_id if current.schedule_group_id is not None else current.schedule_id
        try:
            updated = await self._gateway.update_lesson(remote_key, payload)
        except RemoteOperationError as exc:
            logger.warning("Update of schedule group %s failed: %s", remote_key, exc.message)
            self._notifier.notify(NotificationKind.error, exc.message)
            raise

        if (payload.day_id, payload.hour_id) == (day_id, hour_id):
            self._controller.apply(
                lambda snapshot: apply_local_replace(snapshot, group_id, day_id, hour_id, current, updated)
            )
        self._notifier.notify(NotificationKind.success, "Lesson updated")
        await self._resync()
        return updated

    async def update_lesson_in_view(
        self,
        group_id: int,
        day_id: int,
        hour_id: int,
        week_type: WeekType,
        filtered_index: int,
        payload: ScheduleUpdate,
    ) -> LessonEntry | None:
        index = self._resolve(group_id, day_id, hour_id, week_type, filtered_index)
        if index is None:
            return None
        return await self.update_lesson(group_id, day_id, hour_id, index, payload)

    async def delete_lesson(self, group_id: int, day_id: int, hour_id: int, index: int) -> DeleteOutcome:
        slot = find_slot(self._controller.snapshot.faculty, group_id, day_id, hour_id)
        if slot is None or index < 0 or index >= len(slot.lessons):
            return DeleteOutcome.noop
        if self._confirm is not None and not self._confirm(DELETE_PROMPT):
            return DeleteOutcome.cancelled

        removed: list[LessonEntry] = []

        def mutation(snapshot: GridSnapshot) -> GridSnapshot:
            result = apply_local_delete(snapshot, group_id, day_id, hour_id, index)
            if result.removed is not None:
                removed.append(result.removed)
            return result.snapshot

        self._controller.apply(mutation)
        if not removed:
            return DeleteOutcome.noop

        entry = removed[0]
        remote_key = entry.schedule_group_id if entry.schedule_group_id is not None else entry.schedule_id
        try:
            await self._gateway.delete_lesson(remote_key)
        except RemoteOperationError as exc:
            logger.warning("Remote delete of schedule group %s failed, resyncing grid", remote_key, exc_info=True)
            self._notifier.notify(NotificationKind.error, exc.message)
            await self._resync()
            return DeleteOutcome.failed

        if entry.schedule_group_id is not None:
            self._controller.apply(
                lambda snapshot: apply_local_remove_group(
                    snapshot, entry.schedule_group_id, self._controller.identity_index
                )
            )
        self._notifier.notify(NotificationKind.success, "Lesson deleted")
        return DeleteOutcome.deleted

    async def delete_lesson_in_view(
        self, group_id: int, day_id: int, hour_id: int, week_type: WeekType, filtered_index: int
    ) -> DeleteOutcome:
        index = self._resolve(group_id, day_id, hour_id, week_type, filtered_index)
        if index is None:
            return DeleteOutcome.noop
        return await self.delete_lesson(group_id, day_id, hour_id, index)

    async def toggle_lock(self, schedule_id: int, schedule_group_id: int | None, blocked: bool) -> bool:
        try:
            await self._gateway.set_lock(schedule_id, schedule_group_id, blocked)
        except RemoteOperationError as exc:
            logger.warning("Lock toggle for schedule %s failed: %s", schedule_id, exc.message)
            self._notifier.notify(NotificationKind.error, exc.message)
            return False

        # Re-read the index after the await; the grid may have been replaced meanwhile.
        self._controller.apply(
            lambda snapshot: apply_lock_confirmed(
                snapshot, schedule_id, schedule_group_id, blocked, self._controller.identity_index
            )
        )
        self._notifier.notify(NotificationKind.success, "Lesson locked" if blocked else "Lesson unlocked")
        return True

    async def toggle_lock_at(self, group_id: int, day_id: int, hour_id: int, index: int) -> bool:
        slot = find_slot(self._controller.snapshot.faculty, group_id, day_id, hour_id)
        if slot is None or index < 0 or index >= len(slot.lessons):
            return False
        entry = slot.lessons[index]
        return await self.toggle_lock(entry.schedule_id, entry.schedule_group_id, not entry.blocked)

    async def toggle_lock_in_view(
        self, group_id: int, day_id: int, hour_id: int, week_type: WeekType, filtered_index: int
    ) -> bool:
        index = self._resolve(group_id, day_id, hour_id, week_type, filtered_index)
        if index is None:
            return False
        return await self.toggle_lock_at(group_id, day_id, hour_id, index)

    def _resolve(
        self, group_id: int, day_id: int, hour_id: int, week_type: WeekType, filtered_index: int
    ) -> int | None:
        slot = find_slot(self._controller.snapshot.faculty, group_id, day_id, hour_id)
        if slot is None:
            return None
        return resolve_absolute_index(slot.lessons, week_type, filtered_index)

    async def _resync(self) -> None:
        try:
            await self._controller.refresh()
        except RemoteOperationError:
            logger.warning("Grid resync failed", exc_info=True)
