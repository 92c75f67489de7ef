from __future__ import annotations

from collections import defaultdict

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from schedule_grid.core.exceptions import AppError, ResourceNotFoundError
from schedule_grid.models.faculty import Faculty, StudentGroup
from schedule_grid.models.hour import Hour
from schedule_grid.models.schedule import (
    LESSON_TYPE_NAMES,
    WEEK_TYPE_NAMES,
    Schedule,
    ScheduleGroup,
    ScheduleMember,
)
from schedule_grid.schemas import grid as grid_schemas
from schedule_grid.schemas.schedule import ScheduleCreate, ScheduleUpdate


def list_hours(db: Session) -> list[Hour]:
    return list(db.execute(select(Hour).where(Hour.status == 1).order_by(Hour.id)).scalars())


def list_faculties(db: Session) -> list[Faculty]:
    return list(db.execute(select(Faculty).order_by(Faculty.id)).scalars())


def list_groups(db: Session, faculty_id: int | None = None) -> list[StudentGroup]:
    query = select(StudentGroup).order_by(StudentGroup.id)
    if faculty_id is not None:
        query = query.where(StudentGroup.faculty_id == faculty_id)
    return list(db.execute(query).scalars())


def to_lesson_entry(schedule: Schedule, member: ScheduleMember | None = None) -> grid_schemas.LessonEntry:
    teacher = None
    if schedule.teacher_code or schedule.teacher_name or schedule.teacher_surname:
        teacher = grid_schemas.Teacher(
            code=schedule.teacher_code or "",
            name=schedule.teacher_name or "",
            surname=schedule.teacher_surname or "",
        )
    room = None
    if schedule.room_id is not None or schedule.room_name:
        room = grid_schemas.Room(
            room_id=schedule.room_id,
            room_name=schedule.room_name or "",
            corp_name=schedule.corp_name or "",
        )
    return grid_schemas.LessonEntry(
        schedule_id=schedule.id,
        schedule_group_id=schedule.schedule_group_id,
        subject_id=schedule.subject_id,
        subject_name=schedule.subject_name,
        lesson_type_id=schedule.lesson_type_id,
        lesson_type_name=LESSON_TYPE_NAMES.get(schedule.lesson_type_id, ""),
        teacher=teacher,
        room=room,
        week_type_id=schedule.week_type_id,
        week_type_name=WEEK_TYPE_NAMES.get(schedule.week_type_id, ""),
        confirm_status=schedule.confirm_status,
        blocked=schedule.blocked,
        parent_group=member.parent_group if member is not None else None,
    )


def build_grid(
    db: Session,
    faculty_id: int,
    *,
    group_ids: list[int] | None = None,
    hour_ids: list[int] | None = None,
) -> grid_schemas.GridSnapshot:
    faculty = db.get(Faculty, faculty_id)
    if faculty is None:
        raise ResourceNotFoundError("Faculty", faculty_id)

    groups = [group for group in faculty.groups if not group_ids or group.id in group_ids]
    hours = [hour for hour in list_hours(db) if not hour_ids or hour.id in hour_ids]
    wanted_hours = {hour.id for hour in hours}

    query = (
        select(ScheduleMember)
        .join(Schedule, Schedule.id == ScheduleMember.schedule_id)
        .where(ScheduleMember.group_id.in_([group.id for group in groups]))
        .options(selectinload(ScheduleMember.schedule))
        .order_by(Schedule.day_id, Schedule.hour_id, ScheduleMember.id)
    )
    cells: dict[tuple[int, int, int], list[grid_schemas.LessonEntry]] = defaultdict(list)
    for member in db.execute(query).scalars():
        schedule = member.schedule
        if schedule.hour_id not in wanted_hours:
            continue
        cells[(member.group_id, schedule.day_id, schedule.hour_id)].append(to_lesson_entry(schedule, member))

    grid_groups: list[grid_schemas.Group] = []
    for group in groups:
        days: list[grid_schemas.Day] = []
        for day_id in grid_schemas.DAY_IDS:
            slots = [
                grid_schemas.HourSlot(hour_id=hour.id, lessons=cells[(group.id, day_id, hour.id)])
                for hour in hours
                if (group.id, day_id, hour.id) in cells
            ]
            if slots:
                days.append(grid_schemas.Day(day_id=day_id, hours=slots))
        grid_groups.append(grid_schemas.Group(group_id=group.id, group_name=group.name, days=days))

    return grid_schemas.GridSnapshot(
        faculty=grid_schemas.Faculty(faculty_id=faculty.id, faculty_name=faculty.name, groups=grid_groups),
        hours=[grid_schemas.Hour.model_validate(hour) for hour in hours],
    )


def create_schedule(db: Session, payload: ScheduleCreate) -> grid_schemas.LessonEntry:
    """Persist one lesson, shared with ``other_groups`` when given.

    Shared occurrences are marked with the primary group as their parent
    so member groups treat them as read-only.
    """
    if db.get(Faculty, payload.faculty_id) is None:
        raise ResourceNotFoundError("Faculty", payload.faculty_id)
    if db.get(Hour, payload.hour_id) is None:
        raise ResourceNotFoundError("Hour", payload.hour_id)

    group_ids = [payload.group_id, *payload.other_groups]
    found = {
        group.id
        for group in db.execute(select(StudentGroup).where(StudentGroup.id.in_(group_ids))).scalars()
    }
    missing = [group_id for group_id in group_ids if group_id not in found]
    if missing:
        raise AppError("Unknown group(s)", status_code=404, details={"group_ids": missing})

    schedule_group = ScheduleGroup(faculty_id=payload.faculty_id)
    schedule = Schedule()
    _assign_lesson_fields(schedule, payload)
    primary = ScheduleMember(group_id=payload.group_id)
    schedule.members.append(primary)
    for group_id in payload.other_groups:
        schedule.members.append(ScheduleMember(group_id=group_id, parent_group=payload.group_id))
    schedule_group.schedules.append(schedule)
    db.add(schedule_group)
    db.flush()
    return to_lesson_entry(schedule, primary)


def delete_schedule_group(db: Session, schedule_group_id: int) -> None:
    schedule_group = db.get(ScheduleGroup, schedule_group_id)
    if schedule_group is None:
        raise ResourceNotFoundError("Schedule group", schedule_group_id)
    db.delete(schedule_group)


def set_schedule_lock(db: Session, schedule_id: int, schedule_group_id: int | None, blocked: bool) -> Schedule:
    schedule = db.get(Schedule, schedule_id)
    if schedule is None or (schedule_group_id is not None and schedule.schedule_group_id != schedule_group_id):
        raise ResourceNotFoundError("Schedule", schedule_id)
    schedule.blocked = blocked
    return schedule


def update_schedule(db: Session, schedule_group_id: int, payload: ScheduleUpdate) -> grid_schemas.LessonEntry:
    """Rewrite every lesson of a schedule group; group memberships stay as they are."""
    schedule_group = db.get(ScheduleGroup, schedule_group_id)
    if schedule_group is None or not schedule_group.schedules:
        raise ResourceNotFoundError("Schedule group", schedule_group_id)
    if db.get(Hour, payload.hour_id) is None:
        raise ResourceNotFoundError("Hour", payload.hour_id)

    for schedule in schedule_group.schedules:
        _assign_lesson_fields(schedule, payload)
    db.flush()

    schedule = schedule_group.schedules[0]
    primary = next((member for member in schedule.members if member.parent_group is None), None)
    return to_lesson_entry(schedule, primary)


def _assign_lesson_fields(schedule: Schedule, payload: ScheduleCreate | ScheduleUpdate) -> None:
    teacher = payload.teacher
    room = payload.room
    schedule.day_id = payload.day_id
    schedule.hour_id = payload.hour_id
    schedule.week_type_id = int(payload.week_type_id)
    schedule.subject_id = payload.subject_id
    schedule.subject_name = payload.subject_name
    schedule.lesson_type_id = payload.lesson_type_id
    schedule.teacher_code = teacher.code if teacher else None
    schedule.teacher_name = teacher.name if teacher else None
    schedule.teacher_surname = teacher.surname if teacher else None
    schedule.room_id = room.room_id if room else None
    schedule.room_name = room.room_name if room else None
    schedule.corp_name = room.corp_name if room else None
