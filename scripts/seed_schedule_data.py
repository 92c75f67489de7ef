"""Seed a demo faculty timetable for the schedule service.

Run:
  PYTHONPATH=backend python scripts/seed_schedule_data.py
"""

from __future__ import annotations

import os

from sqlalchemy import func, select

from schedule_grid.db.bootstrap import ensure_schema
from schedule_grid.db.session import SessionLocal
from schedule_grid.models.faculty import Faculty, StudentGroup
from schedule_grid.models.hour import Hour
from schedule_grid.models.schedule import ScheduleMember
from schedule_grid.schemas.grid import Room, Teacher, WeekType
from schedule_grid.schemas.schedule import ScheduleCreate
from schedule_grid.services.schedule_service import create_schedule, set_schedule_lock

FACULTY_CODE = os.getenv("SEED_FACULTY_CODE", "ITT").strip() or "ITT"
FACULTY_NAME = "Information Technologies"
GROUP_NAMES = ["688a3", "688a4", "688b1", "688b2"]
HOUR_TIMES = ["09:00", "10:35", "12:10", "13:45", "15:20", "16:55"]

LESSONS = [
    # (group index, day, hour, week type, subject, lesson type, teacher, room, shared with)
    (0, 1, 1, WeekType.permanent, "Databases", 1, ("T-01", "Aigerim", "Bekova"), "305", [1]),
    (0, 1, 2, WeekType.upper, "Computer Networks", 2, ("T-02", "Daniyar", "Sadykov"), "214", []),
    (0, 1, 2, WeekType.lower, "Operating Systems", 3, ("T-03", "Madina", "Omarova"), "Lab 2", []),
    (1, 2, 4, WeekType.permanent, "Discrete Mathematics", 1, ("T-04", "Serik", "Nurlanov"), "101", [2, 3]),
    (2, 3, 3, WeekType.lower, "Web Development", 3, ("T-05", "Aliya", "Zhaksylykova"), "Lab 1", []),
]


def get_or_create_faculty(session) -> Faculty:
    faculty = session.execute(select(Faculty).where(Faculty.faculty_code == FACULTY_CODE)).scalar_one_or_none()
    if faculty is None:
        faculty = Faculty(name=FACULTY_NAME, faculty_code=FACULTY_CODE)
        session.add(faculty)
    existing = {group.name for group in faculty.groups}
    for name in GROUP_NAMES:
        if name not in existing:
            faculty.groups.append(StudentGroup(name=name))
    session.flush()
    return faculty


def ensure_hours(session) -> None:
    for hour_id, time in enumerate(HOUR_TIMES, start=1):
        if session.get(Hour, hour_id) is None:
            session.add(Hour(id=hour_id, name=str(hour_id), time=time))
    session.flush()


def seed_lessons(session, faculty: Faculty) -> int:
    group_ids = [group.id for group in faculty.groups]
    already = session.execute(
        select(func.count(ScheduleMember.id)).where(ScheduleMember.group_id.in_(group_ids))
    ).scalar_one()
    if already:
        return 0

    created = 0
    for group_pos, day_id, hour_id, week_type, subject, lesson_type, teacher, room, shared in LESSONS:
        code, name, surname = teacher
        entry = create_schedule(
            session,
            ScheduleCreate(
                faculty_id=faculty.id,
                group_id=group_ids[group_pos],
                day_id=day_id,
                hour_id=hour_id,
                week_type_id=week_type,
                subject_id=100 + created,
                subject_name=subject,
                lesson_type_id=lesson_type,
                teacher=Teacher(code=code, name=name, surname=surname),
                room=Room(room_name=room, corp_name="Main"),
                other_groups=[group_ids[pos] for pos in shared],
            ),
        )
        created += 1
        if subject == "Discrete Mathematics":
            set_schedule_lock(session, entry.schedule_id, entry.schedule_group_id, True)
    return created


def main() -> None:
    ensure_schema()
    with SessionLocal() as session:
        ensure_hours(session)
        faculty = get_or_create_faculty(session)
        created = seed_lessons(session, faculty)
        session.commit()
        faculty_id = faculty.id
        group_count = len(faculty.groups)

    print("Schedule data seeded successfully.")
    print("")
    print(f"Faculty: {FACULTY_NAME} ({FACULTY_CODE}), id {faculty_id}")
    print(f"Student groups: {group_count}")
    print(f"Hour periods: {len(HOUR_TIMES)}")
    print(f"Lessons created: {created}")
    print("")
    print(f"Grid: GET /api/schedule/faculty/{faculty_id}")


if __name__ == "__main__":
    main()
