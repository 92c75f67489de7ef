import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from schedule_grid.api.deps import get_db
from schedule_grid.core.exceptions import AppError
from schedule_grid.models.schedule import LESSON_TYPE_NAMES, WEEK_TYPE_NAMES
from schedule_grid.schemas.grid import GridSnapshot, Hour, LessonEntry
from schedule_grid.schemas.schedule import Ack, CatalogItem, FacultyOut, GroupOut, LockRequest, ScheduleCreate, ScheduleUpdate
from schedule_grid.services import schedule_service

router = APIRouter()
logger = logging.getLogger(__name__)


def parse_id_list(raw: str | None, field: str) -> list[int] | None:
    if raw is None or not raw.strip():
        return None
    try:
        return [int(item) for item in raw.split(",") if item.strip()]
    except ValueError as exc:
        raise AppError(f"{field} must be a comma separated list of integers", status_code=422) from exc


@router.get("/hours", response_model=list[Hour])
def list_hours(db: Session = Depends(get_db)) -> list[Hour]:
    return schedule_service.list_hours(db)


@router.get("/week-types", response_model=list[CatalogItem])
def list_week_types() -> list[CatalogItem]:
    return [CatalogItem(id=key, name=value) for key, value in WEEK_TYPE_NAMES.items()]


@router.get("/lesson-types", response_model=list[CatalogItem])
def list_lesson_types() -> list[CatalogItem]:
    return [CatalogItem(id=key, name=value) for key, value in LESSON_TYPE_NAMES.items()]


@router.get("/faculties", response_model=list[FacultyOut])
def list_faculties(db: Session = Depends(get_db)) -> list[FacultyOut]:
    return schedule_service.list_faculties(db)


@router.get("/groups", response_model=list[GroupOut])
def list_groups(faculty_id: int | None = Query(default=None), db: Session = Depends(get_db)) -> list[GroupOut]:
    return schedule_service.list_groups(db, faculty_id)


@router.get("/schedule/faculty/{faculty_id}", response_model=GridSnapshot)
def get_faculty_grid(
    faculty_id: int,
    group_ids: str | None = Query(default=None),
    hour_ids: str | None = Query(default=None),
    db: Session = Depends(get_db),
) -> GridSnapshot:
    return schedule_service.build_grid(
        db,
        faculty_id,
        group_ids=parse_id_list(group_ids, "group_ids"),
        hour_ids=parse_id_list(hour_ids, "hour_ids"),
    )


@router.post("/schedules", response_model=LessonEntry, status_code=status.HTTP_201_CREATED)
def create_schedule(payload: ScheduleCreate, db: Session = Depends(get_db)) -> LessonEntry:
    entry = schedule_service.create_schedule(db, payload)
    db.commit()
    logger.info(
        "Created schedule %s (group %s) for groups %s",
        entry.schedule_id,
        entry.schedule_group_id,
        [payload.group_id, *payload.other_groups],
    )
    return entry


@router.put("/schedules/{schedule_group_id}", response_model=LessonEntry)
def update_schedule(schedule_group_id: int, payload: ScheduleUpdate, db: Session = Depends(get_db)) -> LessonEntry:
    entry = schedule_service.update_schedule(db, schedule_group_id, payload)
    db.commit()
    logger.info("Updated schedule group %s", schedule_group_id)
    return entry


@router.post("/schedules/lock", response_model=Ack)
def lock_schedule(payload: LockRequest, db: Session = Depends(get_db)) -> Ack:
    schedule_service.set_schedule_lock(db, payload.schedule_id, payload.schedule_group_id, payload.blocked)
    db.commit()
    return Ack()


@router.delete("/schedules/{schedule_group_id}", response_model=Ack)
def delete_schedule(schedule_group_id: int, db: Session = Depends(get_db)) -> Ack:
    schedule_service.delete_schedule_group(db, schedule_group_id)
    db.commit()
    logger.info("Deleted schedule group %s", schedule_group_id)
    return Ack()
