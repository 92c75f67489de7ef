import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import schedule_grid.models  # noqa: F401
from schedule_grid.api.deps import get_db
from schedule_grid.db.base import Base
from schedule_grid.main import app
from schedule_grid.models import Faculty, Hour, StudentGroup
from schedule_grid.schemas.grid import Day, Faculty as GridFaculty, GridSnapshot, Group, HourSlot, LessonEntry, WeekType


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestingSessionLocal
    app.dependency_overrides.clear()
    engine.dispose()


@pytest.fixture()
def seeded(session_factory):
    """One faculty with groups 1 and 2 and six hour periods."""
    db = session_factory()
    faculty = Faculty(id=1, name="Information Technologies", faculty_code="ITT")
    faculty.groups.append(StudentGroup(id=1, name="688a3"))
    faculty.groups.append(StudentGroup(id=2, name="688a4"))
    db.add(faculty)
    db.add(Faculty(id=2, name="Mechanical Engineering", faculty_code="MEC"))
    for hour_id, time in enumerate(["09:00", "10:35", "12:10", "13:45", "15:20", "16:55"], start=1):
        db.add(Hour(id=hour_id, name=f"{hour_id}", time=time))
    db.commit()
    db.close()
    return session_factory


@pytest.fixture()
def client(seeded):
    with TestClient(app) as test_client:
        yield test_client


def make_entry(schedule_id, week_type=WeekType.permanent, schedule_group_id=None, **extra) -> LessonEntry:
    return LessonEntry(
        schedule_id=schedule_id,
        schedule_group_id=schedule_group_id,
        subject_name=extra.pop("subject_name", f"Subject {schedule_id}"),
        week_type_id=week_type,
        **extra,
    )


def make_snapshot(cells: dict[tuple[int, int, int], list[LessonEntry]], group_ids=(1, 2)) -> GridSnapshot:
    """Build a snapshot from ``{(group_id, day_id, hour_id): [entries]}``."""
    groups = []
    for group_id in group_ids:
        days = []
        for day_id in sorted({day for (gid, day, _) in cells if gid == group_id}):
            hours = [
                HourSlot(hour_id=hour_id, lessons=list(cells[(group_id, day_id, hour_id)]))
                for hour_id in sorted(hour for (gid, day, hour) in cells if gid == group_id and day == day_id)
            ]
            days.append(Day(day_id=day_id, hours=hours))
        groups.append(Group(group_id=group_id, group_name=f"G{group_id}", days=days))
    return GridSnapshot(faculty=GridFaculty(faculty_id=1, faculty_name="ITT", groups=groups))


@pytest.fixture
def entry_factory():
    return make_entry


@pytest.fixture
def snapshot_factory():
    return make_snapshot
