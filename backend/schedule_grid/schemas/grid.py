from __future__ import annotations

from enum import IntEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

DAY_IDS = (1, 2, 3, 4, 5)


class WeekType(IntEnum):
    permanent = 1
    upper = 2
    lower = 3


class Teacher(BaseModel):
    code: str = ""
    name: str = ""
    surname: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.name} {self.surname}".strip()


class Room(BaseModel):
    room_id: int | None = None
    room_name: str = ""
    corp_name: str = ""


class LessonEntry(BaseModel):
    # Entries can be shared between snapshots, so they are never edited in place.
    model_config = ConfigDict(frozen=True)

    schedule_id: int
    schedule_group_id: int | None = None
    subject_id: int | None = None
    subject_name: str = ""
    lesson_type_id: int | None = None
    lesson_type_name: str = ""
    teacher: Teacher | None = None
    room: Room | None = None
    week_type_id: WeekType = WeekType.permanent
    week_type_name: str = ""
    confirm_status: int = 1
    blocked: bool = False
    parent_group: int | None = None

    @property
    def identity(self) -> tuple[str, int]:
        if self.schedule_group_id is not None:
            return ("group", self.schedule_group_id)
        return ("schedule", self.schedule_id)

    @property
    def lock_key(self) -> tuple[int, int | None]:
        return (self.schedule_id, self.schedule_group_id)

    @property
    def is_merged(self) -> bool:
        return self.parent_group is not None


class HourSlot(BaseModel):
    hour_id: int
    lessons: list[LessonEntry] = Field(default_factory=list)


class Day(BaseModel):
    day_id: int = Field(ge=1, le=5)
    hours: list[HourSlot] = Field(default_factory=list)


class Group(BaseModel):
    group_id: int
    group_name: str = ""
    days: list[Day] = Field(default_factory=list)

    @field_validator("days", mode="before")
    @classmethod
    def normalize_days(cls, value):
        # The schedule service may key days by id instead of listing them.
        if isinstance(value, dict):
            days = []
            for key, item in value.items():
                if isinstance(item, dict):
                    item = {"day_id": int(key), **item}
                days.append(item)
            return sorted(days, key=lambda item: item["day_id"] if isinstance(item, dict) else item.day_id)
        return value


class Faculty(BaseModel):
    faculty_id: int
    faculty_name: str = ""
    groups: list[Group] = Field(default_factory=list)


class Hour(BaseModel):
    id: int
    name: str = ""
    time: str = ""

    model_config = {"from_attributes": True}


class GridSnapshot(BaseModel):
    faculty: Faculty
    hours: list[Hour] = Field(default_factory=list)

    @classmethod
    def empty(cls, faculty_id: int = 0) -> "GridSnapshot":
        return cls(faculty=Faculty(faculty_id=faculty_id))


class GridFilters(BaseModel):
    model_config = ConfigDict(frozen=True)

    group_ids: tuple[int, ...] | None = None
    hour_ids: tuple[int, ...] | None = None

    @field_validator("group_ids", "hour_ids", mode="before")
    @classmethod
    def normalize_ids(cls, value):
        if value is None:
            return None
        cleaned = tuple(sorted({int(item) for item in value}))
        return cleaned or None

    def as_query(self) -> dict[str, str]:
        params: dict[str, str] = {}
        if self.group_ids:
            params["group_ids"] = ",".join(str(item) for item in self.group_ids)
        if self.hour_ids:
            params["hour_ids"] = ",".join(str(item) for item in self.hour_ids)
        return params
