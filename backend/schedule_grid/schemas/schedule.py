from pydantic import BaseModel, Field, field_validator, model_validator

from schedule_grid.schemas.grid import Room, Teacher, WeekType


class ScheduleCreate(BaseModel):
    faculty_id: int
    group_id: int
    day_id: int = Field(ge=1, le=5)
    hour_id: int
    week_type_id: WeekType = WeekType.permanent
    subject_id: int
    subject_name: str = Field(min_length=1, max_length=200)
    lesson_type_id: int
    teacher: Teacher | None = None
    room: Room | None = None
    other_groups: list[int] = Field(default_factory=list, max_length=50)

    @field_validator("other_groups")
    @classmethod
    def dedupe_other_groups(cls, value: list[int]) -> list[int]:
        seen: list[int] = []
        for group_id in value:
            if group_id not in seen:
                seen.append(group_id)
        return seen

    @model_validator(mode="after")
    def validate_primary_not_shared(self) -> "ScheduleCreate":
        self.other_groups = [group_id for group_id in self.other_groups if group_id != self.group_id]
        return self


class ScheduleUpdate(BaseModel):
    day_id: int = Field(ge=1, le=5)
    hour_id: int
    week_type_id: WeekType = WeekType.permanent
    subject_id: int
    subject_name: str = Field(min_length=1, max_length=200)
    lesson_type_id: int
    teacher: Teacher | None = None
    room: Room | None = None


class LockRequest(BaseModel):
    schedule_id: int
    schedule_group_id: int | None = None
    blocked: bool


class FacultyOut(BaseModel):
    id: int
    name: str
    faculty_code: str

    model_config = {"from_attributes": True}


class GroupOut(BaseModel):
    id: int
    name: str
    faculty_id: int

    model_config = {"from_attributes": True}


class CatalogItem(BaseModel):
    id: int
    name: str


class Ack(BaseModel):
    success: bool = True
