from __future__ import annotations

from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from schedule_grid.db.base import Base

WEEK_TYPE_NAMES = {
    1: "Permanent",
    2: "Upper week",
    3: "Lower week",
}

LESSON_TYPE_NAMES = {
    1: "Lecture",
    2: "Seminar",
    3: "Laboratory",
}


class ScheduleGroup(Base):
    """A logical lesson. Deleting it removes every occurrence it owns."""

    __tablename__ = "schedule_groups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    faculty_id: Mapped[int] = mapped_column(ForeignKey("faculties.id", ondelete="CASCADE"), nullable=False, index=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    schedules: Mapped[list[Schedule]] = relationship(
        back_populates="schedule_group",
        cascade="all, delete-orphan",
    )


class Schedule(Base):
    __tablename__ = "schedules"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schedule_group_id: Mapped[int] = mapped_column(
        ForeignKey("schedule_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    day_id: Mapped[int] = mapped_column(Integer, nullable=False)
    hour_id: Mapped[int] = mapped_column(ForeignKey("hours.id"), nullable=False)
    week_type_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    subject_id: Mapped[int] = mapped_column(Integer, nullable=False)
    subject_name: Mapped[str] = mapped_column(String(200), nullable=False)
    lesson_type_id: Mapped[int] = mapped_column(Integer, nullable=False)
    teacher_code: Mapped[str | None] = mapped_column(String(50), nullable=True)
    teacher_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    teacher_surname: Mapped[str | None] = mapped_column(String(100), nullable=True)
    room_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    room_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    corp_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    blocked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    confirm_status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())

    schedule_group: Mapped[ScheduleGroup] = relationship(back_populates="schedules")
    members: Mapped[list[ScheduleMember]] = relationship(
        back_populates="schedule",
        order_by="ScheduleMember.id",
        cascade="all, delete-orphan",
    )


class ScheduleMember(Base):
    """One occurrence of a schedule under a student group."""

    __tablename__ = "schedule_members"
    __table_args__ = (UniqueConstraint("schedule_id", "group_id", name="uq_schedule_members_schedule_group"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schedule_id: Mapped[int] = mapped_column(ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id: Mapped[int] = mapped_column(
        ForeignKey("student_groups.id", ondelete="CASCADE"), nullable=False, index=True
    )
    # Set on occurrences created by cross-listing; points at the primary group.
    parent_group: Mapped[int | None] = mapped_column(Integer, nullable=True)

    schedule: Mapped[Schedule] = relationship(back_populates="members")
