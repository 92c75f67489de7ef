"""create schedule tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "faculties",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("faculty_code", sa.String(length=50), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_faculties_faculty_code", "faculties", ["faculty_code"], unique=True)

    op.create_table(
        "student_groups",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("faculty_id", sa.Integer(), sa.ForeignKey("faculties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
    )
    op.create_index("ix_student_groups_faculty_id", "student_groups", ["faculty_id"])

    op.create_table(
        "hours",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("name", sa.String(length=50), nullable=False),
        sa.Column("time", sa.String(length=20), nullable=False, server_default=""),
        sa.Column("status", sa.Integer(), nullable=False, server_default="1"),
    )

    op.create_table(
        "schedule_groups",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("faculty_id", sa.Integer(), sa.ForeignKey("faculties.id", ondelete="CASCADE"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index("ix_schedule_groups_faculty_id", "schedule_groups", ["faculty_id"])

    op.create_table(
        "schedules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "schedule_group_id",
            sa.Integer(),
            sa.ForeignKey("schedule_groups.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("day_id", sa.Integer(), nullable=False),
        sa.Column("hour_id", sa.Integer(), sa.ForeignKey("hours.id"), nullable=False),
        sa.Column("week_type_id", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("subject_id", sa.Integer(), nullable=False),
        sa.Column("subject_name", sa.String(length=200), nullable=False),
        sa.Column("lesson_type_id", sa.Integer(), nullable=False),
        sa.Column("teacher_code", sa.String(length=50), nullable=True),
        sa.Column("teacher_name", sa.String(length=100), nullable=True),
        sa.Column("teacher_surname", sa.String(length=100), nullable=True),
        sa.Column("room_id", sa.Integer(), nullable=True),
        sa.Column("room_name", sa.String(length=100), nullable=True),
        sa.Column("corp_name", sa.String(length=100), nullable=True),
        sa.Column("blocked", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("confirm_status", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_schedules_schedule_group_id", "schedules", ["schedule_group_id"])

    op.create_table(
        "schedule_members",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("schedule_id", sa.Integer(), sa.ForeignKey("schedules.id", ondelete="CASCADE"), nullable=False),
        sa.Column("group_id", sa.Integer(), sa.ForeignKey("student_groups.id", ondelete="CASCADE"), nullable=False),
        sa.Column("parent_group", sa.Integer(), nullable=True),
        sa.UniqueConstraint("schedule_id", "group_id", name="uq_schedule_members_schedule_group"),
    )
    op.create_index("ix_schedule_members_schedule_id", "schedule_members", ["schedule_id"])
    op.create_index("ix_schedule_members_group_id", "schedule_members", ["group_id"])


def downgrade() -> None:
    op.drop_table("schedule_members")
    op.drop_table("schedules")
    op.drop_table("schedule_groups")
    op.drop_table("hours")
    op.drop_table("student_groups")
    op.drop_table("faculties")
