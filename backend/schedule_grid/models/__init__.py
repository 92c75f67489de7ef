from schedule_grid.models.faculty import Faculty, StudentGroup  # noqa: F401
from schedule_grid.models.hour import Hour  # noqa: F401
from schedule_grid.models.schedule import (  # noqa: F401
    LESSON_TYPE_NAMES,
    WEEK_TYPE_NAMES,
    Schedule,
    ScheduleGroup,
    ScheduleMember,
)
