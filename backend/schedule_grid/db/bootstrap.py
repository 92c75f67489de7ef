from __future__ import annotations

import logging

from sqlalchemy import inspect

import schedule_grid.models  # noqa: F401
from schedule_grid.db.base import Base
from schedule_grid.db.session import engine

logger = logging.getLogger(__name__)


def ensure_schema() -> None:
    """Create any missing tables; migrations remain the source of truth for changes."""
    with engine.begin() as connection:
        existing = set(inspect(connection).get_table_names())
        missing = [table.name for table in Base.metadata.sorted_tables if table.name not in existing]
        if not missing:
            return
        logger.info("Creating missing tables: %s", ", ".join(missing))
        Base.metadata.create_all(bind=connection)
