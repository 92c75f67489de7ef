from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from schedule_grid.db.base import Base


class Hour(Base):
    __tablename__ = "hours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    time: Mapped[str] = mapped_column(String(20), nullable=False, default="")
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
