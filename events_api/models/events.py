import datetime as dt

from sqlalchemy import CheckConstraint, DateTime, Index, Integer, String, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from events_api.database.db import Base

MAX_CAPACITY = 1000


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        CheckConstraint(f"capacity > 0 AND capacity <= {MAX_CAPACITY}", name="ck_events_capacity_range"),
        Index("ix_events_datetime_location", "datetime", "location"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    # stored in UTC
    datetime: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    location: Mapped[str] = mapped_column(String(200), nullable=False)
    capacity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[dt.datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    registrations: Mapped[list["Registration"]] = relationship(
        back_populates="event", cascade="all, delete-orphan"
    )
