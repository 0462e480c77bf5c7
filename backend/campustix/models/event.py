"""
Published, bookable event with ticket inventory.

Key design decisions:
- `available_tickets` is the remaining capacity, denormalized so a purchase is
  a single conditional UPDATE instead of a SUM over tickets
- `total_tickets` never changes after creation
- CHECK constraints repeat the capacity invariant at the DB level
"""

from sqlalchemy import (
    Column, Integer, String, Date, Time, Numeric, ForeignKey, Index, CheckConstraint, select,
)
from sqlalchemy.orm import column_property

from campustix.db.base import Base, TimestampMixin
from campustix.models.user import User


class Event(Base, TimestampMixin):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    description = Column(String(2000), nullable=True)
    image_url = Column(String(500), nullable=True)
    date = Column(Date, nullable=False)
    time_start = Column(Time, nullable=False)
    time_end = Column(Time, nullable=False)
    location = Column(String(255), nullable=False)
    category = Column(String(100), nullable=True)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    total_tickets = Column(Integer, nullable=False)
    available_tickets = Column(Integer, nullable=False)
    created_by = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    # Read-only, loaded with the row like the other columns
    organizer_name = column_property(
        select(User.name).where(User.id == created_by).correlate_except(User).scalar_subquery()
    )

    __table_args__ = (
        CheckConstraint("total_tickets > 0", name="check_total_tickets_positive"),
        CheckConstraint("available_tickets >= 0", name="check_available_tickets_non_negative"),
        CheckConstraint("available_tickets <= total_tickets", name="check_available_lte_total"),
        CheckConstraint("price >= 0", name="check_event_price_non_negative"),
        Index("ix_events_date", "date", "time_start"),
        Index("ix_events_category_date", "category", "date"),
    )

    def __repr__(self) -> str:
        return f"<Event(id={self.id}, title={self.title}, available={self.available_tickets}/{self.total_tickets})>"
