"""
Event proposal from a non-admin, waiting for moderation.

status moves pending -> approved or pending -> rejected exactly once. The
unique `event_id` ties an approved request to the single event it produced.
"""

from sqlalchemy import (
    Column, Integer, String, Date, Time, Numeric, DateTime, ForeignKey, Index, CheckConstraint,
)

from campustix.db.base import Base, TimestampMixin

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"
DECISIONS = (STATUS_APPROVED, STATUS_REJECTED)


class PendingEvent(Base, TimestampMixin):
    __tablename__ = "pending_events"

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
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String(20), nullable=False, default=STATUS_PENDING)
    admin_notes = Column(String(1000), nullable=True)
    decided_by = Column(Integer, ForeignKey("users.id"), nullable=True)
    decided_at = Column(DateTime(timezone=True), nullable=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=True, unique=True)

    __table_args__ = (
        CheckConstraint("total_tickets > 0", name="check_pending_total_tickets_positive"),
        CheckConstraint("price >= 0", name="check_pending_price_non_negative"),
        CheckConstraint(
            "status IN ('pending', 'approved', 'rejected')", name="check_pending_event_status"
        ),
        Index("ix_pending_events_status_created", "status", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<PendingEvent(id={self.id}, title={self.title}, status={self.status})>"
