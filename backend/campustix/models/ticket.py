"""
Confirmed ticket purchase. Created in the same transaction as the capacity
decrement and never modified afterwards.
"""

from datetime import datetime, timezone

from sqlalchemy import (
    Column, Integer, String, DateTime, ForeignKey, Index, CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship

from campustix.db.base import Base, TimestampMixin

TICKET_CONFIRMED = "confirmed"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ticket(Base, TimestampMixin):
    __tablename__ = "tickets"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    ticket_code = Column(String(64), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    status = Column(String(20), nullable=False, default=TICKET_CONFIRMED)
    # Set client-side: server CURRENT_TIMESTAMP is second-resolution on SQLite
    purchase_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)

    event = relationship("Event", lazy="joined")

    __table_args__ = (
        UniqueConstraint("ticket_code", name="uq_tickets_ticket_code"),
        CheckConstraint("quantity > 0", name="check_ticket_quantity_positive"),
        CheckConstraint("status IN ('confirmed')", name="check_ticket_status"),
        Index("ix_tickets_user_purchase", "user_id", "purchase_date"),
    )

    def __repr__(self) -> str:
        return f"<Ticket(id={self.id}, code={self.ticket_code}, event={self.event_id}, qty={self.quantity})>"
