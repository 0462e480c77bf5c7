from campustix.models.user import User
from campustix.models.event import Event
from campustix.models.pending_event import PendingEvent
from campustix.models.ticket import Ticket

__all__ = ["User", "Event", "PendingEvent", "Ticket"]
