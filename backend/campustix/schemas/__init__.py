from campustix.schemas.user import UserCreate, UserResponse, UserLogin, Token, RegistrationResponse
from campustix.schemas.event import (
    EventCreate, EventUpdate, EventResponse, EventListResponse, SubmissionResponse,
)
from campustix.schemas.pending_event import PendingEventResponse, DecisionRequest, DecisionResponse
from campustix.schemas.ticket import TicketPurchase, TicketResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "Token", "RegistrationResponse",
    "EventCreate", "EventUpdate", "EventResponse", "EventListResponse", "SubmissionResponse",
    "PendingEventResponse", "DecisionRequest", "DecisionResponse",
    "TicketPurchase", "TicketResponse",
]
