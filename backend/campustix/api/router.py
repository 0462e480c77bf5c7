"""
Central API router that aggregates all route modules.
"""

from fastapi import APIRouter
from campustix.api.routes import auth, events, pending_events, tickets

api_router = APIRouter(prefix="/api/v1")
api_router.include_router(auth.router)
api_router.include_router(events.router)
api_router.include_router(pending_events.router)
api_router.include_router(tickets.router)
