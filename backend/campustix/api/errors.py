"""
Maps core errors onto HTTP responses.
"""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from campustix.core.exceptions import TicketingError
from campustix.core.logging import get_logger

logger = get_logger(__name__)


async def ticketing_error_handler(request: Request, exc: TicketingError) -> JSONResponse:
    log = logger.error if exc.retryable else logger.info
    log("request_rejected", code=exc.code, status_code=exc.status_code, detail=exc.message)

    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict(), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TicketingError, ticketing_error_handler)
