"""Message send and retrieval routes."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from pairchat.db.dependencies import get_db
from pairchat.schemas.common import ErrorResponse, ListErrorResponse
from pairchat.schemas.message import ListMessagesResponse, SendMessageResponse
from pairchat.services.exchange import clamp_list_limit, list_recent_messages, send_message
from pairchat.services.messages import ErrorKind, MessageValidationError, StorageUnavailable

logger = logging.getLogger(__name__)

STORAGE_UNAVAILABLE_DETAIL = "Database connection failed. Please try again later."

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.MISSING_FIELD: 400,
    ErrorKind.INVALID_TYPE: 400,
    ErrorKind.EMPTY_FIELD: 400,
    ErrorKind.CONTENT_TOO_LONG: 400,
    ErrorKind.STORAGE_UNAVAILABLE: 503,
    ErrorKind.UNEXPECTED: 500,
}

router = APIRouter(prefix="/api")


def _error(kind: ErrorKind, error: str, *, with_messages: bool = False) -> JSONResponse:
    envelope = ListErrorResponse(error=error) if with_messages else ErrorResponse(error=error)
    return JSONResponse(status_code=STATUS_BY_KIND[kind], content=envelope.model_dump())


@router.post(
    "/send-message",
    response_model=SendMessageResponse,
    status_code=201,
    responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
def post_message(
    body: Any = Body(default=None),
    db: Session = Depends(get_db),
) -> SendMessageResponse | JSONResponse:
    """Validate and store one message."""

    try:
        stored = send_message(db, body)
    except MessageValidationError as exc:
        return _error(exc.kind, exc.message)
    except StorageUnavailable:
        return _error(StorageUnavailable.kind, STORAGE_UNAVAILABLE_DETAIL)
    except Exception:
        logger.exception("Error sending message")
        return _error(ErrorKind.UNEXPECTED, "Internal server error")
    return SendMessageResponse(data=stored)


@router.get(
    "/get-messages",
    response_model=ListMessagesResponse,
    responses={400: {"model": ListErrorResponse}, 500: {"model": ListErrorResponse}, 503: {"model": ListErrorResponse}},
)
def get_messages(
    request: Request,
    limit: int | None = Query(default=None),
    db: Session = Depends(get_db),
) -> ListMessagesResponse | JSONResponse:
    """Return the oldest-first message snapshot, capped at the configured bound."""

    try:
        bound = clamp_list_limit(limit, request.app.state.settings.list_max_limit)
    except ValueError as exc:
        return _error(ErrorKind.INVALID_TYPE, str(exc), with_messages=True)

    try:
        messages = list_recent_messages(db, bound, max_limit=bound)
    except StorageUnavailable:
        return _error(StorageUnavailable.kind, STORAGE_UNAVAILABLE_DETAIL, with_messages=True)
    except Exception:
        logger.exception("Error fetching messages")
        return _error(ErrorKind.UNEXPECTED, "Failed to fetch messages", with_messages=True)
    return ListMessagesResponse(messages=messages, count=len(messages))
