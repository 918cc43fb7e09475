"""Send and list operations of the message exchange."""

from __future__ import annotations

from typing import Any

from sqlalchemy.orm import Session

from pairchat.schemas.message import MAX_CONTENT_LENGTH, MessageRead, SendMessageRequest, SentMessageData
from pairchat.services.messages import (
    ErrorKind,
    MessageValidationError,
    append_message,
    list_messages_ordered_by_time,
)

DEFAULT_LIST_LIMIT = 100


def parse_send_payload(body: Any) -> SendMessageRequest:
    """Validate a decoded request body into a trimmed send request.

    Checks run in a fixed order so the reported error is deterministic:
    object shape, presence, type, emptiness, then content length.
    """

    if not isinstance(body, dict):
        raise MessageValidationError(ErrorKind.INVALID_TYPE, "Request body must be a JSON object")

    sender = body.get("sender")
    content = body.get("content")
    if sender is None or content is None:
        raise MessageValidationError(ErrorKind.MISSING_FIELD, "Sender and content are required")
    if not isinstance(sender, str) or not isinstance(content, str):
        raise MessageValidationError(ErrorKind.INVALID_TYPE, "Sender and content must be strings")

    sender = sender.strip()
    content = content.strip()
    if not sender or not content:
        raise MessageValidationError(ErrorKind.EMPTY_FIELD, "Sender and content cannot be empty")
    if len(content) > MAX_CONTENT_LENGTH:
        raise MessageValidationError(
            ErrorKind.CONTENT_TOO_LONG,
            f"Message content too long (max {MAX_CONTENT_LENGTH} characters)",
        )

    return SendMessageRequest(sender=sender, content=content)


def send_message(db: Session, body: Any) -> SentMessageData:
    """Validate ``body`` and append it to the store.

    Nothing is written unless every check passes.
    """

    request = parse_send_payload(body)
    stored = append_message(db, request.sender, request.content)
    return SentMessageData.model_validate(stored)


def clamp_list_limit(limit: int | None, max_limit: int = DEFAULT_LIST_LIMIT) -> int:
    if limit is None:
        return max_limit
    if limit < 1:
        raise ValueError("limit must be a positive integer")
    return min(limit, max_limit)


def list_recent_messages(
    db: Session,
    limit: int | None = None,
    *,
    max_limit: int = DEFAULT_LIST_LIMIT,
) -> list[MessageRead]:
    """Return a bounded, oldest-first snapshot of stored messages."""

    records = list_messages_ordered_by_time(db, clamp_list_limit(limit, max_limit))
    return [MessageRead.model_validate(record) for record in records]
