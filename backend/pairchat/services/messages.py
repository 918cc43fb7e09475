"""Message store: append and time-ordered retrieval."""

from __future__ import annotations

import enum
import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.exc import DisconnectionError, InterfaceError, OperationalError
from sqlalchemy.orm import Session

from pairchat.models.message import Message
from pairchat.schemas.message import MAX_CONTENT_LENGTH

logger = logging.getLogger(__name__)

_UNAVAILABLE_ERRORS = (OperationalError, InterfaceError, DisconnectionError)


class ErrorKind(str, enum.Enum):
    """Failure categories surfaced by the message exchange."""

    MISSING_FIELD = "missing_field"
    INVALID_TYPE = "invalid_type"
    EMPTY_FIELD = "empty_field"
    CONTENT_TOO_LONG = "content_too_long"
    STORAGE_UNAVAILABLE = "storage_unavailable"
    UNEXPECTED = "unexpected"


class MessageValidationError(ValueError):
    """Raised when a message violates input or storage invariants."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


class StorageUnavailable(RuntimeError):
    """Raised when the backing database cannot be reached."""

    kind = ErrorKind.STORAGE_UNAVAILABLE


def to_utc(value: datetime) -> datetime:
    """Normalize to UTC; naive values are taken to be UTC already."""

    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def check_message_invariants(sender: str, content: str) -> None:
    """Validate already-trimmed sender/content against the stored-record rules."""

    if not sender or not content:
        raise MessageValidationError(ErrorKind.EMPTY_FIELD, "Sender and content cannot be empty")
    if len(content) > MAX_CONTENT_LENGTH:
        raise MessageValidationError(
            ErrorKind.CONTENT_TOO_LONG,
            f"Message content too long (max {MAX_CONTENT_LENGTH} characters)",
        )


def append_message(
    db: Session,
    sender: str,
    content: str,
    *,
    timestamp: datetime | None = None,
) -> Message:
    """Persist one message, assigning its id and (if absent) its timestamp."""

    sender = sender.strip()
    content = content.strip()
    check_message_invariants(sender, content)

    message = Message(
        sender=sender,
        content=content,
        timestamp=to_utc(timestamp) if timestamp is not None else datetime.now(timezone.utc),
    )
    try:
        db.add(message)
        db.commit()
    except _UNAVAILABLE_ERRORS as exc:
        db.rollback()
        logger.warning("Message store unavailable on append: %s", exc)
        raise StorageUnavailable("Message store is unavailable") from exc
    except Exception:
        db.rollback()
        raise

    # The row is committed; a failure from here on must not look retryable.
    db.refresh(message)

    logger.info("Stored message id=%s sender=%r content_length=%d", message.id, message.sender, len(content))
    return message


def list_messages_ordered_by_time(db: Session, limit: int) -> list[Message]:
    """Return up to ``limit`` messages ordered by (timestamp, id) ascending.

    ``id`` is assigned in insertion order, so it breaks ties between equal
    timestamps deterministically.
    """

    if isinstance(limit, bool) or not isinstance(limit, int) or limit < 1:
        raise ValueError(f"limit must be a positive integer, got {limit!r}")

    stmt = select(Message).order_by(Message.timestamp.asc(), Message.id.asc()).limit(limit)
    try:
        return list(db.scalars(stmt).all())
    except _UNAVAILABLE_ERRORS as exc:
        db.rollback()
        logger.warning("Message store unavailable on list: %s", exc)
        raise StorageUnavailable("Message store is unavailable") from exc
