"""Message request/response schemas."""

from datetime import datetime, timezone

from pydantic import BaseModel, ConfigDict, Field, field_serializer

MAX_CONTENT_LENGTH = 1000


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 UTC with a trailing Z."""

    # SQLite hands back naive datetimes; everything is stored as UTC.
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


class SendMessageRequest(BaseModel):
    """Validated send payload with trimmed fields."""

    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    sender: str = Field(min_length=1)
    content: str = Field(min_length=1, max_length=MAX_CONTENT_LENGTH)


class MessageRead(BaseModel):
    """Serialized message."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    sender: str
    content: str
    timestamp: datetime

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class SentMessageData(BaseModel):
    """Identity of a freshly stored message."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    timestamp: datetime

    @field_serializer("timestamp")
    def _serialize_timestamp(self, value: datetime) -> str:
        return format_timestamp(value)


class SendMessageResponse(BaseModel):
    success: bool = True
    message: str = "Message sent successfully"
    data: SentMessageData | None = None


class ListMessagesResponse(BaseModel):
    success: bool = True
    messages: list[MessageRead] = Field(default_factory=list)
    count: int = 0
