"""Message ORM model."""

from datetime import datetime, timezone

from sqlalchemy import DateTime, Text
from sqlalchemy.orm import Mapped, mapped_column

from pairchat.models.base import Base, IdMixin


class Message(Base, IdMixin):
    """Stored chat message. Rows are never updated or deleted."""

    __tablename__ = "messages"

    sender: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
