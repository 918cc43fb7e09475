"""SQLAlchemy metadata registry import for Alembic."""

from pairchat.models import Message
from pairchat.models.base import Base

__all__ = ["Base", "Message"]
