"""ORM models package exports."""

from pairchat.models.message import Message

__all__ = ["Message"]
