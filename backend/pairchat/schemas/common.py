"""Common API response schemas."""

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Failure envelope shared by every endpoint."""

    success: bool = False
    error: str


class ListErrorResponse(ErrorResponse):
    """Failure envelope for reads; carries an empty list so callers can render a safe state."""

    messages: list = []
