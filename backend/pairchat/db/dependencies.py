"""FastAPI dependencies for database access."""

from collections.abc import Iterator

from fastapi import Request
from sqlalchemy.orm import Session


def get_db(request: Request) -> Iterator[Session]:
    """Yield one session per request from the factory built at app startup."""

    db: Session = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
