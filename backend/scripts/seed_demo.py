"""Seed a short demo conversation between the two participants.

Usage (from repository root):
    python backend/scripts/seed_demo.py

Usage (from backend directory):
    python scripts/seed_demo.py
"""

from __future__ import annotations

import argparse
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Make `pairchat` imports work whether the script is run from repo root or backend/.
BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from pairchat.config import get_settings
from pairchat.db.session import build_engine, build_session_factory
from pairchat.models.base import Base
from pairchat.services.messages import append_message


def build_demo_messages(participants: list[str]) -> list[tuple[str, str]]:
    """Return a deterministic alternating exchange."""

    first, second = participants[0], participants[1 % len(participants)]
    return [
        (first, "hi"),
        (second, "hey! are we still on for tonight?"),
        (first, "yes, 7pm at the usual place"),
        (second, "great, see you there"),
    ]


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Append a demo conversation to the message store.")
    parser.add_argument(
        "--database-url",
        default=None,
        help="Database URL (default: DATABASE_URL from settings)",
    )
    parser.add_argument(
        "--backdate-minutes",
        type=int,
        default=0,
        help="Start the demo this many minutes in the past, one minute per message.",
    )
    return parser.parse_args()


def main() -> None:
    """Seed demo data and print a short summary."""

    args = parse_args()
    settings = get_settings()
    engine = build_engine(args.database_url or settings.database_url)
    Base.metadata.create_all(engine)
    SessionLocal = build_session_factory(engine)

    now = datetime.now(timezone.utc)
    start = now - timedelta(minutes=args.backdate_minutes) if args.backdate_minutes else None

    created = []
    with SessionLocal() as db:
        for idx, (sender, content) in enumerate(build_demo_messages(settings.participants)):
            timestamp = start + timedelta(minutes=idx) if start else None
            created.append(append_message(db, sender, content, timestamp=timestamp))
    engine.dispose()

    print("Seed complete")
    print(f"messages_created={len(created)}")
    print(f"first_id={created[0].id} last_id={created[-1].id}")
    print()
    print("Inspect:")
    print("  GET /api/get-messages")


if __name__ == "__main__":
    main()
