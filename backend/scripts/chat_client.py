"""Terminal chat client that polls the message service.

Usage (from repository root):
    python backend/scripts/chat_client.py --as "User A"

Type a line and press enter to send. Ctrl-D or Ctrl-C exits.
"""

from __future__ import annotations

import argparse
import logging
import sys
import threading
from pathlib import Path

BACKEND_DIR = Path(__file__).resolve().parents[1]
if str(BACKEND_DIR) not in sys.path:
    sys.path.insert(0, str(BACKEND_DIR))

from pairchat.client.poller import (
    ChatMessage,
    ParticipantError,
    PollingChatClient,
    UnseenMessages,
    format_display_time,
)
from pairchat.config import get_settings


def parse_args() -> argparse.Namespace:
    """Parse script CLI arguments."""

    parser = argparse.ArgumentParser(description="Join the chat from a terminal.")
    parser.add_argument("--as", dest="participant", default=None, help="Participant to join as.")
    parser.add_argument("--base-url", default=None, help="API base URL (default: API_BASE_URL from settings)")
    return parser.parse_args()


class _Printer:
    """Prints messages not yet shown; the view itself is always replaced wholesale."""

    def __init__(self) -> None:
        self.unseen = UnseenMessages()

    def __call__(self, messages: list[ChatMessage]) -> None:
        for message in self.unseen.take(messages):
            print(f"[{format_display_time(message.timestamp)}] {message.sender}: {message.content}")


def main() -> int:
    """Run the polling loop in the background and read input lines."""

    args = parse_args()
    settings = get_settings()
    if args.base_url:
        settings = settings.model_copy(update={"api_base_url": args.base_url})
    logging.basicConfig(level=logging.WARNING, format="%(asctime)s %(levelname)s [%(name)s] %(message)s")

    client = PollingChatClient.from_settings(settings)
    try:
        if args.participant:
            client.switch_participant(args.participant)
        if client.participant is None:
            print(f"Choose a participant with --as ({', '.join(client.participants)})", file=sys.stderr)
            return 2
    except ParticipantError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    print(f"Joined as {client.participant}")
    printer = _Printer()
    stop = threading.Event()
    poller = threading.Thread(target=client.run, args=(stop, printer), daemon=True)
    poller.start()
    try:
        for line in sys.stdin:
            if client.send(line):
                printer(list(client.messages))
            elif line.strip():
                print("(not sent, try again)", file=sys.stderr)
    except KeyboardInterrupt:
        pass
    finally:
        stop.set()
        poller.join(timeout=settings.poll_interval_seconds)
        client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
