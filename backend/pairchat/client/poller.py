"""Polling chat client.

Keeps a local, oldest-first view of the conversation and refreshes it by
replacing the whole view with each successful snapshot from the server.
Failed polls keep the last good view.
"""

from __future__ import annotations

import json
import logging
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Any

import httpx

from pairchat.config import Settings, get_settings

logger = logging.getLogger(__name__)


class ParticipantError(ValueError):
    """Raised when a participant name is not one of the configured participants."""


@dataclass(frozen=True, slots=True)
class ChatMessage:
    """One message as seen by the client."""

    id: int
    sender: str
    content: str
    timestamp: datetime

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ChatMessage:
        return cls(
            id=payload["id"],
            sender=payload["sender"],
            content=payload["content"],
            timestamp=datetime.fromisoformat(payload["timestamp"].replace("Z", "+00:00")),
        )


def format_display_time(value: datetime) -> str:
    """Format a timestamp as local ``hh:mm AM/PM``."""

    return value.astimezone().strftime("%I:%M %p")


class ParticipantStore:
    """Client-local persistence of the selected participant."""

    def __init__(self, path: Path) -> None:
        self.path = path

    def load(self) -> str | None:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            value = json.loads(raw).get("participant")
        except (json.JSONDecodeError, AttributeError):
            logger.warning("Ignoring unreadable client state at %s", self.path)
            return None
        return value if isinstance(value, str) else None

    def save(self, participant: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps({"participant": participant}), encoding="utf-8")


class PollingChatClient:
    """Client side of the send/list exchange."""

    def __init__(
        self,
        http: httpx.Client,
        *,
        participants: Sequence[str],
        state: ParticipantStore,
        poll_interval_seconds: float = 5.0,
    ) -> None:
        self.http = http
        self.participants = tuple(participants)
        self.state = state
        self.poll_interval_seconds = poll_interval_seconds
        self.messages: list[ChatMessage] = []
        self.participant: str | None = None

        saved = state.load()
        if saved in self.participants:
            self.participant = saved

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> PollingChatClient:
        settings = settings or get_settings()
        http = httpx.Client(base_url=settings.api_base_url, timeout=settings.client_timeout_seconds)
        return cls(
            http,
            participants=settings.participants,
            state=ParticipantStore(settings.client_state_path),
            poll_interval_seconds=settings.poll_interval_seconds,
        )

    def close(self) -> None:
        self.http.close()

    def switch_participant(self, name: str) -> None:
        if name not in self.participants:
            raise ParticipantError(f"Unknown participant {name!r}; choose one of {', '.join(self.participants)}")
        self.participant = name
        self.state.save(name)

    def refresh(self) -> bool:
        """Fetch the current snapshot; replace the local view only on success."""

        try:
            response = self.http.get("/api/get-messages")
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Polling messages failed: %s", exc)
            return False

        if not isinstance(payload, dict) or not payload.get("success"):
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.warning("Server refused message list (HTTP %s): %s", response.status_code, error)
            return False

        try:
            snapshot = [ChatMessage.from_payload(item) for item in payload.get("messages", [])]
        except (KeyError, TypeError, ValueError) as exc:
            logger.warning("Discarding malformed message list: %s", exc)
            return False
        self.messages = snapshot
        return True

    def send(self, text: str) -> bool:
        """Send ``text`` as the current participant, then refresh on success.

        Returns False when nothing was stored; the caller should keep its input.
        """

        content = text.strip()
        if not content:
            return False
        if self.participant is None:
            raise ParticipantError("Select a participant before sending")

        try:
            response = self.http.post("/api/send-message", json={"sender": self.participant, "content": content})
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Sending message failed: %s", exc)
            return False

        if not isinstance(payload, dict) or not payload.get("success"):
            error = payload.get("error") if isinstance(payload, dict) else None
            logger.warning("Server rejected message (HTTP %s): %s", response.status_code, error)
            return False

        self.refresh()
        return True

    def run(
        self,
        stop_event: threading.Event,
        on_update: Callable[[list[ChatMessage]], None] | None = None,
    ) -> None:
        """Poll until ``stop_event`` is set, refreshing once immediately."""

        while not stop_event.is_set():
            if self.refresh() and on_update is not None:
                on_update(list(self.messages))
            stop_event.wait(self.poll_interval_seconds)


class UnseenMessages:
    """Tracks which message ids have been shown; safe to share between threads."""

    def __init__(self) -> None:
        self._seen: set[int] = set()
        self._lock = threading.Lock()

    def take(self, messages: Sequence[ChatMessage]) -> list[ChatMessage]:
        """Return the messages not returned by an earlier call, marking them seen."""

        with self._lock:
            fresh = [message for message in messages if message.id not in self._seen]
            self._seen.update(message.id for message in fresh)
        return fresh
