"""
Alignment sessions: one correspondence store per pair of images.
"""

from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal

from alignment_service.core.exceptions import ServiceError
from alignment_service.services.correspondence_store import CorrespondenceStore, StoreEvent

Mode = Literal["manual", "automatic"]


class EventLog:
    """Store observer keeping the most recent events with sequence numbers."""

    def __init__(self, max_events: int) -> None:
        self._events: deque[tuple[int, StoreEvent]] = deque(maxlen=max_events)
        self.last_sequence = 0

    def on_store_event(self, event: StoreEvent) -> None:
        self.last_sequence += 1
        self._events.append((self.last_sequence, event))

    def since(self, after: int) -> list[tuple[int, StoreEvent]]:
        """Events recorded after the given sequence number, oldest first."""
        return [(seq, event) for seq, event in self._events if seq > after]


@dataclass
class Session:
    """Correspondences between one left and one right image."""

    session_id: str
    mode: Mode
    store: CorrespondenceStore
    events: EventLog
    left_image: str | None = None
    right_image: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def switch_mode(self, mode: Mode) -> None:
        """Change matching mode; the store is always cleared."""
        self.mode = mode
        self.store.reset()

    def require_mode(self, mode: Mode) -> None:
        """
        Raises:
            ServiceError: If the session is in another mode
        """
        if self.mode != mode:
            raise ServiceError(
                error="invalid_mode",
                message=f"Operation requires {mode} mode, session is in {self.mode} mode",
                status_code=409,
                details={"session_id": self.session_id, "mode": self.mode},
            )


class SessionRegistry:
    """In-memory registry of alignment sessions."""

    def __init__(self, max_events: int) -> None:
        self.max_events = max_events
        self._sessions: dict[str, Session] = {}

    def __len__(self) -> int:
        return len(self._sessions)

    def create(
        self,
        mode: Mode,
        left_image: str | None = None,
        right_image: str | None = None,
    ) -> Session:
        store = CorrespondenceStore()
        events = EventLog(self.max_events)
        store.subscribe(events)
        session = Session(
            session_id=uuid.uuid4().hex,
            mode=mode,
            store=store,
            events=events,
            left_image=left_image,
            right_image=right_image,
        )
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Session:
        """
        Raises:
            ServiceError: If no session has this id
        """
        session = self._sessions.get(session_id)
        if session is None:
            raise ServiceError(
                error="session_not_found",
                message=f"Session not found: {session_id}",
                status_code=404,
                details={"session_id": session_id},
            )
        return session

    def delete(self, session_id: str) -> None:
        self.get(session_id)
        del self._sessions[session_id]
