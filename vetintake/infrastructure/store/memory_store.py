from __future__ import annotations

import uuid

from vetintake.application.ports.session_store import SessionStorePort
from vetintake.domain.entities.intake_session import IntakeSession


class MemorySessionStore(SessionStorePort):
    def __init__(self, limit: int = 1000) -> None:
        self._sessions: dict[str, IntakeSession] = {}
        self._limit = limit

    def create(self, session: IntakeSession) -> str:
        session_id = uuid.uuid4().hex
        self._sessions[session_id] = session
        if len(self._sessions) > self._limit:
            # dicts keep insertion order; drop the oldest form fill
            oldest = next(iter(self._sessions))
            self._sessions.pop(oldest, None)
        return session_id

    def get(self, session_id: str) -> IntakeSession | None:
        return self._sessions.get(session_id)

    def save(self, session_id: str, session: IntakeSession) -> None:
        # evicted or deleted sessions stay gone
        if session_id in self._sessions:
            self._sessions[session_id] = session

    def delete(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)
