from abc import ABC, abstractmethod

from vetintake.domain.entities.intake_session import IntakeSession


class SessionStorePort(ABC):
    @abstractmethod
    def create(self, session: IntakeSession) -> str:
        """Store a fresh session and return its id."""
        raise NotImplementedError

    @abstractmethod
    def get(self, session_id: str) -> IntakeSession | None:
        raise NotImplementedError

    @abstractmethod
    def save(self, session_id: str, session: IntakeSession) -> None:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> None:
        raise NotImplementedError
