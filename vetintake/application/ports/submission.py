from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class SubmissionPort(ABC):
    @abstractmethod
    async def submit(self, payload: dict[str, Any]) -> None:
        """Deliver the appointment request. Raises SubmissionFailure on any non-2xx outcome."""
        raise NotImplementedError
