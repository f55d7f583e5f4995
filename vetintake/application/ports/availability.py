from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import date

from vetintake.application.dto.availability import AvailabilityAnswer


@dataclass(frozen=True)
class AvailabilityQuery:
    practice_id: int
    doctor_id: str
    start_date: date
    num_days: int
    service_minutes: int
    address: str | None = None
    lat: float | None = None
    lon: float | None = None


class AvailabilityPort(ABC):
    @abstractmethod
    async def fetch_candidates(self, query: AvailabilityQuery) -> AvailabilityAnswer:
        """Candidate visit times for one doctor inside the search window."""
        raise NotImplementedError
