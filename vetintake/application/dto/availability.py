from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any
from zoneinfo import ZoneInfo

from pydantic import BaseModel, ConfigDict, Field


class RawCandidate(BaseModel):
    """One proposed start time as sent by routing or public availability."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    iso: str | None = None
    suggested_start_iso: str | None = Field(default=None, alias="suggestedStartIso")
    date: str | None = None
    time: str | None = None
    display: str | None = None
    score: float | None = None
    doctor_id: str | int | None = Field(default=None, alias="doctorId")
    doctor_name: str | None = Field(default=None, alias="doctorName")

    def instant(self, timezone: ZoneInfo) -> datetime | None:
        """Start instant; naive values are read in the practice timezone."""
        raw = self.suggested_start_iso or self.iso
        if not raw and self.date:
            raw = f"{self.date}T{self.time or '12:00'}"
        if not raw:
            return None
        try:
            parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone)
        return parsed


@dataclass(frozen=True)
class ExplicitSlots:
    """Collaborator already picked the slots to show."""

    slots: tuple[RawCandidate, ...]


@dataclass(frozen=True)
class RankedCandidates:
    """Routing answer: best candidate plus scored alternates."""

    winner: RawCandidate | None
    alternates: tuple[RawCandidate, ...]


AvailabilityAnswer = ExplicitSlots | RankedCandidates


class AvailabilityResponseDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    slots: list[RawCandidate] | None = None
    winner: RawCandidate | None = None
    alternates: list[RawCandidate] | None = None
    candidates: list[RawCandidate] | None = None

    @classmethod
    def parse_payload(cls, payload: Any) -> "AvailabilityResponseDTO":
        if not isinstance(payload, dict):
            return cls()
        return cls.model_validate(payload)

    def to_answer(self) -> AvailabilityAnswer:
        if self.candidates:
            return ExplicitSlots(slots=tuple(self.candidates))
        if self.slots:
            return ExplicitSlots(slots=tuple(self.slots))
        return RankedCandidates(winner=self.winner, alternates=tuple(self.alternates or ()))
