from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Iterable
from zoneinfo import ZoneInfo

from vetintake.application.dto.availability import AvailabilityAnswer, ExplicitSlots, RankedCandidates, RawCandidate
from vetintake.application.exceptions import PracticeApiError
from vetintake.application.ports.availability import AvailabilityPort, AvailabilityQuery
from vetintake.application.ports.geo import GeoPort
from vetintake.application.use_cases.appointment_types import is_euthanasia_type
from vetintake.application.use_cases.provider_resolver import resolve
from vetintake.application.use_cases.vet_eligibility import eligible_for_session
from vetintake.application.utils.slot_time import format_slot_display, round_to_nearest_5_minutes
from vetintake.domain.entities.candidate_slot import CandidateSlot
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.urgency import Urgency

MAX_CANDIDATES = 3
# Routing scores above this are not offered to clients. Scale is defined upstream.
MAX_ROUTING_SCORE = 160

BASE_SERVICE_MINUTES = 40
EXTRA_PET_MINUTES = 20


@dataclass(frozen=True)
class SearchWindow:
    start_offset_days: int
    length_days: int

    def start_date(self, today: date) -> date:
        return today + timedelta(days=self.start_offset_days)


DEFAULT_WINDOW = SearchWindow(start_offset_days=1, length_days=42)

URGENCY_WINDOWS: dict[Urgency, SearchWindow | None] = {
    Urgency.EMERGENT: None,
    Urgency.URGENT: None,
    Urgency.SOON: SearchWindow(1, 7),
    Urgency.THREE_TO_FOUR_WEEKS: SearchWindow(21, 15),
    Urgency.FLEXIBLE: SearchWindow(4, 39),
    Urgency.ROUTINE: SearchWindow(75, 31),
    Urgency.PLANNED: SearchWindow(135, 31),
    Urgency.FUTURE: SearchWindow(345, 21),
}


@dataclass(frozen=True)
class SlotRecommendation:
    slots: tuple[CandidateSlot, ...] = ()
    start_date: date | None = None
    num_days: int | None = None
    service_minutes: int | None = None
    skipped_reason: str | None = None  # "manual_urgency", "euthanasia", "no_doctor", "failed"


def search_window(urgency: Urgency | None) -> SearchWindow | None:
    """Window to search for an urgency. None means no automatic search."""
    if urgency is None:
        return DEFAULT_WINDOW
    return URGENCY_WINDOWS[urgency]


def service_minutes(pet_count: int) -> int:
    return BASE_SERVICE_MINUTES + EXTRA_PET_MINUTES * max(0, max(1, pet_count) - 1)


def has_euthanasia_pet(session: IntakeSession) -> bool:
    return any(
        is_euthanasia_type(session.intake_for(pet_id).appointment_type_name)
        for pet_id in session.selected_pet_ids
    )


def reconcile(answer: AvailabilityAnswer) -> list[RawCandidate]:
    """Pick up to three candidates from either response shape."""
    if isinstance(answer, ExplicitSlots):
        return list(answer.slots[:MAX_CANDIDATES])
    if isinstance(answer, RankedCandidates):
        combined = ([answer.winner] if answer.winner is not None else []) + list(answer.alternates)
        kept = [c for c in combined if c.score is None or c.score <= MAX_ROUTING_SCORE]
        return kept[:MAX_CANDIDATES]
    return []


def to_candidate_slots(candidates: Iterable[RawCandidate], timezone: ZoneInfo) -> tuple[CandidateSlot, ...]:
    slots: list[CandidateSlot] = []
    for candidate in candidates:
        instant = candidate.instant(timezone)
        if instant is None:
            continue
        # upstream may answer in UTC; clients read practice wall-clock time
        instant = instant.astimezone(timezone)
        rounded = round_to_nearest_5_minutes(instant)
        slots.append(CandidateSlot(iso=rounded.isoformat(), display=format_slot_display(rounded)))
    return tuple(slots[:MAX_CANDIDATES])


class SlotRecommendationEngine:
    def __init__(
        self,
        routing: AvailabilityPort,
        public: AvailabilityPort,
        geo: GeoPort,
        practice_id: int,
        timezone: ZoneInfo,
    ) -> None:
        self._routing = routing
        self._public = public
        self._geo = geo
        self._practice_id = practice_id
        self._timezone = timezone
        self._logger = logging.getLogger(__name__)

    def skip_reason(self, session: IntakeSession) -> str | None:
        """Why no automatic search runs for this session, if it does not."""
        if has_euthanasia_pet(session):
            return "euthanasia"
        if search_window(session.urgency) is None:
            return "manual_urgency"
        if resolve(session.preferred_doctor_text, eligible_for_session(session)) is None:
            return "no_doctor"
        return None

    async def recommend(self, session: IntakeSession, today: date | None = None) -> SlotRecommendation:
        reason = self.skip_reason(session)
        if reason:
            self._logger.info("Slot search skipped", extra={"reason": reason})
            return SlotRecommendation(skipped_reason=reason)

        window = search_window(session.urgency)
        doctor = resolve(session.preferred_doctor_text, eligible_for_session(session))
        if window is None or doctor is None:
            return SlotRecommendation(skipped_reason="no_doctor")

        today = today or datetime.now(self._timezone).date()
        minutes = service_minutes(len(session.selected_pet_ids))
        start = window.start_date(today)

        try:
            query = await self._build_query(session, doctor.routing_id, start, window.length_days, minutes)
            port = self._routing if session.is_authenticated else self._public
            answer = await port.fetch_candidates(query)
        except PracticeApiError as e:
            self._logger.warning("Slot search failed", extra={"error": str(e), "doctor_id": doctor.routing_id})
            return SlotRecommendation(
                start_date=start, num_days=window.length_days, service_minutes=minutes, skipped_reason="failed"
            )

        slots = to_candidate_slots(reconcile(answer), self._timezone)
        self._logger.info(
            "Slot search finished",
            extra={"doctor_id": doctor.routing_id, "slot_count": len(slots), "service_minutes": minutes},
        )
        return SlotRecommendation(
            slots=slots, start_date=start, num_days=window.length_days, service_minutes=minutes
        )

    async def _build_query(
        self,
        session: IntakeSession,
        doctor_id: str,
        start: date,
        num_days: int,
        minutes: int,
    ) -> AvailabilityQuery:
        address = session.meeting_address.one_line() if session.meeting_address else ""
        lat: float | None = None
        lon: float | None = None
        if address:
            result = await self._geo.validate_address(address, min_level="street")
            if result.ok:
                lat, lon = result.lat, result.lon
                address = result.address or address
            else:
                self._logger.info("Address not precise enough for routing", extra={"reason": result.reason})

        return AvailabilityQuery(
            practice_id=self._practice_id,
            doctor_id=doctor_id,
            start_date=start,
            num_days=num_days,
            service_minutes=minutes,
            address=address or None,
            lat=lat,
            lon=lon,
        )
