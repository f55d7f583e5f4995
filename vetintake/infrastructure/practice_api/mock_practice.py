from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from vetintake.application.dto.availability import AvailabilityAnswer, RankedCandidates, RawCandidate
from vetintake.application.exceptions import SubmissionFailure, ZoneNotServicedError
from vetintake.application.ports.availability import AvailabilityPort, AvailabilityQuery
from vetintake.application.ports.directory import DirectoryPort
from vetintake.application.ports.geo import GeoPort
from vetintake.application.ports.submission import SubmissionPort
from vetintake.domain.entities.appointment_type import AppointmentTypeDef
from vetintake.domain.entities.client_profile import ClientProfile, EmailCheck, GeocodeResult, Zone
from vetintake.domain.entities.pet import Breed, ExistingPet, Species
from vetintake.domain.entities.provider import Provider

DEFAULT_APPOINTMENT_TYPES = (
    AppointmentTypeDef(name="Wellness", pretty_name="Wellness Exam"),
    AppointmentTypeDef(name="Sick", pretty_name="Illness / Sick Visit"),
    AppointmentTypeDef(name="Euthanasia", pretty_name="Euthanasia"),
    AppointmentTypeDef(name="Recheck", pretty_name="Recheck", new_patient_allowed=False),
)

DEFAULT_PROVIDERS = (
    Provider(
        id="1",
        name="Jane Smith",
        pims_id="101",
        accepted_appointment_type_names=frozenset({"Wellness", "Sick", "Recheck", "Euthanasia"}),
    ),
    Provider(
        id="2",
        name="Alex Rivera",
        pims_id="102",
        accepted_appointment_type_names=frozenset({"Wellness", "Sick"}),
    ),
)

DEFAULT_SPECIES = (Species(id="1", name="Dog"), Species(id="2", name="Cat"), Species(id="Other", name="Other"))
DEFAULT_BREEDS = (
    Breed(id="10", name="Labrador Retriever", species_id="1"),
    Breed(id="11", name="Beagle", species_id="1"),
    Breed(id="20", name="Domestic Shorthair", species_id="2"),
)


class MockPracticeDirectory(DirectoryPort):
    def __init__(
        self,
        appointment_types: tuple[AppointmentTypeDef, ...] = DEFAULT_APPOINTMENT_TYPES,
        providers: tuple[Provider, ...] = DEFAULT_PROVIDERS,
        known_emails: dict[str, bool] | None = None,
        client_pets: tuple[ExistingPet, ...] = (),
        profile: ClientProfile | None = None,
        alerts: dict[str, str | None] | None = None,
    ) -> None:
        self.appointment_types = appointment_types
        self.providers = providers
        self.known_emails = dict(known_emails or {})
        self.client_pets = client_pets
        self.profile = profile
        self.alerts = dict(alerts or {})
        self.calls: list[tuple[str, Any]] = []

    async def check_email(self, email: str, practice_id: int) -> EmailCheck:
        self.calls.append(("check_email", email))
        email = email.strip().lower()
        if email not in self.known_emails:
            return EmailCheck(exists=False, has_account=False)
        return EmailCheck(exists=True, has_account=self.known_emails[email])

    async def fetch_appointment_types(
        self,
        practice_id: int,
        show_in_intake_form: bool = True,
        new_patient_allowed: bool | None = None,
        is_authenticated: bool = False,
    ) -> list[AppointmentTypeDef]:
        self.calls.append(("fetch_appointment_types", practice_id))
        types = [t for t in self.appointment_types if t.show_in_intake_form or not show_in_intake_form]
        if new_patient_allowed is not None:
            types = [t for t in types if t.new_patient_allowed == new_patient_allowed]
        return types

    async def fetch_employee_veterinarians(self, address: str | None = None) -> list[Provider]:
        self.calls.append(("fetch_employee_veterinarians", address))
        return list(self.providers)

    async def fetch_public_veterinarians(self, practice_id: int, address: str | None = None) -> list[Provider]:
        self.calls.append(("fetch_public_veterinarians", address))
        return list(self.providers)

    async def fetch_species_breeds(
        self, practice_id: int, species_id: str | None = None
    ) -> tuple[list[Species], list[Breed]]:
        self.calls.append(("fetch_species_breeds", species_id))
        breeds = [b for b in DEFAULT_BREEDS if species_id is None or b.species_id == species_id]
        return list(DEFAULT_SPECIES), breeds

    async def fetch_client_pets(self) -> list[ExistingPet]:
        self.calls.append(("fetch_client_pets", None))
        return list(self.client_pets)

    async def fetch_client_profile(self) -> ClientProfile | None:
        self.calls.append(("fetch_client_profile", None))
        return self.profile

    async def fetch_patient_alerts(self, pet_id: str) -> str | None:
        self.calls.append(("fetch_patient_alerts", pet_id))
        return self.alerts.get(pet_id)


class MockPracticeGeo(GeoPort):
    def __init__(self, not_serviced: set[str] | None = None, match_level: str = "street") -> None:
        self.not_serviced = set(not_serviced or ())
        self.match_level = match_level
        self.zone_lookups: list[str] = []

    async def find_zone(self, address: str) -> Zone:
        self.zone_lookups.append(address)
        if address in self.not_serviced:
            raise ZoneNotServicedError("Address is outside every service zone", status_code=404)
        return Zone(id="1", name="Greater Portland")

    async def validate_address(self, address: str, min_level: str = "street") -> GeocodeResult:
        if self.match_level != "street":
            return GeocodeResult(ok=False, match_level=self.match_level, reason="too_vague")
        return GeocodeResult(ok=True, lat=43.6591, lon=-70.2568, address=address, match_level="street")


class MockAvailability(AvailabilityPort):
    """Returns a canned answer, or three visits at the start of the window. Records every query."""

    def __init__(self, answer: AvailabilityAnswer | None = None) -> None:
        self.answer = answer
        self.queries: list[AvailabilityQuery] = []

    async def fetch_candidates(self, query: AvailabilityQuery) -> AvailabilityAnswer:
        self.queries.append(query)
        if self.answer is not None:
            return self.answer
        days = [query.start_date + timedelta(days=offset) for offset in range(min(3, query.num_days))]
        candidates = [
            RawCandidate(date=day.isoformat(), time=time, score=score)
            for day, time, score in zip(days, ("09:00", "10:32", "13:47"), (40, 95, 150))
        ]
        return RankedCandidates(winner=candidates[0] if candidates else None, alternates=tuple(candidates[1:]))


class MockSubmission(SubmissionPort):
    def __init__(self, fail_with: str | None = None) -> None:
        self.fail_with = fail_with
        self.payloads: list[dict[str, Any]] = []
        self._logger = logging.getLogger(__name__)

    async def submit(self, payload: dict[str, Any]) -> None:
        if self.fail_with is not None:
            raise SubmissionFailure(self.fail_with, status_code=500)
        self.payloads.append(payload)
        self._logger.info(
            "Mock appointment request received",
            extra={"client_type": payload.get("clientType"), "reason": payload.get("appointmentType")},
        )
