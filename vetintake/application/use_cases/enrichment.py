from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Iterable

from vetintake.application.exceptions import PracticeApiError, ZoneNotServicedError
from vetintake.application.ports.directory import DirectoryPort
from vetintake.application.ports.geo import GeoPort
from vetintake.domain.entities.intake_events import (
    ClientProfileLoaded,
    IntakeEvent,
    PetAlertsLoaded,
    ReferenceDataLoaded,
    ZoneStatusChanged,
)
from vetintake.domain.entities.pet import Breed
from vetintake.domain.entities.provider import Provider

NOT_SERVICED_MESSAGE = (
    "Unfortunately, your address is outside our service area. "
    "Please contact us to see if we can still help."
)


class GenerationCounter:
    """Request generations per input key. A result is applied only while its token is current."""

    def __init__(self) -> None:
        self._current: dict[str, int] = {}

    def issue(self, key: str) -> int:
        self._current[key] = self._current.get(key, 0) + 1
        return self._current[key]

    def is_current(self, key: str, token: int) -> bool:
        return self._current.get(key) == token

    def invalidate(self, key: str) -> None:
        self.issue(key)


@dataclass
class EnrichmentState:
    """Per-session bookkeeping for background lookups."""

    generations: GenerationCounter = field(default_factory=GenerationCounter)
    last_checked_address: str | None = None
    last_events: tuple[IntakeEvent, ...] = ()
    not_serviced_address: str | None = None

    def remember(self, address: str, events: list[IntakeEvent]) -> list[IntakeEvent]:
        self.last_checked_address = address
        self.last_events = tuple(events)
        return events


class EnrichmentCoordinator:
    def __init__(
        self,
        directory: DirectoryPort,
        geo: GeoPort,
        practice_id: int,
        debounce_seconds: float = 0.5,
    ) -> None:
        self._directory = directory
        self._geo = geo
        self._practice_id = practice_id
        self._debounce_seconds = debounce_seconds
        self._logger = logging.getLogger(__name__)

    async def load_reference_data(self, is_authenticated: bool) -> ReferenceDataLoaded:
        """Appointment types and species. Deferred one tick so session creation returns first."""
        await asyncio.sleep(0)
        appointment_types, species = await asyncio.gather(
            self._appointment_types(is_authenticated),
            self._species(),
        )
        return ReferenceDataLoaded(appointment_types=tuple(appointment_types), species=tuple(species))

    async def load_client_profile(self) -> ClientProfileLoaded | None:
        try:
            pets, profile = await asyncio.gather(
                self._directory.fetch_client_pets(),
                self._directory.fetch_client_profile(),
            )
        except PracticeApiError as e:
            self._logger.warning("Client profile unavailable", extra={"error": str(e)})
            return None

        primary = next((p.primary_provider_name for p in pets if p.primary_provider_name), None)
        return ClientProfileLoaded(
            pets=tuple(pets),
            first_name=profile.first_name if profile else None,
            last_name=profile.last_name if profile else None,
            phone=profile.phone if profile else None,
            address=profile.address if profile else None,
            preferred_doctor_text=f"Dr. {primary}" if primary else None,
        )

    async def load_pet_alerts(self, pet_ids: Iterable[str]) -> PetAlertsLoaded:
        """Fetch alerts for every pet in parallel. A failing pet maps to None."""
        pet_ids = list(pet_ids)
        results = await asyncio.gather(*(self._alerts_for(pet_id) for pet_id in pet_ids))
        return PetAlertsLoaded(alerts=dict(zip(pet_ids, results)))

    async def load_breeds(self, species_id: str) -> list[Breed]:
        try:
            _, breeds = await self._directory.fetch_species_breeds(self._practice_id, species_id)
        except PracticeApiError as e:
            self._logger.warning("Breed lookup failed", extra={"species_id": species_id, "error": str(e)})
            return []
        return breeds

    async def refresh_address(
        self,
        state: EnrichmentState,
        address: str,
        is_authenticated: bool,
    ) -> list[IntakeEvent]:
        """Debounced zone check plus provider fetch for an address edit.

        Returns no events when a newer edit superseded this one while it was waiting or in flight.
        """
        token = state.generations.issue("address")
        await asyncio.sleep(self._debounce_seconds)
        if not state.generations.is_current("address", token):
            return []

        address = address.strip()
        if not address:
            return []
        if address == state.last_checked_address:
            return list(state.last_events)

        events: list[IntakeEvent] = []
        try:
            zone = await self._geo.find_zone(address)
        except ZoneNotServicedError:
            if not state.generations.is_current("address", token):
                return []
            self._logger.info("Address outside service area", extra={"reason": "not_serviced"})
            state.not_serviced_address = address
            return state.remember(address, [ZoneStatusChanged(status="not_serviced")])
        except PracticeApiError as e:
            self._logger.warning("Zone lookup failed", extra={"error": str(e)})
            events.append(ZoneStatusChanged(status="error"))
        else:
            self._logger.info("Address in service zone", extra={"zone": zone.name})
            events.append(ZoneStatusChanged(status="serviced"))

        providers = await self._providers(is_authenticated, address)
        if not state.generations.is_current("address", token):
            return []
        state.not_serviced_address = None
        events.append(ReferenceDataLoaded(providers=tuple(providers)))
        if events[0] == ZoneStatusChanged(status="error"):
            return events
        return state.remember(address, events)

    async def load_providers(self, state: EnrichmentState, is_authenticated: bool, address: str | None) -> list[Provider]:
        """Provider directory, suppressed while the current address is known to be out of area."""
        if address and address.strip() == state.not_serviced_address:
            return []
        return await self._providers(is_authenticated, address)

    async def _providers(self, is_authenticated: bool, address: str | None) -> list[Provider]:
        try:
            if is_authenticated:
                return await self._directory.fetch_employee_veterinarians(address or None)
            return await self._directory.fetch_public_veterinarians(self._practice_id, address or None)
        except PracticeApiError as e:
            self._logger.warning("Provider directory unavailable", extra={"error": str(e)})
            return []

    async def _appointment_types(self, is_authenticated: bool):
        try:
            return await self._directory.fetch_appointment_types(
                self._practice_id,
                show_in_intake_form=True,
                new_patient_allowed=None,
                is_authenticated=is_authenticated,
            )
        except PracticeApiError as e:
            self._logger.warning("Appointment types unavailable", extra={"error": str(e)})
            return []

    async def _species(self):
        try:
            species, _ = await self._directory.fetch_species_breeds(self._practice_id)
        except PracticeApiError as e:
            self._logger.warning("Species list unavailable", extra={"error": str(e)})
            return []
        return species

    async def _alerts_for(self, pet_id: str) -> str | None:
        try:
            return await self._directory.fetch_patient_alerts(pet_id)
        except PracticeApiError as e:
            self._logger.warning("Patient alerts unavailable", extra={"pet_id": pet_id, "error": str(e)})
            return None
