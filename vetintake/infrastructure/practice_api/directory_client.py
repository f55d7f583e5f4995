from __future__ import annotations

import logging

from pydantic import ValidationError

from vetintake.application.dto.directory import (
    AppointmentTypeDTO,
    ClientAppointmentDTO,
    ClientPetDTO,
    ProviderDTO,
    SpeciesBreedsDTO,
    rows,
)
from vetintake.application.exceptions import EnrichmentFailure, PracticeApiError
from vetintake.application.ports.directory import DirectoryPort
from vetintake.domain.entities.appointment_type import AppointmentTypeDef
from vetintake.domain.entities.client_profile import ClientProfile, EmailCheck
from vetintake.domain.entities.pet import Breed, ExistingPet, Species
from vetintake.domain.entities.provider import Provider
from vetintake.infrastructure.practice_api.http_client import PracticeHttpClient


class PracticeDirectory(DirectoryPort):
    def __init__(self, client: PracticeHttpClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def check_email(self, email: str, practice_id: int) -> EmailCheck:
        data = await self._client.get_json(
            "/public/appointments/check-email",
            params={"email": email.strip().lower(), "practiceId": practice_id},
        )
        data = data or {}
        return EmailCheck(exists=bool(data.get("exists")), has_account=bool(data.get("hasAccount")))

    async def fetch_appointment_types(
        self,
        practice_id: int,
        show_in_intake_form: bool = True,
        new_patient_allowed: bool | None = None,
        is_authenticated: bool = False,
    ) -> list[AppointmentTypeDef]:
        path = "/appointment-types" if is_authenticated else "/public/appointment-types"
        data = await self._enrichment_get(
            path,
            {
                "practiceId": practice_id,
                "showInApptRequestForm": show_in_intake_form,
                "newPatientAllowed": new_patient_allowed,
            },
        )
        types: list[AppointmentTypeDef] = []
        for row in rows(data, "items", "appointmentTypes"):
            try:
                types.append(AppointmentTypeDTO.model_validate(row).to_entity())
            except ValidationError:
                self._logger.warning("Skipping malformed appointment type", extra={"row": row})
        return types

    async def fetch_employee_veterinarians(self, address: str | None = None) -> list[Provider]:
        data = await self._enrichment_get("/employees/providers", {"address": address})
        return _providers(data, "items", "providers")

    async def fetch_public_veterinarians(self, practice_id: int, address: str | None = None) -> list[Provider]:
        data = await self._enrichment_get(
            "/public/appointments/veterinarians",
            {"practiceId": practice_id, "address": address},
        )
        return _providers(data, "items", "veterinarians")

    async def fetch_species_breeds(
        self, practice_id: int, species_id: str | None = None
    ) -> tuple[list[Species], list[Breed]]:
        data = await self._enrichment_get(
            "/public/species-breeds",
            {"practiceId": practice_id, "speciesId": species_id},
        )
        if isinstance(data, list):
            data = {"species": data}
        return SpeciesBreedsDTO.model_validate(data or {}).to_entities()

    async def fetch_client_pets(self) -> list[ExistingPet]:
        data = await self._enrichment_get("/patients/client/mine")
        pets: list[ExistingPet] = []
        for row in rows(data, "rows", "items"):
            pet = ClientPetDTO.model_validate(row).to_entity()
            if pet is not None:
                pets.append(pet)
        return pets

    async def fetch_client_profile(self) -> ClientProfile | None:
        data = await self._enrichment_get("/appointments/client")
        appointments = rows(data, "appointments")
        if not appointments:
            return None
        return ClientAppointmentDTO.model_validate(appointments[0]).to_profile()

    async def fetch_patient_alerts(self, pet_id: str) -> str | None:
        data = await self._enrichment_get(f"/patients/pims/{pet_id}")
        if not isinstance(data, dict):
            return None
        alerts = data.get("alerts")
        if alerts is None and isinstance(data.get("patient"), dict):
            alerts = data["patient"].get("alerts")
        return alerts if isinstance(alerts, str) and alerts.strip() else None

    async def _enrichment_get(self, path: str, params: dict | None = None):
        try:
            return await self._client.get_json(path, params=params)
        except PracticeApiError as e:
            raise EnrichmentFailure(str(e), status_code=e.status_code) from e


def _providers(data, *keys: str) -> list[Provider]:
    providers: list[Provider] = []
    for row in rows(data, *keys):
        provider = ProviderDTO.model_validate(row).to_entity()
        if provider is not None:
            providers.append(provider)
    return providers
