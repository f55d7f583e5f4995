from __future__ import annotations

from abc import ABC, abstractmethod

from vetintake.domain.entities.appointment_type import AppointmentTypeDef
from vetintake.domain.entities.client_profile import ClientProfile, EmailCheck
from vetintake.domain.entities.pet import Breed, ExistingPet, Species
from vetintake.domain.entities.provider import Provider


class DirectoryPort(ABC):
    @abstractmethod
    async def check_email(self, email: str, practice_id: int) -> EmailCheck:
        """Check whether an email already belongs to a client and whether it has a login."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_appointment_types(
        self,
        practice_id: int,
        show_in_intake_form: bool = True,
        new_patient_allowed: bool | None = None,
        is_authenticated: bool = False,
    ) -> list[AppointmentTypeDef]:
        """Appointment type catalog for the practice."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_employee_veterinarians(self, address: str | None = None) -> list[Provider]:
        """Provider directory for signed-in clients."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_public_veterinarians(self, practice_id: int, address: str | None = None) -> list[Provider]:
        """Provider directory for anonymous visitors, optionally filtered by service area."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_species_breeds(
        self, practice_id: int, species_id: str | None = None
    ) -> tuple[list[Species], list[Breed]]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_client_pets(self) -> list[ExistingPet]:
        raise NotImplementedError

    @abstractmethod
    async def fetch_client_profile(self) -> ClientProfile | None:
        raise NotImplementedError

    @abstractmethod
    async def fetch_patient_alerts(self, pet_id: str) -> str | None:
        """Free-text alerts on the patient record, or None."""
        raise NotImplementedError
