from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from vetintake.domain.entities.address import Address
from vetintake.domain.entities.appointment_type import AppointmentTypeDef
from vetintake.domain.entities.client_profile import ClientProfile
from vetintake.domain.entities.pet import Breed, ExistingPet, Species
from vetintake.domain.entities.provider import Provider


def rows(payload: Any, *keys: str) -> list[dict[str, Any]]:
    """List payloads arrive bare or wrapped in one of a few envelope keys."""
    if isinstance(payload, list):
        return [r for r in payload if isinstance(r, dict)]
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return [r for r in value if isinstance(r, dict)]
    return []


def _text(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


class AppointmentTypeDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str
    pretty_name: str | None = Field(default=None, alias="prettyName")
    new_patient_allowed: bool = Field(default=True, alias="newPatientAllowed")
    show_in_intake_form: bool = Field(default=True, alias="showInApptRequestForm")

    def to_entity(self) -> AppointmentTypeDef:
        return AppointmentTypeDef(
            name=self.name,
            pretty_name=self.pretty_name or self.name,
            new_patient_allowed=self.new_patient_allowed,
            show_in_intake_form=self.show_in_intake_form,
        )


class ProviderDTO(BaseModel):
    """Provider record from either the employee or the public directory."""

    model_config = ConfigDict(extra="ignore")

    id: str | int | None = None
    pims_id: str | int | None = Field(default=None, alias="pimsId")
    employee_id: str | int | None = Field(default=None, alias="employeeId")
    name: str | None = None
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    email: str | None = None
    appointment_types: list[Any] = Field(default_factory=list, alias="appointmentTypes")

    def display_name(self) -> str:
        parts = [p.strip() for p in (self.first_name, self.last_name) if p and p.strip()]
        if parts:
            return " ".join(parts)
        return self.name or f"Provider {self.provider_id() or ''}".strip()

    def provider_id(self) -> str | None:
        return _text(self.id if self.id is not None else self.pims_id if self.pims_id is not None else self.employee_id)

    def accepted_type_names(self) -> frozenset[str]:
        names: set[str] = set()
        for entry in self.appointment_types:
            if isinstance(entry, str):
                names.add(entry)
            elif isinstance(entry, dict) and entry.get("name"):
                names.add(str(entry["name"]))
        return frozenset(names)

    def to_entity(self) -> Provider | None:
        provider_id = self.provider_id()
        if provider_id is None:
            return None
        return Provider(
            id=provider_id,
            name=self.display_name(),
            pims_id=_text(self.pims_id),
            accepted_appointment_type_names=self.accepted_type_names(),
            email=self.email,
        )


class SpeciesBreedsDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    species: list[dict[str, Any]] = Field(default_factory=list)
    breeds: list[dict[str, Any]] = Field(default_factory=list)

    def to_entities(self) -> tuple[list[Species], list[Breed]]:
        species = [
            Species(id=str(s["id"]), name=str(s.get("name") or s["id"]))
            for s in self.species
            if s.get("id") is not None
        ]
        breeds = [
            Breed(id=str(b["id"]), name=str(b.get("name") or b["id"]), species_id=_text(b.get("speciesId")))
            for b in self.breeds
            if b.get("id") is not None
        ]
        return species, breeds


class ClientPetDTO(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | int | None = None
    pims_id: str | int | None = Field(default=None, alias="pimsId")
    name: str | None = None
    species: str | None = None
    species_name: str | None = Field(default=None, alias="speciesName")
    breed: str | None = None
    breed_name: str | None = Field(default=None, alias="breedName")
    dob: str | None = None
    date_of_birth: str | None = Field(default=None, alias="dateOfBirth")
    client_id: str | int | None = Field(default=None, alias="clientId")
    primary_provider_name: str | None = Field(default=None, alias="primaryProviderName")
    subscription: dict[str, Any] | None = None
    photo_url: str | None = Field(default=None, alias="photoUrl")

    def to_entity(self) -> ExistingPet | None:
        # External (PIMS) id is the pet's identity; the database id is kept alongside.
        pet_id = _text(self.pims_id) or _text(self.id)
        if pet_id is None:
            return None
        return ExistingPet(
            id=pet_id,
            name=self.name or "Pet",
            species=self.species or self.species_name,
            breed=self.breed or self.breed_name,
            dob=self.dob or self.date_of_birth,
            db_id=_text(self.id),
            client_id=_text(self.client_id),
            primary_provider_name=self.primary_provider_name,
            subscription=_text((self.subscription or {}).get("name")),
            photo_url=self.photo_url,
        )


class ClientAppointmentDTO(BaseModel):
    """One row of /appointments/client; the client block doubles as the profile."""

    model_config = ConfigDict(extra="ignore")

    client: dict[str, Any] = Field(default_factory=dict)
    address1: str | None = None
    city: str | None = None
    state: str | None = None
    zip: str | int | None = None

    def to_profile(self) -> ClientProfile:
        c = self.client
        line1 = self.address1 or c.get("address1") or c.get("address")
        address = None
        if line1:
            address = Address(
                line1=str(line1),
                line2=_text(c.get("address2")),
                city=str(self.city or c.get("city") or ""),
                state=str(self.state or c.get("state") or ""),
                zip=str(self.zip or c.get("zip") or c.get("zipcode") or ""),
                country="US",
            )
        return ClientProfile(
            first_name=_text(c.get("firstName")),
            last_name=_text(c.get("lastName")),
            phone=_text(c.get("phone") or c.get("phone1")),
            address=address,
        )
