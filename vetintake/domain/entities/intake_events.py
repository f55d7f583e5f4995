from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping

from vetintake.domain.entities.address import Address
from vetintake.domain.entities.appointment_type import AppointmentTypeDef
from vetintake.domain.entities.candidate_slot import CandidateSlot
from vetintake.domain.entities.intake_session import ContactInfo
from vetintake.domain.entities.pet import ExistingPet, NewPet, PetIntake, Species
from vetintake.domain.entities.provider import Provider
from vetintake.domain.entities.urgency import Urgency


@dataclass(frozen=True)
class AnswerChanged:
    """Plain text or yes/no answer keyed by session attribute name."""

    field: str
    value: Any


@dataclass(frozen=True)
class ContactChanged:
    contact: ContactInfo


@dataclass(frozen=True)
class AddressChanged:
    kind: str  # "address", "new_address", "mailing_address"
    address: Address | None


@dataclass(frozen=True)
class PetSelected:
    pet_id: str


@dataclass(frozen=True)
class PetDeselected:
    pet_id: str


@dataclass(frozen=True)
class NewPetSaved:
    """Adds a new pet or replaces its record. New pets are selected on add."""

    pet: NewPet


@dataclass(frozen=True)
class PetIntakeChanged:
    pet_id: str
    intake: PetIntake


@dataclass(frozen=True)
class UrgencyChanged:
    urgency: Urgency | None


@dataclass(frozen=True)
class DoctorChanged:
    text: str


@dataclass(frozen=True)
class SlotToggled:
    iso: str
    selected: bool


@dataclass(frozen=True)
class NoneOfTheseWorkChanged:
    value: bool


@dataclass(frozen=True)
class RecommendationsReplaced:
    slots: tuple[CandidateSlot, ...]
    service_minutes: int | None = None


@dataclass(frozen=True)
class SlotsLoading:
    loading: bool


@dataclass(frozen=True)
class ReferenceDataLoaded:
    appointment_types: tuple[AppointmentTypeDef, ...] | None = None
    providers: tuple[Provider, ...] | None = None
    species: tuple[Species, ...] | None = None


@dataclass(frozen=True)
class ClientProfileLoaded:
    """Signed-in client's pets and profile; moves the wizard past Intro."""

    pets: tuple[ExistingPet, ...] = ()
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    phone: str | None = None
    address: Address | None = None
    preferred_doctor_text: str | None = None


@dataclass(frozen=True)
class PetAlertsLoaded:
    alerts: Mapping[str, str | None] = field(default_factory=dict)


@dataclass(frozen=True)
class ZoneStatusChanged:
    status: str


IntakeEvent = (
    AnswerChanged
    | ContactChanged
    | AddressChanged
    | PetSelected
    | PetDeselected
    | NewPetSaved
    | PetIntakeChanged
    | UrgencyChanged
    | DoctorChanged
    | SlotToggled
    | NoneOfTheseWorkChanged
    | RecommendationsReplaced
    | SlotsLoading
    | ReferenceDataLoaded
    | ClientProfileLoaded
    | PetAlertsLoaded
    | ZoneStatusChanged
)
