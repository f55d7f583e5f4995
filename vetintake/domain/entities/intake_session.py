from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping

from vetintake.domain.entities.address import Address
from vetintake.domain.entities.appointment_type import AppointmentTypeDef
from vetintake.domain.entities.candidate_slot import CandidateSlot
from vetintake.domain.entities.pages import YES, ClientMode, Page
from vetintake.domain.entities.pet import EuthanasiaDetails, ExistingPet, PetIntake, PetRecord, Species
from vetintake.domain.entities.provider import Provider
from vetintake.domain.entities.urgency import Urgency


@dataclass(frozen=True)
class ContactInfo:
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    can_we_text: str = ""  # "Yes" | "No" | ""


@dataclass(frozen=True)
class IntakeSession:
    """Single aggregate for one form fill. Replaced, never mutated, by the reducer."""

    is_authenticated: bool = False
    current_page: Page = Page.INTRO
    client_mode: ClientMode | None = None
    contact: ContactInfo = ContactInfo()
    have_used_services_before: str = ""  # "Yes" | "No" | ""

    # Pets
    selected_pet_ids: tuple[str, ...] = ()
    pet_records: Mapping[str, PetRecord] = field(default_factory=dict)
    pet_intake: Mapping[str, PetIntake] = field(default_factory=dict)
    pets_free_text: str = ""  # anonymous self-declared existing clients
    urgency: Urgency | None = None

    # Addresses
    address: Address | None = None
    new_address: Address | None = None
    mailing_address: Address | None = None
    mailing_address_different: str = ""
    moved_since_last_visit: str = ""

    # History and household
    previous_veterinary_practices: str = ""
    okay_to_contact_previous_vets: str = ""
    pet_behavior_at_previous_visits: str = ""
    other_persons_on_account: str = ""
    condo_apartment_info: str = ""

    # Legacy euthanasia branch; one flag per client kind
    looking_for_euthanasia: str = ""
    looking_for_euthanasia_new_client: str = ""
    service_area: str = ""
    euthanasia_urgency: str = ""
    euthanasia: EuthanasiaDetails = EuthanasiaDetails()

    # Scheduling
    preferred_doctor_text: str = ""
    time_preference_text: str = ""
    recommended_slots: tuple[CandidateSlot, ...] = ()
    selected_slot_preferences: Mapping[str, int] = field(default_factory=dict)
    none_of_these_work: bool = False
    service_minutes_used: int | None = None
    loading_slots: bool = False

    how_did_you_hear_about_us: str = ""
    anything_else: str = ""

    # Reference data loaded from collaborators
    appointment_types: tuple[AppointmentTypeDef, ...] = ()
    providers: tuple[Provider, ...] = ()
    client_pets: tuple[ExistingPet, ...] = ()
    pet_alerts: Mapping[str, str | None] = field(default_factory=dict)
    species: tuple[Species, ...] = ()
    zone_status: str = "unknown"  # "unknown", "serviced", "not_serviced", "error"
    profile_loaded: bool = False

    validation_errors: Mapping[str, str] = field(default_factory=dict)
    submission_error: str | None = None

    @property
    def is_existing_client(self) -> bool:
        if self.client_mode is not None:
            return self.client_mode is ClientMode.EXISTING
        return self.is_authenticated or self.have_used_services_before == YES

    @property
    def wants_legacy_euthanasia(self) -> bool:
        return YES in (self.looking_for_euthanasia, self.looking_for_euthanasia_new_client)

    @property
    def meeting_address(self) -> Address | None:
        """Address the doctor should drive to."""
        if self.is_existing_client and self.moved_since_last_visit == YES and self.new_address:
            return self.new_address
        return self.address

    def intake_for(self, pet_id: str) -> PetIntake:
        return self.pet_intake.get(pet_id, PetIntake())
