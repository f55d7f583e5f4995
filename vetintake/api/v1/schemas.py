from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field

from vetintake.domain.entities.address import Address
from vetintake.domain.entities.intake_events import (
    AddressChanged,
    AnswerChanged,
    ContactChanged,
    DoctorChanged,
    IntakeEvent,
    NewPetSaved,
    NoneOfTheseWorkChanged,
    PetDeselected,
    PetIntakeChanged,
    PetSelected,
    SlotToggled,
    UrgencyChanged,
)
from vetintake.domain.entities.intake_session import ContactInfo
from vetintake.domain.entities.pet import EuthanasiaDetails, NewPet, PetIntake
from vetintake.domain.entities.urgency import Urgency


class CreateSessionSchema(BaseModel):
    is_authenticated: bool = False


class AddressSchema(BaseModel):
    line1: str = ""
    line2: str | None = None
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = "US"

    def to_entity(self) -> Address:
        return Address(**self.model_dump())


class EuthanasiaSchema(BaseModel):
    reason: str = ""
    recent_vet_visit: str = ""
    interest_in_alternatives: str = ""
    aftercare: str = ""


class NewPetSchema(BaseModel):
    id: str
    name: str = ""
    species_id: str = ""
    species_other: str = ""
    breed_id: str = ""
    age: str = ""
    sex: str = ""
    spayed_neutered: str = ""
    weight: str = ""
    color: str = ""
    behavior_notes: str = ""
    needs_calming_medications: str = ""
    has_calming_medications: str = ""
    needs_muzzle_or_special_handling: str = ""


class AnswerEventSchema(BaseModel):
    type: Literal["answer"]
    field: str
    value: str | None = None

    def to_event(self) -> IntakeEvent:
        return AnswerChanged(field=self.field, value=self.value)


class ContactEventSchema(BaseModel):
    type: Literal["contact"]
    email: str = ""
    first_name: str = ""
    last_name: str = ""
    phone: str = ""
    can_we_text: str = ""

    def to_event(self) -> IntakeEvent:
        return ContactChanged(contact=ContactInfo(**self.model_dump(exclude={"type"})))


class AddressEventSchema(BaseModel):
    type: Literal["address"]
    kind: Literal["address", "new_address", "mailing_address"] = "address"
    address: AddressSchema | None = None

    def to_event(self) -> IntakeEvent:
        return AddressChanged(kind=self.kind, address=self.address.to_entity() if self.address else None)


class PetSelectionEventSchema(BaseModel):
    type: Literal["pet_selection"]
    pet_id: str
    selected: bool = True

    def to_event(self) -> IntakeEvent:
        return PetSelected(pet_id=self.pet_id) if self.selected else PetDeselected(pet_id=self.pet_id)


class NewPetEventSchema(BaseModel):
    type: Literal["new_pet"]
    pet: NewPetSchema

    def to_event(self) -> IntakeEvent:
        return NewPetSaved(pet=NewPet(**self.pet.model_dump()))


class PetIntakeEventSchema(BaseModel):
    type: Literal["pet_intake"]
    pet_id: str
    appointment_type_name: str = ""
    details: str = ""
    euthanasia: EuthanasiaSchema | None = None

    def to_event(self) -> IntakeEvent:
        euthanasia = EuthanasiaDetails(**self.euthanasia.model_dump()) if self.euthanasia else None
        return PetIntakeChanged(
            pet_id=self.pet_id,
            intake=PetIntake(
                appointment_type_name=self.appointment_type_name,
                details=self.details,
                euthanasia=euthanasia,
            ),
        )


class UrgencyEventSchema(BaseModel):
    type: Literal["urgency"]
    urgency: str | None = None

    def to_event(self) -> IntakeEvent:
        return UrgencyChanged(urgency=Urgency.parse(self.urgency))


class DoctorEventSchema(BaseModel):
    type: Literal["doctor"]
    text: str = ""

    def to_event(self) -> IntakeEvent:
        return DoctorChanged(text=self.text)


class SlotEventSchema(BaseModel):
    type: Literal["slot"]
    iso: str
    selected: bool = True

    def to_event(self) -> IntakeEvent:
        return SlotToggled(iso=self.iso, selected=self.selected)


class NoneOfTheseWorkEventSchema(BaseModel):
    type: Literal["none_of_these_work"]
    value: bool = True

    def to_event(self) -> IntakeEvent:
        return NoneOfTheseWorkChanged(value=self.value)


EventSchema = Annotated[
    Union[
        AnswerEventSchema,
        ContactEventSchema,
        AddressEventSchema,
        PetSelectionEventSchema,
        NewPetEventSchema,
        PetIntakeEventSchema,
        UrgencyEventSchema,
        DoctorEventSchema,
        SlotEventSchema,
        NoneOfTheseWorkEventSchema,
    ],
    Field(discriminator="type"),
]


class SlotSchema(BaseModel):
    iso: str
    display: str
    preference: int | None = None


class OptionSchema(BaseModel):
    value: str
    label: str


class PetSummarySchema(BaseModel):
    id: str
    name: str
    species: str | None = None
    alerts: str | None = None


class SessionSchema(BaseModel):
    session_id: str
    current_page: str
    has_previous: bool
    is_existing_client: bool
    validation_errors: dict[str, str] = Field(default_factory=dict)
    submission_error: str | None = None
    zone_status: str = "unknown"
    zone_message: str | None = None
    appointment_types: list[OptionSchema] = Field(default_factory=list)
    doctors: list[OptionSchema] = Field(default_factory=list)
    client_pets: list[PetSummarySchema] = Field(default_factory=list)
    selected_pet_ids: list[str] = Field(default_factory=list)
    loading_slots: bool = False
    recommended_slots: list[SlotSchema] = Field(default_factory=list)
    none_of_these_work: bool = False
    needs_free_text_preference: bool = False
    service_minutes: int | None = None


class TransitionSchema(BaseModel):
    action: str
    from_page: str
    to_page: str | None = None
    session: SessionSchema


class BreedSchema(BaseModel):
    id: str
    name: str
