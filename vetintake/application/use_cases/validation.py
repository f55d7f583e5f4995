from __future__ import annotations

import re

from vetintake.application.use_cases.appointment_types import find_type, is_euthanasia_type
from vetintake.application.use_cases.provider_resolver import resolve
from vetintake.application.use_cases.slot_recommendation import has_euthanasia_pet
from vetintake.application.use_cases.vet_eligibility import eligible_for_session
from vetintake.domain.entities.address import Address
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.pages import NO_PREFERENCE, SERVICE_AREAS, YES, Page
from vetintake.domain.entities.pet import OTHER_SPECIES, NewPet

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Appointment types whose name or display name contains one of these need a description.
DETAIL_REQUIRED_KEYWORDS = (
    "wellness",
    "illness",
    "sick",
    "recheck",
    "re-check",
    "follow up",
    "follow-up",
    "consult",
    "behavior",
    "other",
)

ValidationErrors = dict[str, str]


def validate(page: Page, session: IntakeSession) -> ValidationErrors:
    """Required and conditional fields of one page. Never mutates the session."""
    errors: ValidationErrors = {}

    if page is Page.INTRO:
        if not session.is_authenticated:
            _validate_intro(session, errors)
    elif page is Page.NEW_CLIENT:
        _require_address(session.address, "physicalAddress", errors)
        if session.mailing_address_different == YES:
            _require_address(session.mailing_address, "mailingAddress", errors)
        _require(session.previous_veterinary_practices, "previousVeterinaryPractices",
                 "Previous veterinary practices are required", errors)
        _require(session.okay_to_contact_previous_vets, "okayToContactPreviousVets", "Please select an option", errors)
    elif page is Page.NEW_CLIENT_PET_INFO:
        if not session.selected_pet_ids:
            errors["pets"] = "Please add at least one pet"
        _validate_pets(session, errors)
        _require_urgency(session, errors)
    elif page is Page.EXISTING_CLIENT:
        _require(session.contact.phone, "bestPhoneNumber", "Phone number is required", errors)
        _require(session.moved_since_last_visit, "movedSinceLastVisit", "Please select an option", errors)
        if session.moved_since_last_visit == YES:
            _require_address(session.new_address, "newPhysicalAddress", errors)
        if session.mailing_address_different == YES:
            _require_address(session.mailing_address, "mailingAddress", errors)
    elif page is Page.EXISTING_CLIENT_PETS:
        if not session.selected_pet_ids:
            if session.is_authenticated:
                errors["selectedPetIds"] = "Please select at least one pet"
            elif not session.pets_free_text.strip():
                errors["whatPets"] = "Pet information is required"
        _validate_pets(session, errors)
        _require_urgency(session, errors)
    elif page is Page.EUTHANASIA_INTRO:
        details = session.euthanasia
        _require(details.reason, "euthanasiaReason", "Please let us know what is going on with your pet", errors)
        _require(details.recent_vet_visit, "beenToVetLastThreeMonths",
                 "Please let us know if your pet has been to the veterinarian in the last three months", errors)
        _require(details.interest_in_alternatives, "interestedInOtherOptions", "Please select an option", errors)
    elif page is Page.EUTHANASIA_SERVICE_AREA:
        if session.service_area not in SERVICE_AREAS:
            errors["serviceArea"] = "Please select a service area"
    elif page in (Page.EUTHANASIA_PORTLAND, Page.EUTHANASIA_HIGH_PEAKS):
        _require(session.euthanasia_urgency, "euthanasiaUrgency", "Please select how urgently you need help", errors)
    elif page is Page.EUTHANASIA_CONTINUED:
        _require(session.time_preference_text, "preferredDateTime", "Please enter your preferred date and time", errors)
        _require(session.euthanasia.aftercare, "aftercarePreference", "Please select an aftercare preference", errors)
    elif page is Page.REQUEST_VISIT_CONTINUED:
        _validate_request_visit(session, errors)

    return errors


def needs_free_text_preference(session: IntakeSession) -> bool:
    """Whether the client has to type their preferred times instead of ranking slots."""
    if session.none_of_these_work or has_euthanasia_pet(session):
        return True
    if session.urgency is not None and session.urgency.needs_manual_scheduling:
        return True
    return not session.recommended_slots and not session.loading_slots


def detail_required(type_name: str, pretty_name: str | None = None) -> bool:
    haystack = f"{type_name} {pretty_name or ''}".lower()
    return any(keyword in haystack for keyword in DETAIL_REQUIRED_KEYWORDS)


def _validate_intro(session: IntakeSession, errors: ValidationErrors) -> None:
    contact = session.contact
    if not contact.email.strip():
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.match(contact.email.strip()):
        errors["email"] = "Please enter a valid email address"
    _require(contact.first_name, "fullName.first", "First name is required", errors)
    _require(contact.last_name, "fullName.last", "Last name is required", errors)
    _require(contact.phone, "phone", "Phone number is required", errors)
    _require(contact.can_we_text, "canWeText", "Please let us know if we can text you", errors)
    _require(session.have_used_services_before, "haveUsedServicesBefore", "Please select an option", errors)


def _validate_request_visit(session: IntakeSession, errors: ValidationErrors) -> None:
    doctor_text = session.preferred_doctor_text.strip()
    if not doctor_text:
        errors["preferredDoctor"] = "Please select a preferred doctor"
    elif (
        doctor_text.rstrip(".") != NO_PREFERENCE
        and session.providers
        and resolve(doctor_text, eligible_for_session(session)) is None
    ):
        errors["preferredDoctor"] = "Please choose a doctor from the list"

    if needs_free_text_preference(session):
        _require(session.time_preference_text, "preferredDateTime", "Please enter your preferred date and time", errors)
    elif session.loading_slots and not session.recommended_slots:
        errors["selectedDateTimeSlots"] = "Please wait while we look for available times"
    elif not session.selected_slot_preferences and not session.none_of_these_work:
        errors["selectedDateTimeSlots"] = (
            "Please select your preferred times or indicate that none of these work for you"
        )

    for pet_id in session.selected_pet_ids:
        _validate_euthanasia_intake(session, pet_id, errors)


def _validate_pets(session: IntakeSession, errors: ValidationErrors) -> None:
    for pet_id in session.selected_pet_ids:
        record = session.pet_records.get(pet_id)
        if isinstance(record, NewPet):
            _validate_new_pet(record, errors)
        _validate_intake(session, pet_id, errors)


def _validate_new_pet(pet: NewPet, errors: ValidationErrors) -> None:
    prefix = f"pets.{pet.id}"
    _require(pet.name, f"{prefix}.name", "Pet name is required", errors)
    _require(pet.species_id, f"{prefix}.species", "Species is required", errors)
    if pet.species_id == OTHER_SPECIES:
        _require(pet.species_other, f"{prefix}.speciesOther", "Please tell us the species", errors)
    _require(pet.age, f"{prefix}.age", "Age is required", errors)
    _require(pet.spayed_neutered, f"{prefix}.spayedNeutered", "Please select an option", errors)
    _require(pet.sex, f"{prefix}.sex", "Sex is required", errors)
    _require(pet.breed_id, f"{prefix}.breed", "Breed is required", errors)
    _require(pet.color, f"{prefix}.color", "Color is required", errors)
    _require(pet.weight, f"{prefix}.weight", "Weight is required", errors)
    _require(pet.needs_calming_medications, f"{prefix}.needsCalmingMedications", "Please select an option", errors)
    if pet.needs_calming_medications == YES:
        _require(pet.has_calming_medications, f"{prefix}.hasCalmingMedications", "Please select an option", errors)
    _require(
        pet.needs_muzzle_or_special_handling,
        f"{prefix}.needsMuzzleOrSpecialHandling",
        "Please select an option",
        errors,
    )


def _validate_intake(session: IntakeSession, pet_id: str, errors: ValidationErrors) -> None:
    intake = session.intake_for(pet_id)
    prefix = f"petIntake.{pet_id}"
    if not intake.appointment_type_name:
        errors[f"{prefix}.appointmentType"] = "Please choose the type of visit"
        return
    if is_euthanasia_type(intake.appointment_type_name):
        _validate_euthanasia_intake(session, pet_id, errors)
        return
    definition = find_type(session.appointment_types, intake.appointment_type_name)
    pretty_name = definition.pretty_name if definition else None
    if detail_required(intake.appointment_type_name, pretty_name):
        _require(intake.details, f"{prefix}.details", "Please tell us more about this visit", errors)


def _validate_euthanasia_intake(session: IntakeSession, pet_id: str, errors: ValidationErrors) -> None:
    intake = session.intake_for(pet_id)
    if not is_euthanasia_type(intake.appointment_type_name):
        return
    details = intake.euthanasia
    prefix = f"petIntake.{pet_id}.euthanasia"
    _require(details.reason if details else "", f"{prefix}.reason", "Please let us know what is going on", errors)
    _require(details.recent_vet_visit if details else "", f"{prefix}.recentVetVisit",
             "Please let us know about recent veterinary visits", errors)
    _require(details.interest_in_alternatives if details else "", f"{prefix}.interestInAlternatives",
             "Please select an option", errors)
    _require(details.aftercare if details else "", f"{prefix}.aftercare",
             "Please select an aftercare preference", errors)


def _require_urgency(session: IntakeSession, errors: ValidationErrors) -> None:
    if session.urgency is None:
        errors["howSoon"] = "Please let us know how soon your pet needs to be seen"


def _require_address(address: Address | None, prefix: str, errors: ValidationErrors) -> None:
    address = address or Address()
    _require(address.line1, f"{prefix}.line1", "Street address is required", errors)
    _require(address.city, f"{prefix}.city", "City is required", errors)
    _require(address.state, f"{prefix}.state", "State is required", errors)
    _require(address.zip, f"{prefix}.zip", "Zip code is required", errors)


def _require(value: str | None, key: str, message: str, errors: ValidationErrors) -> None:
    if not (value or "").strip():
        errors[key] = message
