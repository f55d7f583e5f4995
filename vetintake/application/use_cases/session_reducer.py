from __future__ import annotations

from dataclasses import replace
from typing import Mapping

from vetintake.application.use_cases.appointment_types import is_euthanasia_type
from vetintake.domain.entities.candidate_slot import CandidateSlot
from vetintake.domain.entities.intake_events import (
    AddressChanged,
    AnswerChanged,
    ClientProfileLoaded,
    ContactChanged,
    DoctorChanged,
    IntakeEvent,
    NewPetSaved,
    NoneOfTheseWorkChanged,
    PetAlertsLoaded,
    PetDeselected,
    PetIntakeChanged,
    PetSelected,
    RecommendationsReplaced,
    ReferenceDataLoaded,
    SlotsLoading,
    SlotToggled,
    UrgencyChanged,
    ZoneStatusChanged,
)
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.pages import YES, ClientMode, Page
from vetintake.domain.entities.pet import EuthanasiaDetails, PetIntake

TEXT_ANSWERS = frozenset(
    {
        "have_used_services_before",
        "pets_free_text",
        "mailing_address_different",
        "moved_since_last_visit",
        "previous_veterinary_practices",
        "okay_to_contact_previous_vets",
        "pet_behavior_at_previous_visits",
        "other_persons_on_account",
        "condo_apartment_info",
        "looking_for_euthanasia",
        "looking_for_euthanasia_new_client",
        "service_area",
        "euthanasia_urgency",
        "time_preference_text",
        "how_did_you_hear_about_us",
        "anything_else",
    }
)
EUTHANASIA_ANSWERS = frozenset({"reason", "recent_vet_visit", "interest_in_alternatives", "aftercare"})
ADDRESS_KINDS = frozenset({"address", "new_address", "mailing_address"})


def apply_event(session: IntakeSession, event: IntakeEvent) -> IntakeSession:
    """Return the session after one user or collaborator event. Never mutates its input."""
    if isinstance(event, AnswerChanged):
        return _apply_answer(session, event)
    if isinstance(event, ContactChanged):
        return replace(session, contact=event.contact)
    if isinstance(event, AddressChanged):
        return _apply_address(session, event)
    if isinstance(event, PetSelected):
        return _select_pet(session, event.pet_id)
    if isinstance(event, PetDeselected):
        return _deselect_pet(session, event.pet_id)
    if isinstance(event, NewPetSaved):
        return _save_new_pet(session, event)
    if isinstance(event, PetIntakeChanged):
        return _apply_intake(session, event)
    if isinstance(event, UrgencyChanged):
        return replace(session, urgency=event.urgency, validation_errors=_without(session.validation_errors, "howSoon"))
    if isinstance(event, DoctorChanged):
        return replace(
            session,
            preferred_doctor_text=event.text,
            validation_errors=_without(session.validation_errors, "preferredDoctor"),
        )
    if isinstance(event, SlotToggled):
        return toggle_slot(session, event.iso, event.selected)
    if isinstance(event, NoneOfTheseWorkChanged):
        return set_none_of_these_work(session, event.value)
    if isinstance(event, RecommendationsReplaced):
        return replace_recommendations(session, event.slots, event.service_minutes)
    if isinstance(event, SlotsLoading):
        return replace(session, loading_slots=event.loading)
    if isinstance(event, ReferenceDataLoaded):
        return _apply_reference_data(session, event)
    if isinstance(event, ClientProfileLoaded):
        return _apply_profile(session, event)
    if isinstance(event, PetAlertsLoaded):
        return replace(session, pet_alerts={**session.pet_alerts, **event.alerts})
    if isinstance(event, ZoneStatusChanged):
        return replace(session, zone_status=event.status)
    raise ValueError(f"Unsupported event: {type(event).__name__}")


def toggle_slot(session: IntakeSession, iso: str, selected: bool) -> IntakeSession:
    """Rank a candidate slot (next free rank) or drop it and close the gap."""
    current = dict(session.selected_slot_preferences)
    if selected:
        if iso not in {s.iso for s in session.recommended_slots}:
            raise ValueError(f"Slot {iso} is not one of the recommended slots")
        if iso not in current:
            current[iso] = len(current) + 1
        return replace(
            session,
            selected_slot_preferences=current,
            none_of_these_work=False,
            validation_errors=_without(session.validation_errors, "selectedDateTimeSlots"),
        )

    removed = current.pop(iso, None)
    if removed is None:
        return session
    renumbered = {key: rank - 1 if rank > removed else rank for key, rank in current.items()}
    return replace(session, selected_slot_preferences=renumbered)


def set_none_of_these_work(session: IntakeSession, value: bool) -> IntakeSession:
    if value:
        return replace(session, none_of_these_work=True, selected_slot_preferences={})
    return replace(session, none_of_these_work=False)


def replace_recommendations(
    session: IntakeSession,
    slots: tuple[CandidateSlot, ...],
    service_minutes: int | None = None,
) -> IntakeSession:
    """Swap in a fresh recommendation; rankings of slots that disappeared are dropped."""
    still_offered = {s.iso for s in slots}
    kept = sorted(
        ((iso, rank) for iso, rank in session.selected_slot_preferences.items() if iso in still_offered),
        key=lambda item: item[1],
    )
    return replace(
        session,
        recommended_slots=tuple(slots),
        selected_slot_preferences={iso: index for index, (iso, _) in enumerate(kept, start=1)},
        service_minutes_used=service_minutes,
        loading_slots=False,
    )


def _apply_answer(session: IntakeSession, event: AnswerChanged) -> IntakeSession:
    value = "" if event.value is None else str(event.value)
    errors = _without(session.validation_errors, event.field)

    if event.field.startswith("euthanasia."):
        name = event.field.split(".", 1)[1]
        if name not in EUTHANASIA_ANSWERS:
            raise ValueError(f"Unknown euthanasia answer: {name}")
        return replace(session, euthanasia=replace(session.euthanasia, **{name: value}), validation_errors=errors)

    if event.field not in TEXT_ANSWERS:
        raise ValueError(f"Unknown answer field: {event.field}")

    updated = replace(session, **{event.field: value}, validation_errors=errors)
    if event.field == "have_used_services_before" and not session.is_authenticated:
        mode = ClientMode.EXISTING if value == YES else ClientMode.NEW if value else None
        updated = replace(updated, client_mode=mode)
    return updated


def _apply_address(session: IntakeSession, event: AddressChanged) -> IntakeSession:
    if event.kind not in ADDRESS_KINDS:
        raise ValueError(f"Unknown address kind: {event.kind}")
    updated = replace(session, **{event.kind: event.address})
    if updated.meeting_address != session.meeting_address:
        updated = replace(updated, zone_status="unknown")
    return updated


def _select_pet(session: IntakeSession, pet_id: str) -> IntakeSession:
    if pet_id in session.selected_pet_ids:
        return session
    record = session.pet_records.get(pet_id)
    if record is None:
        record = next((p for p in session.client_pets if p.id == pet_id), None)
    if record is None:
        raise ValueError(f"Unknown pet: {pet_id}")
    return replace(
        session,
        selected_pet_ids=session.selected_pet_ids + (pet_id,),
        pet_records={**session.pet_records, pet_id: record},
        pet_intake={**session.pet_intake, pet_id: session.pet_intake.get(pet_id, PetIntake())},
        validation_errors=_without(session.validation_errors, "selectedPetIds"),
    )


def _deselect_pet(session: IntakeSession, pet_id: str) -> IntakeSession:
    if pet_id not in session.selected_pet_ids:
        return session
    records = dict(session.pet_records)
    intake = dict(session.pet_intake)
    records.pop(pet_id, None)
    intake.pop(pet_id, None)
    return replace(
        session,
        selected_pet_ids=tuple(p for p in session.selected_pet_ids if p != pet_id),
        pet_records=records,
        pet_intake=intake,
    )


def _save_new_pet(session: IntakeSession, event: NewPetSaved) -> IntakeSession:
    pet = event.pet
    selected = session.selected_pet_ids
    if pet.id not in selected:
        selected = selected + (pet.id,)
    return replace(
        session,
        selected_pet_ids=selected,
        pet_records={**session.pet_records, pet.id: pet},
        pet_intake={**session.pet_intake, pet.id: session.pet_intake.get(pet.id, PetIntake())},
        validation_errors=_without(session.validation_errors, "pets"),
    )


def _apply_intake(session: IntakeSession, event: PetIntakeChanged) -> IntakeSession:
    if event.pet_id not in session.selected_pet_ids:
        raise ValueError(f"Pet {event.pet_id} is not selected")
    intake = event.intake
    if is_euthanasia_type(intake.appointment_type_name):
        if intake.euthanasia is None:
            intake = replace(intake, euthanasia=EuthanasiaDetails())
    elif intake.euthanasia is not None:
        intake = replace(intake, euthanasia=None)
    return replace(session, pet_intake={**session.pet_intake, event.pet_id: intake})


def _apply_reference_data(session: IntakeSession, event: ReferenceDataLoaded) -> IntakeSession:
    changes: dict[str, object] = {}
    if event.appointment_types is not None:
        changes["appointment_types"] = tuple(event.appointment_types)
    if event.providers is not None:
        changes["providers"] = tuple(event.providers)
    if event.species is not None:
        changes["species"] = tuple(event.species)
    return replace(session, **changes)


def _apply_profile(session: IntakeSession, event: ClientProfileLoaded) -> IntakeSession:
    contact = replace(
        session.contact,
        email=event.email or session.contact.email,
        first_name=event.first_name or session.contact.first_name,
        last_name=event.last_name or session.contact.last_name,
        phone=event.phone or session.contact.phone,
    )
    page = session.current_page
    if session.is_authenticated and page is Page.INTRO:
        page = Page.EXISTING_CLIENT
    return replace(
        session,
        client_pets=tuple(event.pets),
        contact=contact,
        address=event.address or session.address,
        new_address=session.new_address or event.address,
        preferred_doctor_text=session.preferred_doctor_text or (event.preferred_doctor_text or ""),
        have_used_services_before=YES,
        client_mode=ClientMode.EXISTING,
        profile_loaded=True,
        current_page=page,
    )


def _without(errors: Mapping[str, str], key: str) -> Mapping[str, str]:
    if key not in errors:
        return errors
    return {k: v for k, v in errors.items() if k != key}
