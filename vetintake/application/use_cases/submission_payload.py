from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Sequence

from vetintake.application.use_cases.appointment_types import find_type, is_euthanasia_type
from vetintake.application.use_cases.provider_resolver import resolve
from vetintake.application.use_cases.vet_eligibility import eligible_for_session
from vetintake.domain.entities.address import Address
from vetintake.domain.entities.candidate_slot import CandidateSlot
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.pages import YES
from vetintake.domain.entities.pet import ExistingPet, NewPet, PetIntake


def build(session: IntakeSession, submitted_at: datetime | None = None) -> dict[str, Any]:
    """Canonical request body for POST /public/appointments/form."""
    submitted_at = submitted_at or datetime.now(timezone.utc)
    is_existing = session.is_existing_client
    is_euthanasia = is_euthanasia_request(session)
    doctor = resolve(session.preferred_doctor_text, eligible_for_session(session))
    preferences = build_date_time_preferences(session.selected_slot_preferences, session.recommended_slots)

    payload: dict[str, Any] = {
        "clientType": "existing" if is_existing else "new",
        "isLoggedIn": session.is_authenticated,
        "email": session.contact.email.strip(),
        "fullName": {
            "first": session.contact.first_name.strip(),
            "last": session.contact.last_name.strip(),
        },
        "phoneNumber": session.contact.phone.strip(),
        "canWeText": session.contact.can_we_text or None,
        "physicalAddress": _address(authoritative_address(session)),
        "mailingAddress": _address(mailing_address(session)),
        "pets": [_pet(session, pet_id) for pet_id in session.selected_pet_ids] or None,
        "petInfoText": session.pets_free_text or None if not session.is_authenticated else None,
        "otherPersonsOnAccount": session.other_persons_on_account or None,
        "condoApartmentInfo": session.condo_apartment_info or None,
        "previousVeterinaryPractices": session.previous_veterinary_practices or None,
        "okayToContactPreviousVets": session.okay_to_contact_previous_vets or None,
        "petBehaviorAtPreviousVisits": session.pet_behavior_at_previous_visits or None,
        "appointmentType": "euthanasia" if is_euthanasia else "regular_visit",
        "isEuthanasia": is_euthanasia,
        "howSoon": session.urgency.value if session.urgency else None,
        "preferredDoctor": session.preferred_doctor_text or None,
        "doctorId": doctor.routing_id if doctor else None,
        "doctorName": doctor.name if doctor else None,
        "serviceArea": session.service_area or None,
        "preferredDateTime": session.time_preference_text or None,
        "selectedDateTimePreferences": preferences or None,
        "noneOfWorkForMe": session.none_of_these_work,
        "serviceMinutes": session.service_minutes_used if preferences else None,
        "howDidYouHearAboutUs": session.how_did_you_hear_about_us or None,
        "anythingElse": session.anything_else or None,
        "submittedAt": submitted_at.isoformat(),
        "formFlow": {
            "startedAsLoggedIn": session.is_authenticated,
            "startedAsExistingClient": session.have_used_services_before == YES,
        },
    }

    if session.wants_legacy_euthanasia:
        details = session.euthanasia
        payload.update(
            {
                "euthanasiaReason": details.reason or None,
                "beenToVetLastThreeMonths": details.recent_vet_visit or None,
                "interestedInOtherOptions": details.interest_in_alternatives or None,
                "aftercarePreference": details.aftercare or None,
                "urgency": session.euthanasia_urgency or None,
            }
        )

    return strip_unset(payload)


def is_euthanasia_request(session: IntakeSession) -> bool:
    if session.wants_legacy_euthanasia:
        return True
    return any(
        is_euthanasia_type(session.intake_for(pet_id).appointment_type_name)
        for pet_id in session.selected_pet_ids
    )


def authoritative_address(session: IntakeSession) -> Address | None:
    """Entered address for new clients; address on file unless an existing client moved."""
    if not session.is_existing_client:
        return session.address
    return session.meeting_address


def mailing_address(session: IntakeSession) -> Address | None:
    if session.mailing_address_different == YES:
        return session.mailing_address
    return None


def build_date_time_preferences(
    selected: Mapping[str, int],
    recommended: Sequence[CandidateSlot],
) -> list[dict[str, Any]]:
    """Ranked picks, best first. A pick whose slot is gone shows its ISO string."""
    displays = {slot.iso: slot.display for slot in recommended}
    preferences = [
        {"preference": rank, "dateTime": iso, "display": displays.get(iso, iso)}
        for iso, rank in selected.items()
    ]
    return sorted(preferences, key=lambda p: p["preference"])


def strip_unset(value: Any) -> Any:
    """Drop None-valued keys at every depth."""
    if isinstance(value, dict):
        return {k: strip_unset(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [strip_unset(v) for v in value]
    return value


def _address(address: Address | None) -> dict[str, Any] | None:
    if address is None:
        return None
    return {
        "line1": address.line1,
        "line2": address.line2 or None,
        "city": address.city,
        "state": address.state,
        "zip": address.zip,
        "country": address.country or "US",
    }


def _pet(session: IntakeSession, pet_id: str) -> dict[str, Any]:
    record = session.pet_records.get(pet_id)
    intake = session.intake_for(pet_id)
    if isinstance(record, ExistingPet):
        pet: dict[str, Any] = {
            "id": record.id,
            "dbId": record.db_id,
            "clientId": record.client_id,
            "name": record.name,
            "species": record.species,
            "breed": record.breed,
            "dob": record.dob,
            "primaryProviderName": record.primary_provider_name,
            "subscription": record.subscription,
            "alerts": session.pet_alerts.get(pet_id),
            "isNewPet": False,
        }
    elif isinstance(record, NewPet):
        pet = {
            "id": record.id,
            "name": record.name,
            "speciesId": record.species_id,
            "speciesOther": record.species_other or None,
            "breedId": record.breed_id,
            "age": record.age,
            "sex": record.sex,
            "spayedNeutered": record.spayed_neutered,
            "weight": record.weight,
            "color": record.color,
            "behaviorNotes": record.behavior_notes or None,
            "needsCalmingMedications": record.needs_calming_medications or None,
            "hasCalmingMedications": record.has_calming_medications or None,
            "needsMuzzleOrSpecialHandling": record.needs_muzzle_or_special_handling or None,
            "isNewPet": True,
        }
    else:
        pet = {"id": pet_id}
    pet["intake"] = _intake(session, intake)
    return pet


def _intake(session: IntakeSession, intake: PetIntake) -> dict[str, Any]:
    definition = find_type(session.appointment_types, intake.appointment_type_name)
    out: dict[str, Any] = {
        "appointmentType": intake.appointment_type_name or None,
        "appointmentTypeName": definition.pretty_name if definition else None,
        "details": intake.details or None,
    }
    if is_euthanasia_type(intake.appointment_type_name) and intake.euthanasia is not None:
        out["euthanasia"] = {
            "reason": intake.euthanasia.reason or None,
            "recentVetVisit": intake.euthanasia.recent_vet_visit or None,
            "interestInAlternatives": intake.euthanasia.interest_in_alternatives or None,
            "aftercare": intake.euthanasia.aftercare or None,
        }
    return out
