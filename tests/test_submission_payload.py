from __future__ import annotations

from datetime import datetime, timezone

from conftest import HOME, SLOT_A, SLOT_B, SLOT_C, new_client_session
from vetintake.application.use_cases.submission_payload import (
    build,
    build_date_time_preferences,
    is_euthanasia_request,
    strip_unset,
)
from vetintake.domain.entities.address import Address
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.pages import NO, PORTLAND_AREA, YES, ClientMode
from vetintake.domain.entities.pet import EuthanasiaDetails, ExistingPet, PetIntake
from vetintake.domain.entities.urgency import Urgency
from vetintake.infrastructure.practice_api.mock_practice import DEFAULT_PROVIDERS

SUBMITTED_AT = datetime(2024, 6, 1, 14, 0, tzinfo=timezone.utc)
MOVED = Address(line1="8 Ridge Rd", city="Bethel", state="ME", zip="04217")


def test_new_client_with_ranked_slots():
    session = new_client_session(
        urgency=Urgency.SOON,
        preferred_doctor_text="Dr. Jane Smith",
        recommended_slots=(SLOT_A, SLOT_B, SLOT_C),
        selected_slot_preferences={SLOT_C.iso: 1, SLOT_A.iso: 2},
        service_minutes_used=40,
        previous_veterinary_practices="Coastal Vet",
        okay_to_contact_previous_vets=YES,
    )

    payload = build(session, submitted_at=SUBMITTED_AT)

    assert payload["clientType"] == "new"
    assert payload["isLoggedIn"] is False
    assert payload["fullName"] == {"first": "Sam", "last": "Lee"}
    assert payload["physicalAddress"] == {
        "line1": "12 Harbor Rd",
        "city": "Portland",
        "state": "ME",
        "zip": "04101",
        "country": "US",
    }
    assert "mailingAddress" not in payload
    assert payload["appointmentType"] == "regular_visit"
    assert payload["isEuthanasia"] is False
    assert payload["howSoon"] == Urgency.SOON.value
    assert payload["doctorId"] == "101"
    assert payload["doctorName"] == "Jane Smith"
    assert payload["selectedDateTimePreferences"] == [
        {"preference": 1, "dateTime": SLOT_C.iso, "display": SLOT_C.display},
        {"preference": 2, "dateTime": SLOT_A.iso, "display": SLOT_A.display},
    ]
    assert payload["noneOfWorkForMe"] is False
    assert payload["serviceMinutes"] == 40
    assert payload["submittedAt"] == "2024-06-01T14:00:00+00:00"
    assert payload["formFlow"] == {"startedAsLoggedIn": False, "startedAsExistingClient": False}

    (pet,) = payload["pets"]
    assert pet["isNewPet"] is True
    assert pet["name"] == "Biscuit"
    assert pet["intake"] == {
        "appointmentType": "Wellness",
        "appointmentTypeName": "Wellness Exam",
        "details": "Annual exam",
    }


def test_payload_never_contains_none():
    def has_none(value):
        if isinstance(value, dict):
            return any(v is None or has_none(v) for v in value.values())
        if isinstance(value, list):
            return any(has_none(v) for v in value)
        return False

    assert not has_none(build(IntakeSession(), submitted_at=SUBMITTED_AT))
    assert not has_none(build(new_client_session(), submitted_at=SUBMITTED_AT))


def test_free_text_preference_without_rankings():
    session = new_client_session(
        preferred_doctor_text="I have no preference",
        time_preference_text="Any weekday after 3",
        none_of_these_work=True,
        service_minutes_used=40,
    )
    payload = build(session, submitted_at=SUBMITTED_AT)
    assert payload["preferredDateTime"] == "Any weekday after 3"
    assert payload["noneOfWorkForMe"] is True
    assert payload["preferredDoctor"] == "I have no preference"
    assert "doctorId" not in payload
    assert "selectedDateTimePreferences" not in payload
    assert "serviceMinutes" not in payload


def test_existing_client_who_moved_sends_new_address():
    rex = ExistingPet(id="p1", name="Rex", species="Dog", db_id="55", client_id="900")
    session = IntakeSession(
        is_authenticated=True,
        client_mode=ClientMode.EXISTING,
        address=HOME,
        new_address=MOVED,
        moved_since_last_visit=YES,
        mailing_address_different=YES,
        mailing_address=HOME,
        selected_pet_ids=("p1",),
        pet_records={"p1": rex},
        pet_intake={"p1": PetIntake(appointment_type_name="Sick", details="Coughing")},
        pet_alerts={"p1": "Nervous with strangers"},
        pets_free_text="ignored for signed-in clients",
    )

    payload = build(session, submitted_at=SUBMITTED_AT)

    assert payload["clientType"] == "existing"
    assert payload["physicalAddress"]["line1"] == "8 Ridge Rd"
    assert payload["mailingAddress"]["line1"] == "12 Harbor Rd"
    assert "petInfoText" not in payload
    (pet,) = payload["pets"]
    assert pet["isNewPet"] is False
    assert pet["dbId"] == "55"
    assert pet["alerts"] == "Nervous with strangers"
    assert pet["intake"]["details"] == "Coughing"


def test_existing_client_who_did_not_move_keeps_address_on_file():
    session = IntakeSession(
        client_mode=ClientMode.EXISTING,
        address=HOME,
        new_address=MOVED,
        moved_since_last_visit=NO,
        pets_free_text="Rex, a beagle",
    )
    payload = build(session, submitted_at=SUBMITTED_AT)
    assert payload["physicalAddress"]["line1"] == "12 Harbor Rd"
    assert payload["petInfoText"] == "Rex, a beagle"


def test_per_pet_euthanasia_marks_the_request():
    rex = ExistingPet(id="p1", name="Rex")
    details = EuthanasiaDetails(reason="Failing kidneys", recent_vet_visit=YES, interest_in_alternatives=NO, aftercare="Cremation")
    session = IntakeSession(
        is_authenticated=True,
        selected_pet_ids=("p1",),
        pet_records={"p1": rex},
        pet_intake={"p1": PetIntake(appointment_type_name="Euthanasia", euthanasia=details)},
        providers=DEFAULT_PROVIDERS,
    )
    payload = build(session, submitted_at=SUBMITTED_AT)
    assert is_euthanasia_request(session)
    assert payload["appointmentType"] == "euthanasia"
    assert payload["isEuthanasia"] is True
    assert payload["pets"][0]["intake"]["euthanasia"] == {
        "reason": "Failing kidneys",
        "recentVetVisit": YES,
        "interestInAlternatives": NO,
        "aftercare": "Cremation",
    }
    assert "euthanasiaReason" not in payload


def test_legacy_euthanasia_branch_adds_top_level_fields():
    session = IntakeSession(
        looking_for_euthanasia=YES,
        service_area=PORTLAND_AREA,
        euthanasia_urgency="Within a few days",
        euthanasia=EuthanasiaDetails(reason="Old age", recent_vet_visit=NO, aftercare="Home burial"),
        time_preference_text="Saturday morning",
    )
    payload = build(session, submitted_at=SUBMITTED_AT)
    assert payload["appointmentType"] == "euthanasia"
    assert payload["euthanasiaReason"] == "Old age"
    assert payload["beenToVetLastThreeMonths"] == NO
    assert payload["aftercarePreference"] == "Home burial"
    assert payload["urgency"] == "Within a few days"
    assert payload["serviceArea"] == PORTLAND_AREA
    assert "interestedInOtherOptions" not in payload


def test_preferences_for_vanished_slots_fall_back_to_iso():
    prefs = build_date_time_preferences({SLOT_B.iso: 2, "2024-07-01T09:00:00-04:00": 1}, (SLOT_B,))
    assert prefs == [
        {"preference": 1, "dateTime": "2024-07-01T09:00:00-04:00", "display": "2024-07-01T09:00:00-04:00"},
        {"preference": 2, "dateTime": SLOT_B.iso, "display": SLOT_B.display},
    ]


def test_strip_unset_recurses():
    assert strip_unset({"a": None, "b": {"c": None, "d": 1}, "e": [{"f": None}]}) == {"b": {"d": 1}, "e": [{}]}


def test_new_client_euthanasia_flag_marks_the_request():
    session = new_client_session(
        looking_for_euthanasia_new_client=YES,
        euthanasia=EuthanasiaDetails(reason="Failing kidneys"),
        time_preference_text="Any afternoon",
    )
    assert is_euthanasia_request(session)
    payload = build(session, submitted_at=SUBMITTED_AT)
    assert payload["isEuthanasia"] is True
    assert payload["euthanasiaReason"] == "Failing kidneys"


def test_doctor_id_only_for_doctors_taking_every_selected_type():
    pet_id = new_client_session().selected_pet_ids[0]
    session = new_client_session(
        preferred_doctor_text="Dr. Alex Rivera",
        pet_intake={pet_id: PetIntake(appointment_type_name="Recheck", details="Stitches out")},
        time_preference_text="Any afternoon",
    )
    payload = build(session, submitted_at=SUBMITTED_AT)
    assert payload["preferredDoctor"] == "Dr. Alex Rivera"
    assert "doctorId" not in payload
    assert "doctorName" not in payload
