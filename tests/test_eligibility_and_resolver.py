from __future__ import annotations

from conftest import new_client_session
from vetintake.application.use_cases.appointment_types import options_for
from vetintake.application.use_cases.provider_resolver import preferred_label, resolve
from vetintake.application.use_cases.vet_eligibility import eligible, eligible_for_session, selected_type_names
from vetintake.domain.entities.appointment_type import AppointmentTypeDef
from vetintake.domain.entities.pet import PetIntake
from vetintake.domain.entities.provider import Provider
from vetintake.infrastructure.practice_api.mock_practice import DEFAULT_APPOINTMENT_TYPES, DEFAULT_PROVIDERS

SMITH, RIVERA = DEFAULT_PROVIDERS


def test_no_selected_types_keeps_every_provider():
    assert eligible(DEFAULT_PROVIDERS, set()) == [SMITH, RIVERA]


def test_provider_must_accept_every_selected_type():
    assert eligible(DEFAULT_PROVIDERS, {"Wellness"}) == [SMITH, RIVERA]
    assert eligible(DEFAULT_PROVIDERS, {"Wellness", "Euthanasia"}) == [SMITH]
    assert eligible(DEFAULT_PROVIDERS, {"Dental"}) == []


def test_eligibility_follows_the_pets_on_the_session():
    session = new_client_session(
        selected_pet_ids=("a", "b", "c"),
        pet_intake={
            "a": PetIntake(appointment_type_name="Sick"),
            "b": PetIntake(appointment_type_name="Recheck"),
            "c": PetIntake(),
        },
    )
    assert selected_type_names(session) == {"Sick", "Recheck"}
    assert eligible_for_session(session) == [SMITH]


def test_resolve_by_label_bare_name_or_partial_name():
    assert resolve("Dr. Jane Smith", DEFAULT_PROVIDERS) is SMITH
    assert resolve("Alex Rivera", DEFAULT_PROVIDERS) is RIVERA
    assert resolve("dr. rivera", DEFAULT_PROVIDERS) is None
    assert resolve("Rivera", DEFAULT_PROVIDERS) is RIVERA
    assert resolve("Dr. Jane Smith, DVM", DEFAULT_PROVIDERS) is SMITH


def test_no_preference_and_blank_text_resolve_to_nobody():
    assert resolve("I have no preference", DEFAULT_PROVIDERS) is None
    assert resolve("I have no preference.", DEFAULT_PROVIDERS) is None
    assert resolve("", DEFAULT_PROVIDERS) is None
    assert resolve(None, DEFAULT_PROVIDERS) is None
    assert resolve("Dr. ", DEFAULT_PROVIDERS) is None


def test_exact_match_wins_over_containment():
    jo = Provider(id="3", name="Jo Ann")
    joann = Provider(id="4", name="Jo Anne")
    assert resolve("Dr. Jo Anne", (jo, joann)) is joann


def test_routing_id_prefers_pims_id():
    assert SMITH.routing_id == "101"
    assert Provider(id="9", name="Lee").routing_id == "9"
    assert preferred_label(SMITH) == "Dr. Jane Smith"


def test_new_patients_only_see_types_open_to_them_with_euthanasia_last():
    catalog = (
        AppointmentTypeDef(name="Euthanasia", pretty_name="Euthanasia"),
        *DEFAULT_APPOINTMENT_TYPES[:2],
        AppointmentTypeDef(name="Recheck", pretty_name="Recheck", new_patient_allowed=False),
        AppointmentTypeDef(name="Internal", pretty_name="Internal", show_in_intake_form=False),
    )
    assert [t.name for t in options_for(catalog, is_new_patient=True)] == ["Wellness", "Sick", "Euthanasia"]
    assert [t.name for t in options_for(catalog, is_new_patient=False)] == ["Wellness", "Sick", "Recheck", "Euthanasia"]
