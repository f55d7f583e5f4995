from __future__ import annotations

from dataclasses import replace
from zoneinfo import ZoneInfo

import pytest

from vetintake.application.use_cases.enrichment import EnrichmentCoordinator
from vetintake.application.use_cases.intake_workflow import IntakeWorkflow
from vetintake.application.use_cases.slot_recommendation import SlotRecommendationEngine
from vetintake.domain.entities.address import Address
from vetintake.domain.entities.candidate_slot import CandidateSlot
from vetintake.domain.entities.intake_session import ContactInfo, IntakeSession
from vetintake.domain.entities.pages import NO, YES, ClientMode
from vetintake.domain.entities.pet import NewPet, PetIntake
from vetintake.infrastructure.practice_api.mock_practice import (
    DEFAULT_APPOINTMENT_TYPES,
    DEFAULT_PROVIDERS,
    MockAvailability,
    MockPracticeDirectory,
    MockPracticeGeo,
    MockSubmission,
)
from vetintake.infrastructure.store.memory_store import MemorySessionStore

PRACTICE_TZ = ZoneInfo("America/New_York")

HOME = Address(line1="12 Harbor Rd", city="Portland", state="ME", zip="04101", country="US")

SLOT_A = CandidateSlot(iso="2024-06-03T09:00:00-04:00", display="Mon, Jun 3 at 9:00 AM")
SLOT_B = CandidateSlot(iso="2024-06-04T10:30:00-04:00", display="Tue, Jun 4 at 10:30 AM")
SLOT_C = CandidateSlot(iso="2024-06-05T13:45:00-04:00", display="Wed, Jun 5 at 1:45 PM")


def complete_pet(pet_id: str = "new-1", **changes) -> NewPet:
    pet = NewPet(
        id=pet_id,
        name="Biscuit",
        species_id="1",
        breed_id="10",
        age="4",
        sex="Female",
        spayed_neutered=YES,
        weight="55",
        color="Yellow",
        needs_calming_medications=NO,
        needs_muzzle_or_special_handling=NO,
    )
    return replace(pet, **changes)


def new_client_session(**changes) -> IntakeSession:
    """Anonymous new client with valid contact details, one complete pet and a home address."""
    pet = complete_pet()
    session = IntakeSession(
        client_mode=ClientMode.NEW,
        have_used_services_before=NO,
        contact=ContactInfo(
            email="sam@example.com",
            first_name="Sam",
            last_name="Lee",
            phone="207-555-0100",
            can_we_text=YES,
        ),
        address=HOME,
        selected_pet_ids=(pet.id,),
        pet_records={pet.id: pet},
        pet_intake={pet.id: PetIntake(appointment_type_name="Wellness", details="Annual exam")},
        appointment_types=DEFAULT_APPOINTMENT_TYPES,
        providers=DEFAULT_PROVIDERS,
    )
    return replace(session, **changes)


@pytest.fixture
def directory() -> MockPracticeDirectory:
    return MockPracticeDirectory()


@pytest.fixture
def geo() -> MockPracticeGeo:
    return MockPracticeGeo()


@pytest.fixture
def routing() -> MockAvailability:
    return MockAvailability()


@pytest.fixture
def public() -> MockAvailability:
    return MockAvailability()


@pytest.fixture
def submission() -> MockSubmission:
    return MockSubmission()


@pytest.fixture
def engine(routing, public, geo) -> SlotRecommendationEngine:
    return SlotRecommendationEngine(routing=routing, public=public, geo=geo, practice_id=1, timezone=PRACTICE_TZ)


@pytest.fixture
def enrichment(directory, geo) -> EnrichmentCoordinator:
    return EnrichmentCoordinator(directory=directory, geo=geo, practice_id=1, debounce_seconds=0)


@pytest.fixture
def store() -> MemorySessionStore:
    return MemorySessionStore()


@pytest.fixture
def workflow(store, directory, enrichment, engine, submission) -> IntakeWorkflow:
    return IntakeWorkflow(
        store=store,
        directory=directory,
        enrichment=enrichment,
        engine=engine,
        submission=submission,
        practice_id=1,
    )
