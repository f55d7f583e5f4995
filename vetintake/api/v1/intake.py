from __future__ import annotations

import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Query

from vetintake.api.v1.schemas import (
    BreedSchema,
    CreateSessionSchema,
    EventSchema,
    OptionSchema,
    PetSummarySchema,
    SessionSchema,
    SlotSchema,
    TransitionSchema,
)
from vetintake.application.use_cases.appointment_types import options_for
from vetintake.application.use_cases.enrichment import NOT_SERVICED_MESSAGE
from vetintake.application.use_cases.intake_workflow import IntakeWorkflow, UnknownSessionError
from vetintake.application.use_cases.provider_resolver import preferred_label
from vetintake.application.use_cases.validation import needs_free_text_preference
from vetintake.application.use_cases.vet_eligibility import eligible_for_session
from vetintake.application.use_cases.wizard import TransitionResult, has_previous
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.pages import NO_PREFERENCE, Page
from vetintake.wiring.dependencies import get_intake_workflow

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/sessions", response_model=SessionSchema, status_code=201)
async def create_session(
    req: CreateSessionSchema | None = Body(None),
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    runtime = await workflow.start(is_authenticated=bool(req and req.is_authenticated))
    return session_view(runtime.session_id, runtime.session)


@router.get("/sessions/{session_id}", response_model=SessionSchema)
async def get_session(
    session_id: str,
    wait: bool = Query(False, description="Wait for background lookups to finish"),
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    session = await _current(workflow, session_id, wait)
    return session_view(session_id, session)


@router.post("/sessions/{session_id}/events", response_model=SessionSchema)
async def post_event(
    session_id: str,
    event: EventSchema,
    wait: bool = Query(False, description="Wait for background lookups to finish"),
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    try:
        domain_event = event.to_event()
        await workflow.dispatch(session_id, domain_event)
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail="Unknown intake session")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    session = await _current(workflow, session_id, wait)
    return session_view(session_id, session)


@router.post("/sessions/{session_id}/next", response_model=TransitionSchema)
async def next_page(
    session_id: str,
    wait: bool = Query(False, description="Wait for background lookups to finish"),
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    try:
        result = await workflow.advance(session_id)
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail="Unknown intake session")
    return await _transition_view(workflow, session_id, result, wait)


@router.post("/sessions/{session_id}/back", response_model=TransitionSchema)
async def previous_page(
    session_id: str,
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    try:
        result = await workflow.go_back(session_id)
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail="Unknown intake session")
    return await _transition_view(workflow, session_id, result, False)


@router.get("/species/{species_id}/breeds", response_model=list[BreedSchema])
async def list_breeds(
    species_id: str,
    workflow: IntakeWorkflow = Depends(get_intake_workflow),
):
    breeds = await workflow.breeds(species_id)
    return [BreedSchema(id=b.id, name=b.name) for b in breeds]


def session_view(session_id: str, session: IntakeSession) -> SessionSchema:
    ranks = session.selected_slot_preferences
    types = options_for(session.appointment_types, is_new_patient=not session.is_existing_client)
    doctors = [OptionSchema(value=preferred_label(p), label=preferred_label(p)) for p in eligible_for_session(session)]
    doctors.append(OptionSchema(value=NO_PREFERENCE, label=NO_PREFERENCE))

    return SessionSchema(
        session_id=session_id,
        current_page=session.current_page.value,
        has_previous=has_previous(session.current_page),
        is_existing_client=session.is_existing_client,
        validation_errors=dict(session.validation_errors),
        submission_error=session.submission_error,
        zone_status=session.zone_status,
        zone_message=NOT_SERVICED_MESSAGE if session.zone_status == "not_serviced" else None,
        appointment_types=[OptionSchema(value=t.name, label=t.pretty_name) for t in types],
        doctors=doctors,
        client_pets=[
            PetSummarySchema(id=p.id, name=p.name, species=p.species, alerts=session.pet_alerts.get(p.id))
            for p in session.client_pets
        ],
        selected_pet_ids=list(session.selected_pet_ids),
        loading_slots=session.loading_slots,
        recommended_slots=[
            SlotSchema(iso=s.iso, display=s.display, preference=ranks.get(s.iso)) for s in session.recommended_slots
        ],
        none_of_these_work=session.none_of_these_work,
        needs_free_text_preference=needs_free_text_preference(session),
        service_minutes=session.service_minutes_used,
    )


async def _current(workflow: IntakeWorkflow, session_id: str, wait: bool) -> IntakeSession:
    try:
        if wait:
            return await workflow.drain(session_id)
        return workflow.get(session_id).session
    except UnknownSessionError:
        raise HTTPException(status_code=404, detail="Unknown intake session")


async def _transition_view(
    workflow: IntakeWorkflow, session_id: str, result: TransitionResult, wait: bool
) -> TransitionSchema:
    # a submitted session is already gone; its final state travels in the result
    finished = result.to_page is Page.SUCCESS
    session = await _current(workflow, session_id, wait) if wait and not finished else result.session
    logger.info(
        "Intake transition requested",
        extra={"session_id": session_id, "action": result.action, "page": result.from_page.value},
    )
    return TransitionSchema(
        action=result.action,
        from_page=result.from_page.value,
        to_page=result.to_page.value if result.to_page else None,
        session=session_view(session_id, session),
    )
