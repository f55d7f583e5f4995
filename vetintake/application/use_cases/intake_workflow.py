from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable

from vetintake.application.exceptions import PracticeApiError, SubmissionFailure
from vetintake.application.ports.directory import DirectoryPort
from vetintake.application.ports.session_store import SessionStorePort
from vetintake.application.ports.submission import SubmissionPort
from vetintake.application.use_cases.enrichment import EnrichmentCoordinator, EnrichmentState
from vetintake.application.use_cases.session_reducer import apply_event
from vetintake.application.use_cases.slot_recommendation import SlotRecommendationEngine
from vetintake.application.use_cases.submission_payload import build
from vetintake.application.use_cases.wizard import TransitionResult, WizardStateMachine
from vetintake.domain.entities.intake_events import (
    IntakeEvent,
    RecommendationsReplaced,
    ReferenceDataLoaded,
    SlotsLoading,
)
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.pages import SCHEDULING_PAGES, Page
from vetintake.domain.entities.pet import Breed, ExistingPet

GENERIC_SUBMISSION_ERROR = "We could not submit your request. Please try again."
EXISTING_ACCOUNT_MESSAGE = "We found an account associated with this email. Please log in to request an appointment."
EMAIL_ON_FILE_MESSAGE = (
    "We found this email in our system. Please log in or create an account to request an appointment."
)


class UnknownSessionError(KeyError):
    pass


@dataclass
class IntakeRuntime:
    """Live state of one form fill: the session plus its in-flight background work."""

    session_id: str
    session: IntakeSession
    enrichment: EnrichmentState = field(default_factory=EnrichmentState)
    tasks: set[asyncio.Task] = field(default_factory=set)
    recommendation_key: tuple | None = None


class IntakeWorkflow:
    def __init__(
        self,
        store: SessionStorePort,
        directory: DirectoryPort,
        enrichment: EnrichmentCoordinator,
        engine: SlotRecommendationEngine,
        submission: SubmissionPort,
        practice_id: int,
        wizard: WizardStateMachine | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._directory = directory
        self._enrichment = enrichment
        self._engine = engine
        self._submission = submission
        self._practice_id = practice_id
        self._wizard = wizard or WizardStateMachine()
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._runtimes: dict[str, IntakeRuntime] = {}
        self._logger = logging.getLogger(__name__)

    async def start(self, is_authenticated: bool = False) -> IntakeRuntime:
        """Create a session and kick off reference data loading in the background."""
        session = IntakeSession(is_authenticated=is_authenticated)
        session_id = self._store.create(session)
        runtime = IntakeRuntime(session_id=session_id, session=session)
        self._runtimes[session_id] = runtime
        self._forget_evicted()

        self._spawn(runtime, self._load_reference_data(runtime))
        if is_authenticated:
            self._spawn(runtime, self._load_client_profile(runtime))
        self._logger.info("Intake session started", extra={"session_id": session_id, "authenticated": is_authenticated})
        return runtime

    def get(self, session_id: str) -> IntakeRuntime:
        session = self._store.get(session_id)
        if session is None:
            self.discard(session_id)
            raise UnknownSessionError(session_id)
        runtime = self._runtimes.get(session_id)
        if runtime is not None:
            return runtime
        runtime = IntakeRuntime(session_id=session_id, session=session)
        self._runtimes[session_id] = runtime
        return runtime

    async def dispatch(self, session_id: str, event: IntakeEvent) -> IntakeSession:
        runtime = self.get(session_id)
        self._apply(runtime, event)
        return runtime.session

    async def advance(self, session_id: str) -> TransitionResult:
        runtime = self.get(session_id)
        session = runtime.session

        if session.current_page is Page.INTRO:
            blocked = await self._existing_email_block(session)
            if blocked:
                self._set_session(runtime, replace(session, validation_errors={"email": blocked}))
                return TransitionResult(session=runtime.session, action="invalid", from_page=session.current_page)

        result = self._wizard.advance(session)
        if result.action == "submit":
            self._set_session(runtime, result.session)
            return await self.submit(session_id)

        self._set_session(runtime, result.session)
        self._after_change(runtime, session)
        return replace(result, session=runtime.session)

    async def go_back(self, session_id: str) -> TransitionResult:
        runtime = self.get(session_id)
        before = runtime.session
        result = self._wizard.go_back(before)
        self._set_session(runtime, result.session)
        self._after_change(runtime, before)
        return replace(result, session=runtime.session)

    async def submit(self, session_id: str) -> TransitionResult:
        """Deliver the request. Failure keeps the client on the page with a message to retry."""
        runtime = self.get(session_id)
        session = runtime.session
        page = session.current_page
        payload = build(session, self._clock())

        try:
            await self._submission.submit(payload)
        except SubmissionFailure as e:
            message = str(e).strip() or GENERIC_SUBMISSION_ERROR
            self._logger.error(
                "Appointment request failed",
                extra={"session_id": session_id, "status": e.status_code, "error": message},
            )
            self._set_session(runtime, replace(session, submission_error=message))
            return TransitionResult(session=runtime.session, action="stay", from_page=page)

        submitted = replace(session, current_page=Page.SUCCESS, submission_error=None)
        self._logger.info(
            "Appointment request submitted",
            extra={"session_id": session_id, "client_type": payload.get("clientType"), "reason": payload.get("appointmentType")},
        )
        # nothing left to do for this form fill
        self.discard(session_id)
        return TransitionResult(session=submitted, action="moved", from_page=page, to_page=Page.SUCCESS)

    async def breeds(self, species_id: str) -> list[Breed]:
        return await self._enrichment.load_breeds(species_id)

    async def drain(self, session_id: str) -> IntakeSession:
        """Wait until no background work is pending for the session."""
        runtime = self.get(session_id)
        while runtime.tasks:
            await asyncio.gather(*list(runtime.tasks), return_exceptions=True)
        return runtime.session

    def discard(self, session_id: str) -> None:
        runtime = self._runtimes.pop(session_id, None)
        if runtime is not None:
            for task in runtime.tasks:
                task.cancel()
        self._store.delete(session_id)

    def _forget_evicted(self) -> None:
        """Drop runtimes whose session the store has evicted."""
        for session_id in [s for s in self._runtimes if self._store.get(s) is None]:
            self.discard(session_id)

    def _apply(self, runtime: IntakeRuntime, event: IntakeEvent) -> None:
        before = runtime.session
        self._set_session(runtime, apply_event(before, event))
        self._after_change(runtime, before)

    def _set_session(self, runtime: IntakeRuntime, session: IntakeSession) -> None:
        runtime.session = session
        self._store.save(runtime.session_id, session)

    def _after_change(self, runtime: IntakeRuntime, before: IntakeSession) -> None:
        """Start whatever background work the last change made necessary."""
        session = runtime.session

        address = _address_text(session)
        if address and address != _address_text(before):
            self._spawn(runtime, self._refresh_address(runtime, address))

        if session.is_authenticated:
            new_pets = [
                pet_id
                for pet_id in session.selected_pet_ids
                if pet_id not in before.selected_pet_ids
                and pet_id not in session.pet_alerts
                and isinstance(session.pet_records.get(pet_id), ExistingPet)
            ]
            if new_pets:
                self._spawn(runtime, self._load_alerts(runtime, new_pets))

        key = recommendation_key(session)
        if key != runtime.recommendation_key:
            runtime.recommendation_key = key
            token = runtime.enrichment.generations.issue("slots")
            if key is None:
                if runtime.session.loading_slots:
                    self._set_session(runtime, apply_event(runtime.session, SlotsLoading(loading=False)))
                return
            self._set_session(runtime, apply_event(runtime.session, SlotsLoading(loading=True)))
            self._spawn(runtime, self._recommend(runtime, token))

    async def _recommend(self, runtime: IntakeRuntime, token: int) -> None:
        recommendation = await self._engine.recommend(runtime.session)
        if not runtime.enrichment.generations.is_current("slots", token):
            self._logger.debug("Discarding stale slot recommendation", extra={"session_id": runtime.session_id})
            return
        self._apply(
            runtime,
            RecommendationsReplaced(slots=recommendation.slots, service_minutes=recommendation.service_minutes),
        )

    async def _refresh_address(self, runtime: IntakeRuntime, address: str) -> None:
        events = await self._enrichment.refresh_address(runtime.enrichment, address, runtime.session.is_authenticated)
        for event in events:
            self._apply(runtime, event)

    async def _load_reference_data(self, runtime: IntakeRuntime) -> None:
        self._apply(runtime, await self._enrichment.load_reference_data(runtime.session.is_authenticated))
        if _address_text(runtime.session):
            return
        providers = await self._enrichment.load_providers(
            runtime.enrichment, runtime.session.is_authenticated, None
        )
        if not _address_text(runtime.session):
            self._apply(runtime, ReferenceDataLoaded(providers=tuple(providers)))

    async def _load_client_profile(self, runtime: IntakeRuntime) -> None:
        profile = await self._enrichment.load_client_profile()
        if profile is None:
            return
        self._apply(runtime, profile)
        pet_ids = [pet.id for pet in profile.pets]
        if pet_ids:
            await self._load_alerts(runtime, pet_ids)

    async def _load_alerts(self, runtime: IntakeRuntime, pet_ids: list[str]) -> None:
        self._apply(runtime, await self._enrichment.load_pet_alerts(pet_ids))

    async def _existing_email_block(self, session: IntakeSession) -> str | None:
        """Message stopping a self-declared new client whose email is already on file."""
        if session.is_authenticated or session.is_existing_client:
            return None
        email = session.contact.email.strip().lower()
        if not email:
            return None
        try:
            check = await self._directory.check_email(email, self._practice_id)
        except PracticeApiError as e:
            self._logger.warning("Email check failed", extra={"error": str(e)})
            return None
        if not check.exists:
            return None
        return EXISTING_ACCOUNT_MESSAGE if check.has_account else EMAIL_ON_FILE_MESSAGE

    def _spawn(self, runtime: IntakeRuntime, work: Awaitable[Any]) -> None:
        task = asyncio.ensure_future(work)
        runtime.tasks.add(task)
        task.add_done_callback(lambda t: self._finish(runtime, t))

    def _finish(self, runtime: IntakeRuntime, task: asyncio.Task) -> None:
        runtime.tasks.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._logger.error(
                "Background enrichment failed",
                extra={"session_id": runtime.session_id, "error": repr(error)},
            )


def recommendation_key(session: IntakeSession) -> tuple | None:
    """Everything the slot recommendation depends on, or None off the scheduling pages."""
    if session.current_page not in SCHEDULING_PAGES:
        return None
    return (
        session.current_page,
        session.preferred_doctor_text.strip(),
        len(session.selected_pet_ids),
        session.urgency,
        tuple(session.intake_for(pet_id).appointment_type_name for pet_id in session.selected_pet_ids),
        tuple(provider.id for provider in session.providers),
        _address_text(session),
    )


def _address_text(session: IntakeSession) -> str:
    address = session.meeting_address
    return address.one_line() if address else ""
