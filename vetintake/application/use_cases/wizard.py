from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Callable

from vetintake.application.exceptions import InvalidTransitionError
from vetintake.application.use_cases.validation import validate
from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.pages import HIGH_PEAKS_AREA, PORTLAND_AREA, TERMINAL_PAGES, YES, Page

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransitionResult:
    """Outcome of a next/back request."""

    session: IntakeSession
    action: str  # "moved", "invalid", "submit", "stay"
    from_page: Page
    to_page: Page | None = None


def _after_intro(session: IntakeSession) -> Page:
    if session.is_authenticated or session.is_existing_client:
        return Page.EXISTING_CLIENT
    return Page.NEW_CLIENT


def _after_existing_pets(session: IntakeSession) -> Page:
    if session.looking_for_euthanasia == YES:
        return Page.EUTHANASIA_INTRO
    return Page.REQUEST_VISIT_CONTINUED


def _after_service_area(session: IntakeSession) -> Page:
    if session.service_area == PORTLAND_AREA:
        return Page.EUTHANASIA_PORTLAND
    if session.service_area == HIGH_PEAKS_AREA:
        return Page.EUTHANASIA_HIGH_PEAKS
    raise InvalidTransitionError(f"No page for service area {session.service_area!r}")


def _before_euthanasia_intro(session: IntakeSession) -> Page:
    return Page.EXISTING_CLIENT_PETS if session.is_existing_client else Page.NEW_CLIENT


def _before_euthanasia_continued(session: IntakeSession) -> Page:
    if session.service_area == PORTLAND_AREA:
        return Page.EUTHANASIA_PORTLAND
    if session.service_area == HIGH_PEAKS_AREA:
        return Page.EUTHANASIA_HIGH_PEAKS
    # The predecessor is not recorded anywhere else, so there is nothing to infer it from.
    raise InvalidTransitionError("Service area not set; previous euthanasia page is ambiguous")


def _before_request_visit(session: IntakeSession) -> Page:
    return Page.EXISTING_CLIENT_PETS if session.is_existing_client else Page.NEW_CLIENT_PET_INFO


PageRule = Callable[[IntakeSession], Page]

FORWARD: dict[Page, PageRule] = {
    Page.INTRO: _after_intro,
    Page.NEW_CLIENT: lambda s: Page.NEW_CLIENT_PET_INFO,
    Page.NEW_CLIENT_PET_INFO: lambda s: Page.REQUEST_VISIT_CONTINUED,
    Page.EXISTING_CLIENT: lambda s: Page.EXISTING_CLIENT_PETS,
    Page.EXISTING_CLIENT_PETS: _after_existing_pets,
    Page.EUTHANASIA_INTRO: lambda s: Page.EUTHANASIA_SERVICE_AREA,
    Page.EUTHANASIA_SERVICE_AREA: _after_service_area,
    Page.EUTHANASIA_PORTLAND: lambda s: Page.EUTHANASIA_CONTINUED,
    Page.EUTHANASIA_HIGH_PEAKS: lambda s: Page.EUTHANASIA_CONTINUED,
}

BACKWARD: dict[Page, PageRule] = {
    Page.NEW_CLIENT: lambda s: Page.INTRO,
    Page.EXISTING_CLIENT: lambda s: Page.INTRO,
    Page.NEW_CLIENT_PET_INFO: lambda s: Page.NEW_CLIENT,
    Page.EXISTING_CLIENT_PETS: lambda s: Page.EXISTING_CLIENT,
    Page.EUTHANASIA_INTRO: _before_euthanasia_intro,
    Page.EUTHANASIA_SERVICE_AREA: lambda s: Page.EUTHANASIA_INTRO,
    Page.EUTHANASIA_PORTLAND: lambda s: Page.EUTHANASIA_SERVICE_AREA,
    Page.EUTHANASIA_HIGH_PEAKS: lambda s: Page.EUTHANASIA_SERVICE_AREA,
    Page.EUTHANASIA_CONTINUED: _before_euthanasia_continued,
    Page.REQUEST_VISIT_CONTINUED: _before_request_visit,
}


def next_page(session: IntakeSession) -> Page:
    """Destination of "next" from the current page. Terminal pages submit instead."""
    rule = FORWARD.get(session.current_page)
    if rule is None:
        raise InvalidTransitionError(f"No forward edge from {session.current_page.value}")
    return rule(session)


def previous_page(session: IntakeSession) -> Page:
    rule = BACKWARD.get(session.current_page)
    if rule is None:
        raise InvalidTransitionError(f"No back edge from {session.current_page.value}")
    return rule(session)


def has_previous(page: Page) -> bool:
    return page in BACKWARD


class WizardStateMachine:
    def __init__(self, on_transition: Callable[[Page, Page, IntakeSession], None] | None = None) -> None:
        self._on_transition = on_transition or notify_transition

    def advance(self, session: IntakeSession) -> TransitionResult:
        """Validate the current page and move forward, or report that it must be submitted."""
        page = session.current_page
        errors = validate(page, session)
        session = replace(session, validation_errors=errors)
        if errors:
            return TransitionResult(session=session, action="invalid", from_page=page)

        if page in TERMINAL_PAGES:
            return TransitionResult(session=session, action="submit", from_page=page)

        try:
            destination = next_page(session)
        except InvalidTransitionError as e:
            logger.warning("Forward transition unavailable", extra={"page": page.value, "error": str(e)})
            return TransitionResult(session=session, action="stay", from_page=page)

        moved = replace(session, current_page=destination)
        self._on_transition(page, destination, moved)
        return TransitionResult(session=moved, action="moved", from_page=page, to_page=destination)

    def go_back(self, session: IntakeSession) -> TransitionResult:
        page = session.current_page
        try:
            destination = previous_page(session)
        except InvalidTransitionError as e:
            logger.warning("Back transition unavailable", extra={"page": page.value, "error": str(e)})
            return TransitionResult(session=session, action="stay", from_page=page)

        moved = replace(session, current_page=destination, validation_errors={})
        self._on_transition(page, destination, moved)
        return TransitionResult(session=moved, action="moved", from_page=page, to_page=destination)


def notify_transition(from_page: Page, to_page: Page, session: IntakeSession) -> None:
    logger.info(
        "Wizard transition",
        extra={
            "from_page": from_page.value,
            "to_page": to_page.value,
            "client_type": "existing" if session.is_existing_client else "new",
            "pet_count": len(session.selected_pet_ids),
        },
    )
