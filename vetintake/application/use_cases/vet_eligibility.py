from __future__ import annotations

from typing import Iterable

from vetintake.domain.entities.intake_session import IntakeSession
from vetintake.domain.entities.provider import Provider


def selected_type_names(session: IntakeSession) -> set[str]:
    """Internal appointment type names chosen across every selected pet."""
    names: set[str] = set()
    for pet_id in session.selected_pet_ids:
        name = session.intake_for(pet_id).appointment_type_name
        if name:
            names.add(name)
    return names


def eligible(providers: Iterable[Provider], type_names: set[str]) -> list[Provider]:
    """Providers accepting every selected type. No selection keeps everyone."""
    if not type_names:
        return list(providers)
    return [p for p in providers if type_names <= p.accepted_appointment_type_names]


def eligible_for_session(session: IntakeSession) -> list[Provider]:
    return eligible(session.providers, selected_type_names(session))
