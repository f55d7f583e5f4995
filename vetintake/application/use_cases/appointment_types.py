from __future__ import annotations

from typing import Iterable

from vetintake.domain.entities.appointment_type import EUTHANASIA_TYPE_NAME, AppointmentTypeDef


def eligible_types(catalog: Iterable[AppointmentTypeDef], is_new_patient: bool) -> list[AppointmentTypeDef]:
    """Types a client may pick on the intake form."""
    types = [t for t in catalog if t.show_in_intake_form]
    if is_new_patient:
        types = [t for t in types if t.new_patient_allowed]
    return types


def order_for_display(types: Iterable[AppointmentTypeDef]) -> list[AppointmentTypeDef]:
    """Euthanasia goes last; everything else keeps its order."""
    return sorted(types, key=lambda t: t.is_euthanasia)


def find_type(catalog: Iterable[AppointmentTypeDef], name: str) -> AppointmentTypeDef | None:
    for appointment_type in catalog:
        if appointment_type.name == name:
            return appointment_type
    return None


def is_euthanasia_type(name: str | None) -> bool:
    return name == EUTHANASIA_TYPE_NAME


def options_for(catalog: Iterable[AppointmentTypeDef], is_new_patient: bool) -> list[AppointmentTypeDef]:
    return order_for_display(eligible_types(catalog, is_new_patient))
