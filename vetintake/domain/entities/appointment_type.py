from __future__ import annotations

from dataclasses import dataclass

EUTHANASIA_TYPE_NAME = "Euthanasia"


@dataclass(frozen=True)
class AppointmentTypeDef:
    name: str
    pretty_name: str
    new_patient_allowed: bool = True
    show_in_intake_form: bool = True

    @property
    def is_euthanasia(self) -> bool:
        return self.name == EUTHANASIA_TYPE_NAME
