from __future__ import annotations

from dataclasses import dataclass

OTHER_SPECIES = "Other"


@dataclass(frozen=True)
class ExistingPet:
    """Patient already on file for the signed-in client. Read-only."""

    id: str
    name: str
    species: str | None = None
    breed: str | None = None
    dob: str | None = None
    db_id: str | None = None
    client_id: str | None = None
    primary_provider_name: str | None = None
    subscription: str | None = None
    photo_url: str | None = None


@dataclass(frozen=True)
class NewPet:
    """Pet the client is adding through the form."""

    id: str
    name: str = ""
    species_id: str = ""
    species_other: str = ""
    breed_id: str = ""
    age: str = ""
    sex: str = ""
    spayed_neutered: str = ""
    weight: str = ""
    color: str = ""
    behavior_notes: str = ""
    needs_calming_medications: str = ""
    has_calming_medications: str = ""
    needs_muzzle_or_special_handling: str = ""


PetRecord = ExistingPet | NewPet


@dataclass(frozen=True)
class EuthanasiaDetails:
    reason: str = ""
    recent_vet_visit: str = ""
    interest_in_alternatives: str = ""
    aftercare: str = ""


@dataclass(frozen=True)
class PetIntake:
    appointment_type_name: str = ""
    details: str = ""
    euthanasia: EuthanasiaDetails | None = None


@dataclass(frozen=True)
class Species:
    id: str
    name: str


@dataclass(frozen=True)
class Breed:
    id: str
    name: str
    species_id: str | None = None
