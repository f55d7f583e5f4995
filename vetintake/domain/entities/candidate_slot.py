from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class CandidateSlot:
    iso: str
    display: str
