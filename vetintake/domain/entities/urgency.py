from __future__ import annotations

from enum import Enum


class Urgency(str, Enum):
    """How soon the client needs to be seen ("howSoon"), in ordinal order."""

    EMERGENT = "Emergent – today"
    URGENT = "Urgent – within 24–48 hours"
    SOON = "Soon – sometime this week"
    THREE_TO_FOUR_WEEKS = "In 3–4 weeks"
    FLEXIBLE = "Flexible – within the next month"
    ROUTINE = "Routine – in about 3 months"
    PLANNED = "Planned – in about 6 months"
    FUTURE = "Future – in about 12 months"

    @property
    def needs_manual_scheduling(self) -> bool:
        return self in (Urgency.EMERGENT, Urgency.URGENT)

    @classmethod
    def parse(cls, value: str | None) -> "Urgency | None":
        """Accept the literal with either en dashes or plain hyphens."""
        if not value:
            return None
        normalized = _normalize_dashes(value)
        for member in cls:
            if _normalize_dashes(member.value) == normalized:
                return member
        raise ValueError(f"Unknown urgency: {value!r}")


def _normalize_dashes(text: str) -> str:
    return " ".join(text.replace("–", "-").replace("—", "-").lower().split())
