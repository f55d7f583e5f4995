from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class Provider:
    id: str
    name: str
    pims_id: str | None = None
    accepted_appointment_type_names: frozenset[str] = field(default_factory=frozenset)
    email: str | None = None

    @property
    def routing_id(self) -> str:
        """Identifier the routing service expects: PIMS id when known."""
        return self.pims_id or self.id
