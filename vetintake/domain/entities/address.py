from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Address:
    line1: str = ""
    line2: str | None = None
    city: str = ""
    state: str = ""
    zip: str = ""
    country: str = ""

    def one_line(self) -> str:
        """Street, city, state and zip joined for lookups; blank parts are skipped."""
        parts = [self.line1, self.city, self.state, self.zip]
        return ", ".join(p.strip() for p in parts if p and p.strip())
