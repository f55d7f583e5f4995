from __future__ import annotations

from abc import ABC, abstractmethod

from vetintake.domain.entities.client_profile import GeocodeResult, Zone


class GeoPort(ABC):
    @abstractmethod
    async def find_zone(self, address: str) -> Zone:
        """Service zone for an address. Raises ZoneNotServicedError when none covers it."""
        raise NotImplementedError

    @abstractmethod
    async def validate_address(self, address: str, min_level: str = "street") -> GeocodeResult:
        """Forward geocode an address and check the match is precise enough for routing."""
        raise NotImplementedError
