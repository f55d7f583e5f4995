from __future__ import annotations

import logging

from vetintake.application.exceptions import PracticeApiError, ZoneNotServicedError
from vetintake.application.ports.geo import GeoPort
from vetintake.domain.entities.client_profile import GeocodeResult, Zone
from vetintake.infrastructure.practice_api.http_client import PracticeHttpClient

MATCH_LEVEL_RANK = {"street": 3, "partial": 2, "city": 1}


class PracticeGeo(GeoPort):
    def __init__(self, client: PracticeHttpClient, country: str = "US", admin_area: str | None = "ME") -> None:
        self._client = client
        self._country = country
        self._admin_area = admin_area
        self._logger = logging.getLogger(__name__)

    async def find_zone(self, address: str) -> Zone:
        try:
            data = await self._client.get_json("/find-zone-by-address", params={"address": address})
        except PracticeApiError as e:
            if e.status_code == 404:
                raise ZoneNotServicedError("Address is outside every service zone", status_code=404) from e
            raise
        data = data or {}
        zone = data.get("zone") if isinstance(data.get("zone"), dict) else data
        return Zone(id=str(zone.get("id", "")), name=str(zone.get("name", "")))

    async def validate_address(self, address: str, min_level: str = "street") -> GeocodeResult:
        """Never raises; lookup problems come back as a not-ok result with a reason."""
        params = {"q": address, "country": self._country, "adminArea": self._admin_area}
        try:
            data = await self._client.get_json("/geo/forward", params=params)
        except PracticeApiError as e:
            if e.status_code == 404:
                return GeocodeResult(ok=False, reason="not_found", message="Address not found.")
            self._logger.warning("Forward geocode failed", extra={"error": str(e)})
            return GeocodeResult(ok=False, reason="error", message=str(e) or "Failed to validate address.")

        data = data or {}
        level = str(data.get("matchLevel") or "city")
        if MATCH_LEVEL_RANK.get(level, 0) < MATCH_LEVEL_RANK.get(min_level, 3):
            message = (
                "Address is too general (matched only a city). Please include street and number."
                if level == "city"
                else "Address is incomplete (matched only a street/route). Please include a street number."
            )
            return GeocodeResult(ok=False, match_level=level, reason="too_vague", message=message)

        return GeocodeResult(
            ok=True,
            lat=_float(data.get("lat")),
            lon=_float(data.get("lon")),
            address=data.get("formattedAddress") or data.get("address") or address,
            match_level=level,
        )


def _float(value) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
