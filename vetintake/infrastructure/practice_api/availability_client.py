from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from vetintake.application.dto.availability import AvailabilityAnswer, AvailabilityResponseDTO
from vetintake.application.exceptions import PracticeApiError
from vetintake.application.ports.availability import AvailabilityPort, AvailabilityQuery
from vetintake.infrastructure.practice_api.http_client import PracticeHttpClient


class RoutingAvailability(AvailabilityPort):
    """Routing v2 scorer, used for signed-in clients."""

    def __init__(self, client: PracticeHttpClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def fetch_candidates(self, query: AvailabilityQuery) -> AvailabilityAnswer:
        new_appt: dict[str, Any] = {"serviceMinutes": query.service_minutes}
        if query.lat is not None and query.lon is not None:
            new_appt["lat"] = query.lat
            new_appt["lon"] = query.lon
        if query.address:
            new_appt["address"] = query.address

        payload = {
            "doctorId": query.doctor_id,
            "startDate": query.start_date.isoformat(),
            "numDays": query.num_days,
            "newAppt": new_appt,
        }
        data = await self._client.post_json("/routing/v2", payload)
        return _parse(data, self._logger)


class PublicAvailability(AvailabilityPort):
    """Public availability search, used for anonymous visitors."""

    def __init__(self, client: PracticeHttpClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def fetch_candidates(self, query: AvailabilityQuery) -> AvailabilityAnswer:
        payload: dict[str, Any] = {
            "practiceId": query.practice_id,
            "startDate": query.start_date.isoformat(),
            "numDays": query.num_days,
            "serviceMinutes": query.service_minutes,
            "address": query.address or "",
            "allowOtherDoctors": False,
        }
        if query.doctor_id:
            payload["doctorId"] = int(query.doctor_id) if query.doctor_id.isdigit() else query.doctor_id
        data = await self._client.post_json("/public/appointments/availability", payload)
        return _parse(data, self._logger)


def _parse(data: Any, logger: logging.Logger) -> AvailabilityAnswer:
    try:
        return AvailabilityResponseDTO.parse_payload(data).to_answer()
    except ValidationError as e:
        logger.warning("Unreadable availability response", extra={"error": str(e)})
        raise PracticeApiError("Availability response could not be parsed") from e

