from __future__ import annotations

import logging
from typing import Any

from vetintake.application.exceptions import PracticeApiError, SubmissionFailure
from vetintake.application.ports.submission import SubmissionPort
from vetintake.infrastructure.practice_api.http_client import PracticeHttpClient


class PracticeSubmission(SubmissionPort):
    def __init__(self, client: PracticeHttpClient) -> None:
        self._client = client
        self._logger = logging.getLogger(__name__)

    async def submit(self, payload: dict[str, Any]) -> None:
        try:
            await self._client.post_json("/public/appointments/form", payload)
        except PracticeApiError as e:
            self._logger.warning("Appointment form rejected", extra={"status": e.status_code, "error": str(e)})
            # Only a message written by the upstream service is shown to the client.
            raise SubmissionFailure(e.detail or "", status_code=e.status_code, detail=e.detail) from e
