from __future__ import annotations

import logging
from typing import Any

import httpx

from vetintake.application.exceptions import PracticeApiError
from vetintake.core.config import settings


class PracticeHttpClient:
    """Thin async wrapper over the practice API. Every failure surfaces as PracticeApiError."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout_seconds: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = (base_url or settings.PRACTICE_API_BASE_URL or "").rstrip("/")
        if not self._base_url:
            raise ValueError("PRACTICE_API_BASE_URL is required for the practice API client")

        headers = {"Accept": "application/json"}
        token = token or settings.PRACTICE_API_TOKEN
        if token:
            headers["Authorization"] = f"Bearer {token}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=headers,
            timeout=timeout_seconds or settings.HTTP_TIMEOUT_SECONDS,
            transport=transport,
        )
        self._logger = logging.getLogger(__name__)

    async def get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=_drop_none(params))

    async def post_json(self, path: str, payload: dict[str, Any]) -> Any:
        return await self._request("POST", path, json=payload)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            resp = await self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            self._logger.error("Practice API unreachable", extra={"path": path, "error": str(e)})
            raise PracticeApiError(f"{method} {path} failed: {e}") from e

        if resp.status_code >= 400:
            detail = _error_detail(resp)
            message = detail or f"{method} {path} returned HTTP {resp.status_code}"
            self._logger.warning(
                "Practice API error",
                extra={"path": path, "status": resp.status_code, "error": message},
            )
            raise PracticeApiError(message, status_code=resp.status_code, detail=detail)

        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise PracticeApiError(f"{method} {path} returned invalid JSON", status_code=resp.status_code) from e


def _error_detail(resp: httpx.Response) -> str | None:
    try:
        body = resp.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        message = body.get("message") or body.get("error")
        if isinstance(message, list):
            message = "; ".join(str(m) for m in message)
        if message:
            return str(message)
    return None


def _drop_none(params: dict[str, Any] | None) -> dict[str, Any] | None:
    if params is None:
        return None
    return {k: v for k, v in params.items() if v is not None}
