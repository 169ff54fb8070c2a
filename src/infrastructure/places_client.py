"""
Client for the external places data-sync endpoint.

One call per city: ``POST {base_url}/sync/{slug}``.  The endpoint pulls
pharmacies for that city from the third-party places service and upserts
them, answering with counts::

    {"success": true, "message": "...",
     "data": {"processed": 12, "created": 3, "updated": 9, "cityName": "Bar"}}

A bare payload (without the ``data`` envelope) is accepted as well.

Every failure mode -- transport error, non-2xx status, ``success: false``
or a payload that does not validate -- is raised as
``ExternalSyncFailure`` with a message fit for display.
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import BaseModel, Field, ValidationError

from src.domain.entities import SyncResult

logger = logging.getLogger(__name__)


class ExternalSyncFailure(Exception):
    """The external sync call for one city did not succeed."""


class _SyncPayload(BaseModel):
    processed: int = Field(..., ge=0)
    created: int = Field(..., ge=0)
    updated: int = Field(..., ge=0)
    city_name: str = Field("", alias="cityName")

    model_config = {"populate_by_name": True}


class PlacesSyncClient:
    def __init__(
        self,
        base_url: str,
        *,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
        return headers

    async def sync_city(self, city_slug: str) -> SyncResult:
        url = f"{self.base_url}/sync/{city_slug}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.post(url, headers=self._headers())
        except httpx.HTTPError as exc:
            raise ExternalSyncFailure(f"Network error: {exc}") from exc

        try:
            body = response.json()
        except ValueError:
            body = None

        if response.is_error:
            message = body.get("message") if isinstance(body, dict) else None
            raise ExternalSyncFailure(
                message or f"HTTP error! status: {response.status_code}"
            )

        if not isinstance(body, dict):
            raise ExternalSyncFailure("Malformed sync response: expected a JSON object")
        if body.get("success") is False:
            raise ExternalSyncFailure(body.get("message") or "Sync failed")

        data = body.get("data", body)
        try:
            payload = _SyncPayload.model_validate(data)
        except ValidationError as exc:
            raise ExternalSyncFailure(f"Malformed sync response: {exc.error_count()} invalid field(s)") from exc

        logger.debug("Synced %s: %s", city_slug, payload)
        return SyncResult(
            processed=payload.processed,
            created=payload.created,
            updated=payload.updated,
            city_name=payload.city_name,
        )
