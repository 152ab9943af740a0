"""Async client for the public reservation backend."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import httpx

from tracking import t

from infrastructure import constants
from .errors import ApiError, NetworkError, RequestTimeout, extract_error_message


class ReservationApiClient:
    """Thin JSON wrapper over the backend endpoints the booking flow consumes.

    Every method either returns the decoded payload or raises
    :class:`~reservations.api.errors.ApiError`. There is no cancellation;
    callers that lose interest in a response simply ignore it.
    """

    def __init__(
        self,
        base_url: str = constants.DEFAULT_API_BASE,
        *,
        timeout_seconds: float = constants.DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('reservations.api.client.ReservationApiClient.__init__')
        self.base_url = (base_url or "").rstrip("/")
        self.logger = logger or logging.getLogger('ReservationApiClient')
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout_seconds,
            transport=transport,
            headers={"Content-Type": "application/json", "Cache-Control": "no-store"},
        )

    async def __aenter__(self) -> "ReservationApiClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        t('reservations.api.client.ReservationApiClient.aclose')
        await self._http.aclose()

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------
    async def fetch_units(self) -> List[Dict[str, Any]]:
        t('reservations.api.client.ReservationApiClient.fetch_units')
        return self._as_list(await self._request("GET", constants.UNITS_PATH))

    async def fetch_areas_static(self, unit_id: str) -> List[Dict[str, Any]]:
        """Static area metadata for a unit (no capacity)."""
        t('reservations.api.client.ReservationApiClient.fetch_areas_static')
        path = constants.AREAS_BY_UNIT_PATH.format(unit_id=quote(str(unit_id), safe=""))
        return self._as_list(await self._request("GET", path))

    async def fetch_availability(
        self, unit_id: str, day: date, time_slot: Optional[str] = None
    ) -> List[Dict[str, Any]]:
        """Per-area remaining capacity for ``unit_id`` on ``day`` at ``time_slot``."""
        t('reservations.api.client.ReservationApiClient.fetch_availability')
        params = {"unitId": str(unit_id), "date": day.isoformat()}
        if time_slot:
            params["time"] = time_slot
        return self._as_list(
            await self._request("GET", constants.AVAILABILITY_PATH, params=params)
        )

    async def create_reservation(self, payload: Mapping[str, Any]) -> Dict[str, Any]:
        t('reservations.api.client.ReservationApiClient.create_reservation')
        result = await self._request(
            "POST", constants.CREATE_RESERVATION_PATH, json=dict(payload)
        )
        return result if isinstance(result, dict) else {}

    async def fetch_active_reservation(self, reservation_id: str) -> Dict[str, Any]:
        """Full record of an active reservation; non-2xx when it is gone."""
        t('reservations.api.client.ReservationApiClient.fetch_active_reservation')
        result = await self._request(
            "GET", constants.ACTIVE_RESERVATION_PATH, params={"id": str(reservation_id)}
        )
        return result if isinstance(result, dict) else {}

    async def fetch_reservation_status(self, reservation_id: str) -> str:
        t('reservations.api.client.ReservationApiClient.fetch_reservation_status')
        path = constants.RESERVATION_STATUS_PATH.format(
            reservation_id=quote(str(reservation_id), safe="")
        )
        result = await self._request("GET", path)
        if isinstance(result, dict):
            return str(result.get("status") or "").upper()
        return ""

    async def lookup_reservation(self, code: str) -> Dict[str, Any]:
        t('reservations.api.client.ReservationApiClient.lookup_reservation')
        result = await self._request(
            "GET", constants.LOOKUP_BY_CODE_PATH, params={"code": code}
        )
        return result if isinstance(result, dict) else {}

    async def fetch_reservation_by_code(self, code: str) -> Dict[str, Any]:
        t('reservations.api.client.ReservationApiClient.fetch_reservation_by_code')
        path = constants.RESERVATION_BY_CODE_PATH.format(code=quote(code, safe=""))
        result = await self._request("GET", path)
        return result if isinstance(result, dict) else {}

    def qrcode_url(self, reservation_id: str) -> str:
        """Absolute URL of the QR image; the client never downloads it."""
        t('reservations.api.client.ReservationApiClient.qrcode_url')
        path = constants.RESERVATION_QRCODE_PATH.format(reservation_id=reservation_id)
        return f"{self.base_url}{path}"

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Optional[Mapping[str, str]] = None,
        json: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        t('reservations.api.client.ReservationApiClient._request')
        try:
            response = await self._http.request(method, path, params=params, json=json)
        except httpx.TimeoutException as exc:
            self.logger.warning("%s %s timed out: %s", method, path, exc)
            raise RequestTimeout() from exc
        except httpx.TransportError as exc:
            self.logger.warning("%s %s transport failure: %s", method, path, exc)
            raise NetworkError(str(exc)) from exc

        if response.status_code == 204:
            return None

        payload = self._decode(response)

        if not response.is_success:
            message = extract_error_message(payload, response.reason_phrase)
            self.logger.debug(
                "%s %s -> %s (%s)", method, path, response.status_code, message
            )
            raise ApiError(message, status=response.status_code, payload=payload)

        return payload

    @staticmethod
    def _decode(response: httpx.Response) -> Any:
        content_type = response.headers.get("content-type", "")
        if "application/json" in content_type:
            try:
                return response.json()
            except ValueError:
                return {}
        return response.text

    @staticmethod
    def _as_list(payload: Any) -> List[Dict[str, Any]]:
        if isinstance(payload, list):
            return [item for item in payload if isinstance(item, dict)]
        return []
