"""In-memory reservation backend served through ``httpx.MockTransport``."""

from __future__ import annotations

import asyncio
import json
import re
from typing import Any, Dict, List, Optional, Tuple

import httpx

from reservations.api import ReservationApiClient

API_BASE = "http://api.test"

UNITS = [
    {"id": "aguas-claras", "name": "Mané Mercado — Águas Claras", "slug": "aguas-claras"},
    {"id": "arena-brasilia", "name": "Mané Mercado — Arena Brasília", "slug": "arena"},
]

STATIC_AREAS = {
    "aguas-claras": [
        {
            "id": "salao",
            "name": "Salão Principal",
            "description": "Mesas internas",
            "photoUrl": "/img/salao.jpg",
            "icon": "🍽",
            "capacity": 80,
        },
        {
            "id": "varanda",
            "name": "Varanda",
            "description": "Área externa",
            "photoUrl": "/img/varanda.jpg",
            "capacity": 40,
        },
    ],
}


class FakeBackend:
    """Just enough of the public reservation API for the booking flow.

    ``availability`` maps ``(unit_id, "YYYY-MM-DD", "HH:MM")`` to the area list
    returned by the availability endpoint. ``failures`` maps a path prefix to
    an HTTP status, or to ``"network"`` / ``"timeout"`` for a transport error.
    ``hold(prefix, **params)`` returns an event that must be set before
    matching requests are answered.
    """

    def __init__(self) -> None:
        self.units: List[Dict[str, Any]] = [dict(u) for u in UNITS]
        self.static_areas: Dict[str, List[Dict[str, Any]]] = {
            k: [dict(a) for a in v] for k, v in STATIC_AREAS.items()
        }
        self.availability: Dict[Tuple[str, str, str], List[Dict[str, Any]]] = {}
        self.reservations: Dict[str, Dict[str, Any]] = {}
        self.failures: Dict[str, Any] = {}
        self.create_refusal: Optional[Tuple[int, Dict[str, Any]]] = None
        self.requests: List[httpx.Request] = []
        self._gates: List[Tuple[str, Dict[str, str], asyncio.Event]] = []
        self._codes = iter(["JT5WK6", "QX7P2M", "ZK3L9B", "MM4R8T"])
        self._next_id = 1

    # ------------------------------------------------------------------
    # Test controls
    # ------------------------------------------------------------------
    def hold(self, prefix: str, **params: str) -> asyncio.Event:
        gate = asyncio.Event()
        self._gates.append((prefix, params, gate))
        return gate

    def set_availability(self, unit_id: str, day: str, time_slot: str, areas) -> None:
        self.availability[(unit_id, day, time_slot)] = [dict(a) for a in areas]

    def add_reservation(self, **fields: Any) -> Dict[str, Any]:
        reservation = {
            "id": f"res-{self._next_id}",
            "reservationCode": next(self._codes),
            "status": "AWAITING_CHECKIN",
        }
        self._next_id += 1
        reservation.update(fields)
        self.reservations[reservation["id"]] = reservation
        return reservation

    def paths(self, prefix: str = "") -> List[str]:
        return [r.url.path for r in self.requests if r.url.path.startswith(prefix)]

    def client(self) -> ReservationApiClient:
        return ReservationApiClient(API_BASE, transport=httpx.MockTransport(self.handle))

    # ------------------------------------------------------------------
    # Transport handler
    # ------------------------------------------------------------------
    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        for prefix, wanted, gate in list(self._gates):
            if path.startswith(prefix) and all(
                request.url.params.get(k) == v for k, v in wanted.items()
            ):
                await gate.wait()

        for prefix, failure in self.failures.items():
            if path.startswith(prefix):
                if failure == "network":
                    raise httpx.ConnectError("connection refused", request=request)
                if failure == "timeout":
                    raise httpx.ReadTimeout("timed out", request=request)
                return httpx.Response(failure, json={"message": f"falha {failure}"})

        params = request.url.params

        if path == "/v1/units/public/options/list":
            return httpx.Response(200, json=self.units)

        match = re.fullmatch(r"/v1/areas/public/by-unit/([^/]+)", path)
        if match:
            return httpx.Response(200, json=self.static_areas.get(match.group(1), []))

        if path == "/v1/reservations/public/availability":
            key = (params.get("unitId"), params.get("date"), params.get("time"))
            return httpx.Response(200, json=self.availability.get(key, []))

        if path == "/v1/reservations/public" and request.method == "POST":
            return self._create(json.loads(request.content))

        if path == "/v1/reservations/public/active":
            reservation = self.reservations.get(params.get("id", ""))
            if reservation is None:
                return httpx.Response(404, json={"message": "Reserva não encontrada"})
            return httpx.Response(200, json=reservation)

        if path == "/v1/reservations/lookup":
            found = self._by_code(params.get("code", ""))
            if found is None:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json=found)

        match = re.fullmatch(r"/v1/reservations/code/([^/]+)", path)
        if match:
            found = self._by_code(match.group(1))
            if found is None:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json=found)

        match = re.fullmatch(r"/v1/reservations/([^/]+)/status", path)
        if match:
            reservation = self.reservations.get(match.group(1))
            if reservation is None:
                return httpx.Response(404, json={"message": "not found"})
            return httpx.Response(200, json={"status": reservation["status"]})

        return httpx.Response(404, json={"message": f"no route for {path}"})

    def _create(self, payload: Dict[str, Any]) -> httpx.Response:
        if self.create_refusal is not None:
            status, body = self.create_refusal
            return httpx.Response(status, json=body)

        for existing in self.reservations.values():
            if existing.get("cpf") == payload.get("cpf") and existing["status"] in (
                "PENDING",
                "CONFIRMED",
                "AWAITING_CHECKIN",
            ):
                return httpx.Response(
                    409,
                    json={
                        "errorCode": "ALREADY_HAS_ACTIVE_RESERVATION",
                        "message": "Você já possui uma reserva ativa.",
                        "reservationId": existing["id"],
                    },
                )

        reservation = self.add_reservation(**payload)
        return httpx.Response(
            201,
            json={
                "id": reservation["id"],
                "reservationCode": reservation["reservationCode"],
                "status": reservation["status"],
            },
        )

    def _by_code(self, code: str) -> Optional[Dict[str, Any]]:
        return next(
            (r for r in self.reservations.values() if r["reservationCode"] == code), None
        )
