"""Domain dataclasses for server-side reservations and their local snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from tracking import t

from infrastructure.constants import ACTIVE_STATUSES, CHECKED_IN_STATUS
from infrastructure.datetime_helpers import DateTimeHelpers


class ReservationStatus(Enum):
    """Lifecycle states the client cares about."""

    AWAITING_CHECKIN = "AWAITING_CHECKIN"
    CHECKED_IN = "CHECKED_IN"
    OTHER = "OTHER"

    @classmethod
    def from_raw(cls, raw: Any) -> "ReservationStatus":
        t('reservations.models.reservation.ReservationStatus.from_raw')
        value = str(raw or "").strip().upper()
        if value in ACTIVE_STATUSES:
            return cls.AWAITING_CHECKIN
        if value == CHECKED_IN_STATUS:
            return cls.CHECKED_IN
        return cls.OTHER

    @property
    def is_active(self) -> bool:
        return self is ReservationStatus.AWAITING_CHECKIN


def _split_campaign(value: Any) -> tuple:
    if not value or ":" not in str(value):
        return None, None
    unit_id, _, area_id = str(value).partition(":")
    return unit_id or None, area_id or None


def _as_int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class ReservationRecord:
    """Authoritative reservation as reported by the backend."""

    id: str
    human_code: str
    unit_id: Optional[str]
    unit_label: str
    area_id: Optional[str]
    area_label: str
    reservation_instant: Optional[datetime]
    party_size: int
    child_count: int = 0
    guest_name: str = ""
    guest_cpf: Optional[str] = None
    guest_email: Optional[str] = None
    guest_phone: Optional[str] = None
    status: ReservationStatus = ReservationStatus.AWAITING_CHECKIN
    raw_status: Optional[str] = None

    @classmethod
    def from_payload(
        cls,
        payload: Mapping[str, Any],
        *,
        unit_labels: Optional[Mapping[str, str]] = None,
        area_labels: Optional[Mapping[str, str]] = None,
    ) -> "ReservationRecord":
        """Hydrate a record, resolving missing labels from the supplied lookups."""
        t('reservations.models.reservation.ReservationRecord.from_payload')

        unit_id = payload.get("unitId") or payload.get("unit")
        area_id = payload.get("areaId") or payload.get("area")
        if not unit_id or not area_id:
            campaign_unit, campaign_area = _split_campaign(payload.get("utm_campaign"))
            unit_id = unit_id or campaign_unit
            area_id = area_id or campaign_area

        unit_labels = unit_labels or {}
        area_labels = area_labels or {}
        unit_label = (
            payload.get("unitName")
            or payload.get("unitLabel")
            or (unit_labels.get(str(unit_id)) if unit_id else None)
            or ""
        )
        area_label = (
            payload.get("areaName")
            or payload.get("areaLabel")
            or (area_labels.get(str(area_id)) if area_id else None)
            or ""
        )

        identifier = str(payload.get("id") or payload.get("_id") or "")
        raw_status = payload.get("status")
        return cls(
            id=identifier,
            human_code=str(payload.get("reservationCode") or payload.get("code") or identifier),
            unit_id=str(unit_id) if unit_id else None,
            unit_label=str(unit_label),
            area_id=str(area_id) if area_id else None,
            area_label=str(area_label),
            reservation_instant=DateTimeHelpers.parse_instant(payload.get("reservationDate")),
            party_size=max(1, _as_int(payload.get("people"), 1)),
            child_count=max(0, _as_int(payload.get("kids"), 0)),
            guest_name=str(payload.get("fullName") or ""),
            guest_cpf=payload.get("cpf"),
            guest_email=payload.get("email"),
            guest_phone=payload.get("phone"),
            status=ReservationStatus.from_raw(raw_status),
            raw_status=str(raw_status) if raw_status is not None else None,
        )

    @property
    def is_active(self) -> bool:
        return self.status.is_active


@dataclass(frozen=True)
class CachedReservationSnapshot:
    """Denormalised local copy of a reservation used to resume the UI after reload.

    Advisory only: it is never trusted before the server confirms the
    reservation is still active.
    """

    id: str
    code: str
    qr_url: str
    unit_label: str
    area_name: str
    date_str: str
    time_str: str
    people: int
    kids: int = 0
    full_name: Optional[str] = None
    cpf: Optional[str] = None
    email_hint: Optional[str] = None
    saved_at: Optional[str] = None

    @classmethod
    def from_record(
        cls,
        record: ReservationRecord,
        *,
        qr_url: str,
        timezone_str: str,
        saved_at: Optional[datetime] = None,
    ) -> "CachedReservationSnapshot":
        t('reservations.models.reservation.CachedReservationSnapshot.from_record')
        date_str, time_str = "", ""
        if record.reservation_instant is not None:
            local = DateTimeHelpers.localize_instant(record.reservation_instant, timezone_str)
            date_str = DateTimeHelpers.format_br_date(local.date())
            time_str = local.strftime("%H:%M")
        return cls(
            id=record.id,
            code=record.human_code,
            qr_url=qr_url,
            unit_label=record.unit_label,
            area_name=record.area_label,
            date_str=date_str,
            time_str=time_str,
            people=record.party_size,
            kids=record.child_count,
            full_name=record.guest_name or None,
            cpf=record.guest_cpf,
            email_hint=record.guest_email,
            saved_at=saved_at.isoformat() if saved_at else None,
        )

    def to_storage(self) -> Dict[str, Any]:
        t('reservations.models.reservation.CachedReservationSnapshot.to_storage')
        return {
            "id": self.id,
            "code": self.code,
            "qrUrl": self.qr_url,
            "unitLabel": self.unit_label,
            "areaName": self.area_name,
            "dateStr": self.date_str,
            "timeStr": self.time_str,
            "people": self.people,
            "kids": self.kids,
            "fullName": self.full_name,
            "cpf": self.cpf,
            "emailHint": self.email_hint,
            "savedAt": self.saved_at,
        }

    @classmethod
    def from_storage(cls, payload: Mapping[str, Any]) -> Optional["CachedReservationSnapshot"]:
        """Return ``None`` when the stored entry cannot identify a reservation."""
        t('reservations.models.reservation.CachedReservationSnapshot.from_storage')
        identifier = payload.get("id") if isinstance(payload, Mapping) else None
        if not identifier:
            return None
        return cls(
            id=str(identifier),
            code=str(payload.get("code") or identifier),
            qr_url=str(payload.get("qrUrl") or ""),
            unit_label=str(payload.get("unitLabel") or ""),
            area_name=str(payload.get("areaName") or ""),
            date_str=str(payload.get("dateStr") or ""),
            time_str=str(payload.get("timeStr") or ""),
            people=_as_int(payload.get("people"), 0),
            kids=_as_int(payload.get("kids"), 0),
            full_name=payload.get("fullName"),
            cpf=payload.get("cpf"),
            email_hint=payload.get("emailHint"),
            saved_at=payload.get("savedAt"),
        )


@dataclass(frozen=True)
class SubmissionOutcome:
    """Result of submitting a reservation.

    ``recovered`` is true when the backend refused a duplicate and the
    pre-existing active reservation was adopted instead.
    """

    record: ReservationRecord
    recovered: bool = False
