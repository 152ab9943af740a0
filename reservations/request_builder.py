"""Builders for transforming a wizard selection into the backend reservation payload."""

from __future__ import annotations
from tracking import t

from datetime import date
from typing import TYPE_CHECKING, Any, Dict, Iterable

from infrastructure.constants import ATTRIBUTION_SOURCE
from infrastructure.datetime_helpers import DateTimeHelpers
from infrastructure.settings import BookingPolicy

if TYPE_CHECKING:  # pragma: no cover
    from booking.state import BookingSelection

REQUIRED_SELECTION_FIELDS = ("unit_id", "area_id", "date", "time_slot")


def _only_digits(value: Any) -> str:
    return "".join(c for c in str(value or "") if c.isdigit())


def _ensure_fields(selection: "BookingSelection", required: Iterable[str]) -> None:
    t('reservations.request_builder._ensure_fields')
    missing = [name for name in required if not getattr(selection, name, None)]
    if missing:
        raise ValueError(f"Reservation selection missing required fields: {', '.join(missing)}")


def campaign_tag(unit_id: str, area_id: str) -> str:
    """``<unitId>:<areaId>``, also used later to recover ids from a looked-up record."""
    t('reservations.request_builder.campaign_tag')
    return f"{unit_id}:{area_id}"


def birthday_iso(birthday: date, timezone_str: str) -> str:
    """Start of the birthday in venue time, serialised as a UTC instant."""
    t('reservations.request_builder.birthday_iso')
    return DateTimeHelpers.start_of_day_iso(birthday, timezone_str)


def build_reservation_payload(
    selection: "BookingSelection", policy: BookingPolicy
) -> Dict[str, Any]:
    """Serialize a validated selection into the ``POST /v1/reservations/public`` body."""
    t('reservations.request_builder.build_reservation_payload')

    _ensure_fields(selection, REQUIRED_SELECTION_FIELDS)

    instant = DateTimeHelpers.combine_local(selection.date, selection.time_slot, policy.timezone)
    if instant is None:
        raise ValueError(f"Unsupported time slot: {selection.time_slot!r}")

    payload: Dict[str, Any] = {
        "fullName": selection.full_name.strip(),
        "cpf": _only_digits(selection.cpf),
        "people": selection.party_size,
        "kids": max(0, selection.children),
        "reservationDate": DateTimeHelpers.to_utc_iso(instant),
        "email": selection.email.strip(),
        "phone": _only_digits(selection.phone),
        "unitId": selection.unit_id,
        "areaId": selection.area_id,
        "utm_source": ATTRIBUTION_SOURCE,
        "utm_campaign": campaign_tag(selection.unit_id, selection.area_id),
        "source": ATTRIBUTION_SOURCE,
    }
    if selection.birthday is not None:
        payload["birthdayDate"] = birthday_iso(selection.birthday, policy.timezone)
    return payload


__all__ = ["build_reservation_payload", "campaign_tag", "birthday_iso"]
