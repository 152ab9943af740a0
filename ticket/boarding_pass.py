"""Render-independent data for the check-in ticket."""

from __future__ import annotations
from tracking import t

from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from infrastructure.constants import PLACEHOLDER
from infrastructure.datetime_helpers import DateTimeHelpers
from infrastructure.settings import BookingPolicy
from reservations.models import CachedReservationSnapshot, ReservationRecord

from .codes import derive_area_acronym, derive_unit_code, mask_cpf
from .countdown import (
    CountdownSet,
    compute_countdowns,
    header_color,
    header_label,
    tolerance_badge,
)


@dataclass(frozen=True)
class BoardingPassView:
    reservation_id: str
    code: str
    qr_url: str
    unit_label: str
    unit_code: str
    area_name: str
    area_code: str
    date_str: str
    time_str: str
    people: int
    kids: int
    full_name: str
    masked_cpf: str
    email_hint: Optional[str]
    reservation_instant: Optional[datetime]
    countdowns: Optional[CountdownSet]

    @property
    def header_color(self) -> Optional[str]:
        return header_color(self.countdowns) if self.countdowns else None

    @property
    def header_label(self) -> Optional[str]:
        return header_label(self.countdowns, self.time_str) if self.countdowns else None

    @property
    def tolerance_badge(self) -> Optional[str]:
        return tolerance_badge(self.countdowns) if self.countdowns else None

    def refreshed(self, now: datetime, policy: BookingPolicy) -> "BoardingPassView":
        """Same ticket with countdowns recomputed for ``now``."""
        if self.reservation_instant is None:
            return self
        return replace(
            self, countdowns=compute_countdowns(self.reservation_instant, now, policy)
        )


def build_boarding_pass(
    record: ReservationRecord, now: datetime, policy: BookingPolicy, qr_url: str
) -> BoardingPassView:
    t('ticket.boarding_pass.build_boarding_pass')
    date_str, time_str = "--/--/----", "--:--"
    countdowns = None
    if record.reservation_instant is not None:
        local = DateTimeHelpers.localize_instant(record.reservation_instant, policy.timezone)
        date_str = DateTimeHelpers.format_br_date(local.date())
        time_str = local.strftime("%H:%M")
        countdowns = compute_countdowns(record.reservation_instant, now, policy)

    return BoardingPassView(
        reservation_id=record.id,
        code=record.human_code,
        qr_url=qr_url,
        unit_label=record.unit_label or PLACEHOLDER,
        unit_code=derive_unit_code(record.unit_label),
        area_name=record.area_label or PLACEHOLDER,
        area_code=derive_area_acronym(record.area_label),
        date_str=date_str,
        time_str=time_str,
        people=record.party_size,
        kids=record.child_count,
        full_name=record.guest_name,
        masked_cpf=mask_cpf(record.guest_cpf),
        email_hint=record.guest_email,
        reservation_instant=record.reservation_instant,
        countdowns=countdowns,
    )


def boarding_pass_from_snapshot(
    snapshot: CachedReservationSnapshot, now: datetime, policy: BookingPolicy
) -> BoardingPassView:
    """Ticket from the cached copy, with the instant read as venue-local date and time."""
    t('ticket.boarding_pass.boarding_pass_from_snapshot')
    day = DateTimeHelpers.parse_br_date(snapshot.date_str)
    instant = (
        DateTimeHelpers.combine_local(day, snapshot.time_str, policy.timezone) if day else None
    )
    return BoardingPassView(
        reservation_id=snapshot.id,
        code=snapshot.code,
        qr_url=snapshot.qr_url,
        unit_label=snapshot.unit_label or PLACEHOLDER,
        unit_code=derive_unit_code(snapshot.unit_label),
        area_name=snapshot.area_name or PLACEHOLDER,
        area_code=derive_area_acronym(snapshot.area_name),
        date_str=snapshot.date_str or "--/--/----",
        time_str=snapshot.time_str or "--:--",
        people=snapshot.people,
        kids=snapshot.kids,
        full_name=snapshot.full_name or "",
        masked_cpf=mask_cpf(snapshot.cpf),
        email_hint=snapshot.email_hint,
        reservation_instant=instant,
        countdowns=compute_countdowns(instant, now, policy) if instant else None,
    )


__all__ = ["BoardingPassView", "build_boarding_pass", "boarding_pass_from_snapshot"]
