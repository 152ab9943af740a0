"""Timezone-aware date/time helpers shared by the booking flow and the ticket."""

from __future__ import annotations

from datetime import date, datetime
from typing import Optional, Tuple

import pytz

from tracking import t

from .constants import DEFAULT_TIMEZONE


class DateTimeHelpers:
    """Utility methods for venue-local date parsing and formatting."""

    DEFAULT_TZ = DEFAULT_TIMEZONE

    @staticmethod
    def parse_slot(value: str) -> Optional[Tuple[int, int]]:
        """Return ``(hour, minute)`` for a ``HH:MM`` string, ``None`` when malformed."""
        t('infrastructure.datetime_helpers.DateTimeHelpers.parse_slot')
        if not value or ":" not in value:
            return None
        hour_str, _, minute_str = value.strip().partition(":")
        try:
            hour, minute = int(hour_str), int(minute_str)
        except ValueError:
            return None
        if not (0 <= hour <= 23 and 0 <= minute <= 59):
            return None
        return hour, minute

    @staticmethod
    def now(timezone_str: str = DEFAULT_TZ) -> datetime:
        t('infrastructure.datetime_helpers.DateTimeHelpers.now')
        return datetime.now(pytz.timezone(timezone_str))

    @classmethod
    def today(cls, timezone_str: str = DEFAULT_TZ, now: Optional[datetime] = None) -> date:
        t('infrastructure.datetime_helpers.DateTimeHelpers.today')
        reference = now or cls.now(timezone_str)
        return reference.astimezone(pytz.timezone(timezone_str)).date()

    @classmethod
    def combine_local(
        cls, day: date, slot: str, timezone_str: str = DEFAULT_TZ
    ) -> Optional[datetime]:
        """Localise ``day`` + ``slot`` in the venue timezone."""
        t('infrastructure.datetime_helpers.DateTimeHelpers.combine_local')
        parsed = cls.parse_slot(slot)
        if day is None or parsed is None:
            return None
        hour, minute = parsed
        naive = datetime(day.year, day.month, day.day, hour, minute)
        return pytz.timezone(timezone_str).localize(naive)

    @staticmethod
    def to_utc_iso(value: datetime) -> str:
        """Serialise an aware datetime the way the backend expects (``...000Z``)."""
        t('infrastructure.datetime_helpers.DateTimeHelpers.to_utc_iso')
        return value.astimezone(pytz.utc).strftime("%Y-%m-%dT%H:%M:%S.000Z")

    @classmethod
    def start_of_day_iso(cls, day: date, timezone_str: str = DEFAULT_TZ) -> str:
        t('infrastructure.datetime_helpers.DateTimeHelpers.start_of_day_iso')
        midnight = pytz.timezone(timezone_str).localize(datetime(day.year, day.month, day.day))
        return cls.to_utc_iso(midnight)

    @staticmethod
    def parse_instant(value: Optional[str]) -> Optional[datetime]:
        """Parse an ISO-8601 instant (``Z`` suffix allowed) into an aware UTC datetime."""
        t('infrastructure.datetime_helpers.DateTimeHelpers.parse_instant')
        if not value:
            return None
        raw = str(value).strip()
        if raw.endswith("Z"):
            raw = raw[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = pytz.utc.localize(parsed)
        return parsed.astimezone(pytz.utc)

    @staticmethod
    def parse_br_date(value: Optional[str]) -> Optional[date]:
        """Parse ``DD/MM/YYYY``."""
        t('infrastructure.datetime_helpers.DateTimeHelpers.parse_br_date')
        if not value:
            return None
        try:
            return datetime.strptime(value.strip(), "%d/%m/%Y").date()
        except ValueError:
            return None

    @staticmethod
    def format_br_date(value: date) -> str:
        t('infrastructure.datetime_helpers.DateTimeHelpers.format_br_date')
        return value.strftime("%d/%m/%Y")

    @staticmethod
    def localize_instant(value: datetime, timezone_str: str = DEFAULT_TZ) -> datetime:
        t('infrastructure.datetime_helpers.DateTimeHelpers.localize_instant')
        return value.astimezone(pytz.timezone(timezone_str))
