"""Centralized application settings.

All runtime configuration is read here, once, from the environment (and a
``.env`` file during development). Components receive the resulting frozen
dataclasses instead of calling ``os.getenv`` themselves.
"""

from __future__ import annotations
from tracking import t

import os
from dataclasses import dataclass
from datetime import time
from functools import lru_cache
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from . import constants as booking_constants


def _to_bool(value: Optional[str], default: bool = False) -> bool:
    """Normalize environment strings such as "true"/"1" into booleans."""
    t('infrastructure.settings._to_bool')

    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _to_float(value: Optional[str], default: float) -> float:
    t('infrastructure.settings._to_float')
    try:
        return float(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        return default


def _to_int(value: Optional[str], default: int) -> int:
    t('infrastructure.settings._to_int')
    try:
        return int(value) if value not in (None, "") else default
    except (TypeError, ValueError):
        return default


def parse_clock(value: str) -> time:
    """Parse ``HH:MM`` into a :class:`datetime.time`."""
    t('infrastructure.settings.parse_clock')

    hour_str, minute_str = value.strip().split(":")
    return time(int(hour_str), int(minute_str))


def _parse_slots(raw: Optional[str], profile: str) -> Tuple[str, ...]:
    t('infrastructure.settings._parse_slots')
    if raw:
        slots = []
        for chunk in raw.split(","):
            chunk = chunk.strip()
            if not chunk:
                continue
            parsed = parse_clock(chunk)
            slots.append(parsed.strftime("%H:%M"))
        if slots:
            return tuple(slots)
    return tuple(booking_constants.get_slot_profile(profile))


@dataclass(frozen=True)
class BookingPolicy:
    """Business rules of the booking flow that differ between deployments."""

    allowed_slots: Tuple[str, ...] = booking_constants.STANDARD_TIME_SLOTS
    opening_time: time = time(12, 0)
    closing_time: time = time(21, 30)
    large_group_threshold: int = booking_constants.LARGE_GROUP_THRESHOLD
    tolerance_minutes: int = booking_constants.TOLERANCE_MINUTES
    guest_window_minutes: int = booking_constants.GUEST_WINDOW_MINUTES
    birthday_required: bool = True
    timezone: str = booking_constants.DEFAULT_TIMEZONE


@dataclass(frozen=True)
class AppSettings:
    """Immutable snapshot of high-level configuration values."""

    api_base: str
    api_timeout_seconds: float
    production_mode: bool
    data_directory: str
    snapshot_file: str
    log_directory: str
    probe_delay_seconds: float
    status_poll_seconds: float
    tracking_file: Optional[str]
    policy: BookingPolicy


def load_policy(env: Mapping[str, str]) -> BookingPolicy:
    """Build the :class:`BookingPolicy` from an environment mapping."""
    t('infrastructure.settings.load_policy')

    slots = _parse_slots(env.get("ALLOWED_TIME_SLOTS"), env.get("SLOT_PROFILE", "standard"))
    return BookingPolicy(
        allowed_slots=slots,
        opening_time=parse_clock(env.get("OPENING_TIME", booking_constants.OPENING_TIME)),
        closing_time=parse_clock(env.get("CLOSING_TIME", booking_constants.CLOSING_TIME)),
        large_group_threshold=_to_int(
            env.get("LARGE_GROUP_THRESHOLD"), booking_constants.LARGE_GROUP_THRESHOLD
        ),
        tolerance_minutes=_to_int(env.get("TOLERANCE_MINUTES"), booking_constants.TOLERANCE_MINUTES),
        guest_window_minutes=_to_int(
            env.get("GUEST_WINDOW_MINUTES"), booking_constants.GUEST_WINDOW_MINUTES
        ),
        birthday_required=_to_bool(env.get("BIRTHDAY_REQUIRED"), default=True),
        timezone=env.get("VENUE_TIMEZONE", booking_constants.DEFAULT_TIMEZONE),
    )


def load_settings(env: Optional[Mapping[str, str]] = None) -> AppSettings:
    """Load configuration from the environment and fall back to defaults."""
    t('infrastructure.settings.load_settings')

    if env is None:
        load_dotenv(override=False)
        env = os.environ

    data_directory = env.get("DATA_DIRECTORY", "data")
    snapshot_file = env.get(
        "SNAPSHOT_FILE",
        os.path.join(data_directory, "last_reservation.json"),
    )

    return AppSettings(
        api_base=env.get("API_BASE", booking_constants.DEFAULT_API_BASE).strip()
        or booking_constants.DEFAULT_API_BASE,
        api_timeout_seconds=_to_float(
            env.get("API_TIMEOUT_SECONDS"), booking_constants.DEFAULT_TIMEOUT_SECONDS
        ),
        production_mode=_to_bool(env.get("PRODUCTION_MODE"), default=False),
        data_directory=data_directory,
        snapshot_file=snapshot_file,
        log_directory=env.get("LOG_DIRECTORY", os.path.join("logs", "latest_log")),
        probe_delay_seconds=_to_float(
            env.get("PROBE_DELAY_SECONDS"), booking_constants.PROBE_DELAY_SECONDS
        ),
        status_poll_seconds=_to_float(
            env.get("STATUS_POLL_SECONDS"), booking_constants.STATUS_POLL_SECONDS
        ),
        tracking_file=env.get("TRACKING_FILE") or None,
        policy=load_policy(env),
    )


@lru_cache(maxsize=1)
def get_settings() -> AppSettings:
    """Return a cached :class:`AppSettings` instance."""
    t('infrastructure.settings.get_settings')

    return load_settings()
