"""Composition root: wire settings, backend client and repositories into a wizard."""

from __future__ import annotations
from tracking import t

import logging
from typing import Optional

import httpx

import tracking
from infrastructure.settings import AppSettings, get_settings
from logging_config import setup_logging
from reservations.api import ReservationApiClient
from reservations.snapshot_repository import ReservationSnapshotRepository

from .wizard import BookingWizard


def build_wizard(
    settings: Optional[AppSettings] = None,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
    configure_logging: bool = False,
) -> BookingWizard:
    """Create a ready-to-start :class:`BookingWizard` for ``settings``."""
    t('booking.bootstrap.build_wizard')

    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings.log_directory, production_mode=settings.production_mode)
    if settings.tracking_file:
        tracking.configure(settings.tracking_file)

    logger = logging.getLogger('Bootstrap')
    logger.info(
        f"""Building booking wizard
        API: {settings.api_base}
        Timezone: {settings.policy.timezone}
        Slots: {', '.join(settings.policy.allowed_slots)}
        Snapshot file: {settings.snapshot_file}"""
    )

    client = ReservationApiClient(
        settings.api_base,
        timeout_seconds=settings.api_timeout_seconds,
        transport=transport,
    )
    snapshots = ReservationSnapshotRepository(settings.snapshot_file)
    return BookingWizard(
        client,
        settings.policy,
        snapshots=snapshots,
        probe_delay_seconds=settings.probe_delay_seconds,
    )
