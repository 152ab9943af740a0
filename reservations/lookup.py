"""Find a reservation by its human code."""

from __future__ import annotations
from tracking import t

import logging
from dataclasses import replace
from typing import Mapping, Optional

from booking import messages
from booking.errors import BookingError
from infrastructure.constants import (
    DEFAULT_UNIT_LABEL,
    FALLBACK_AREA_LABELS,
    FALLBACK_UNIT_LABELS,
    PLACEHOLDER,
)
from reservations.api import ApiError, ReservationApiClient
from reservations.models import ReservationRecord


class ReservationNotFound(BookingError, LookupError):
    def __init__(self, message: str = messages.LOOKUP_NOT_FOUND) -> None:
        super().__init__(message)


class ReservationLookupFailed(BookingError):
    def __init__(self, message: str = messages.LOOKUP_FAILED) -> None:
        super().__init__(message)


def normalize_code(code: Optional[str]) -> str:
    t('reservations.lookup.normalize_code')
    return (code or "").strip().upper()


class ReservationLookup:
    """Resolve ``JT5WK6``-style codes into reservation records.

    The query endpoint is tried first; a 404 there falls back to the
    path-style endpoint before the reservation is reported missing.
    """

    def __init__(
        self,
        client: ReservationApiClient,
        *,
        unit_labels: Optional[Mapping[str, str]] = None,
        area_labels: Optional[Mapping[str, str]] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('reservations.lookup.ReservationLookup.__init__')
        self.client = client
        self.unit_labels = dict(FALLBACK_UNIT_LABELS if unit_labels is None else unit_labels)
        self.area_labels = dict(FALLBACK_AREA_LABELS if area_labels is None else area_labels)
        self.logger = logger or logging.getLogger('ReservationLookup')

    async def find_by_code(self, code: str) -> ReservationRecord:
        t('reservations.lookup.ReservationLookup.find_by_code')

        normalized = normalize_code(code)
        if not normalized:
            raise ReservationLookupFailed(messages.LOOKUP_CODE_REQUIRED)

        try:
            payload = await self._fetch(normalized)
        except ApiError as exc:
            if exc.status == 404:
                self.logger.info("Reservation code %s not found", normalized)
                raise ReservationNotFound() from exc
            self.logger.warning("Lookup for %s failed: %s", normalized, exc.message)
            raise ReservationLookupFailed() from exc

        if not payload:
            raise ReservationNotFound()

        record = ReservationRecord.from_payload(
            payload, unit_labels=self.unit_labels, area_labels=self.area_labels
        )
        return self._with_display_defaults(record, normalized)

    async def _fetch(self, code: str) -> dict:
        t('reservations.lookup.ReservationLookup._fetch')
        try:
            return await self.client.lookup_reservation(code)
        except ApiError as exc:
            if exc.status != 404:
                raise
            self.logger.debug("Lookup endpoint returned 404 for %s; trying by-code path", code)
        return await self.client.fetch_reservation_by_code(code)

    @staticmethod
    def _with_display_defaults(record: ReservationRecord, code: str) -> ReservationRecord:
        return replace(
            record,
            human_code=record.human_code or code,
            unit_label=record.unit_label or DEFAULT_UNIT_LABEL,
            area_label=record.area_label or PLACEHOLDER,
        )


__all__ = [
    "ReservationLookup",
    "ReservationNotFound",
    "ReservationLookupFailed",
    "normalize_code",
]
