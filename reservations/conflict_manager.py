"""Reservation submission with duplicate-reservation recovery."""

from __future__ import annotations
from tracking import t

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Mapping, Optional

import pytz

from booking import messages
from booking.errors import CapacityError, SubmissionError
from infrastructure.constants import ALREADY_HAS_ACTIVE_RESERVATION, NO_CAPACITY
from infrastructure.datetime_helpers import DateTimeHelpers
from infrastructure.settings import BookingPolicy
from reservations.api import ApiError, ReservationApiClient
from reservations.models import (
    CachedReservationSnapshot,
    ReservationRecord,
    ReservationStatus,
    SubmissionOutcome,
)
from reservations.request_builder import build_reservation_payload
from reservations.snapshot_repository import ReservationSnapshotRepository

if TYPE_CHECKING:  # pragma: no cover
    from booking.state import BookingSelection

CAPACITY_HINTS = ("capacidade", "capacity")


def is_capacity_refusal(error: ApiError) -> bool:
    t('reservations.conflict_manager.is_capacity_refusal')
    if error.error_code == NO_CAPACITY:
        return True
    text = (error.message or "").lower()
    return NO_CAPACITY.lower() in text or any(hint in text for hint in CAPACITY_HINTS)


def existing_reservation_id(error: ApiError) -> Optional[str]:
    """Id of the reservation named by an ALREADY_HAS_ACTIVE_RESERVATION refusal."""
    t('reservations.conflict_manager.existing_reservation_id')
    payload = error.payload if isinstance(error.payload, dict) else {}
    candidate = payload.get("reservationId")
    if candidate is None and isinstance(payload.get("error"), dict):
        candidate = payload["error"].get("reservationId")
    return str(candidate) if candidate else None


class ReservationConflictManager:
    """Submit reservations, adopting the guest's existing active one on conflict.

    Submitting the same selection twice resolves to the same reservation:
    the second POST is refused with 409 and the refusal names the id the
    first one created.
    """

    def __init__(
        self,
        client: ReservationApiClient,
        snapshots: ReservationSnapshotRepository,
        policy: BookingPolicy,
        *,
        logger: Optional[logging.Logger] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        t('reservations.conflict_manager.ReservationConflictManager.__init__')
        self.client = client
        self.snapshots = snapshots
        self.policy = policy
        self.logger = logger or logging.getLogger('ReservationConflictManager')
        self._clock = clock or (lambda: datetime.now(pytz.utc))

    async def submit(
        self,
        selection: "BookingSelection",
        *,
        unit_labels: Optional[Mapping[str, str]] = None,
        area_labels: Optional[Mapping[str, str]] = None,
    ) -> SubmissionOutcome:
        t('reservations.conflict_manager.ReservationConflictManager.submit')

        payload = build_reservation_payload(selection, self.policy)
        unit_labels = dict(unit_labels or {})
        area_labels = dict(area_labels or {})

        self.logger.info(
            f"""Submitting reservation
            Unit: {selection.unit_id}
            Area: {selection.area_id}
            When: {payload['reservationDate']}
            People: {payload['people']} (kids: {payload['kids']})"""
        )

        try:
            response = await self.client.create_reservation(payload)
        except ApiError as exc:
            return await self._handle_refusal(exc, unit_labels, area_labels)

        created_id = str(response.get("id") or "")
        if not created_id:
            self.logger.error("Reservation created without an id: %s", response)
            raise SubmissionError(messages.SUBMISSION_FALLBACK)

        record = await self._fetch_authoritative(created_id, unit_labels, area_labels)
        if record is None:
            record = self._record_from_submission(response, selection, unit_labels, area_labels)

        self._remember(record)
        self.logger.info(
            f"""Reservation created
            ID: {record.id}
            Code: {record.human_code}
            Status: {record.raw_status}"""
        )
        return SubmissionOutcome(record=record, recovered=False)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _handle_refusal(
        self,
        exc: ApiError,
        unit_labels: Mapping[str, str],
        area_labels: Mapping[str, str],
    ) -> SubmissionOutcome:
        t('reservations.conflict_manager.ReservationConflictManager._handle_refusal')

        if exc.is_transport_failure:
            self.logger.warning("Reservation submission did not reach the server: %s", exc.message)
            raise SubmissionError(messages.NETWORK_RETRY) from exc

        if exc.status == 409 and exc.error_code == ALREADY_HAS_ACTIVE_RESERVATION:
            existing_id = existing_reservation_id(exc)
            if existing_id:
                record = await self._fetch_authoritative(existing_id, unit_labels, area_labels)
                if record is not None:
                    self._remember(record)
                    self.logger.info(
                        f"""Adopted existing active reservation
                        ID: {record.id}
                        Code: {record.human_code}"""
                    )
                    return SubmissionOutcome(record=record, recovered=True)
            self.logger.warning(
                "Active-reservation conflict could not be resolved (id=%s)", existing_id
            )
            raise SubmissionError(exc.message or messages.SUBMISSION_FALLBACK) from exc

        if is_capacity_refusal(exc):
            self.logger.info("Reservation refused for capacity: %s", exc.message)
            raise CapacityError(messages.NO_CAPACITY) from exc

        self.logger.warning("Reservation refused (HTTP %s): %s", exc.status, exc.message)
        raise SubmissionError(exc.message or messages.SUBMISSION_FALLBACK) from exc

    async def _fetch_authoritative(
        self,
        reservation_id: str,
        unit_labels: Mapping[str, str],
        area_labels: Mapping[str, str],
    ) -> Optional[ReservationRecord]:
        t('reservations.conflict_manager.ReservationConflictManager._fetch_authoritative')
        try:
            payload = await self.client.fetch_active_reservation(reservation_id)
        except ApiError as exc:
            self.logger.warning(
                "Could not fetch reservation %s after submit: %s", reservation_id, exc.message
            )
            return None
        if not payload:
            return None
        record = ReservationRecord.from_payload(
            payload, unit_labels=unit_labels, area_labels=area_labels
        )
        return record if record.id else None

    def _record_from_submission(
        self,
        response: Mapping[str, Any],
        selection: "BookingSelection",
        unit_labels: Mapping[str, str],
        area_labels: Mapping[str, str],
    ) -> ReservationRecord:
        """Ticket built from the POST answer plus what the guest selected."""
        t('reservations.conflict_manager.ReservationConflictManager._record_from_submission')
        instant = DateTimeHelpers.combine_local(
            selection.date, selection.time_slot, self.policy.timezone
        )
        raw_status = response.get("status") or ReservationStatus.AWAITING_CHECKIN.value
        return ReservationRecord(
            id=str(response["id"]),
            human_code=str(response.get("reservationCode") or response["id"]),
            unit_id=selection.unit_id,
            unit_label=unit_labels.get(selection.unit_id or "", ""),
            area_id=selection.area_id,
            area_label=area_labels.get(selection.area_id or "", ""),
            reservation_instant=instant.astimezone(pytz.utc) if instant else None,
            party_size=selection.party_size,
            child_count=max(0, selection.children),
            guest_name=selection.full_name.strip(),
            guest_cpf=selection.cpf or None,
            guest_email=selection.email.strip() or None,
            guest_phone=selection.phone or None,
            status=ReservationStatus.from_raw(raw_status),
            raw_status=str(raw_status),
        )

    def _remember(self, record: ReservationRecord) -> None:
        t('reservations.conflict_manager.ReservationConflictManager._remember')
        snapshot = CachedReservationSnapshot.from_record(
            record,
            qr_url=self.client.qrcode_url(record.id),
            timezone_str=self.policy.timezone,
            saved_at=self._clock(),
        )
        self.snapshots.save(snapshot)


__all__ = [
    "ReservationConflictManager",
    "is_capacity_refusal",
    "existing_reservation_id",
]
