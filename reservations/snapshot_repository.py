"""Persistence for the locally cached reservation snapshot."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from tracking import t

from infrastructure.constants import SNAPSHOT_KEY
from reservations.api import ApiError, ReservationApiClient
from reservations.models import CachedReservationSnapshot, ReservationRecord


class ValidationOutcome(Enum):
    ACTIVE = "active"
    DISCARDED = "discarded"
    UNVERIFIED = "unverified"
    EMPTY = "empty"


@dataclass(frozen=True)
class SnapshotValidation:
    outcome: ValidationOutcome
    snapshot: Optional[CachedReservationSnapshot] = None
    record: Optional[ReservationRecord] = None


class ReservationSnapshotRepository:
    """Read/write the last reservation snapshot to a JSON key-value file.

    The file holds a single object keyed by ``mane:lastReservation`` so other
    keys written next to it survive a save or clear.
    """

    def __init__(self, file_path: str, *, logger: Optional[Any] = None) -> None:
        t('reservations.snapshot_repository.ReservationSnapshotRepository.__init__')
        self._path = Path(file_path)
        self._logger = logger or logging.getLogger('ReservationSnapshotRepository')

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> Optional[CachedReservationSnapshot]:
        """Return the stored snapshot; corrupt or id-less entries are removed."""

        t('reservations.snapshot_repository.ReservationSnapshotRepository.load')
        store = self._read_store()
        raw = store.get(SNAPSHOT_KEY)
        if raw is None:
            return None

        snapshot = CachedReservationSnapshot.from_storage(raw) if isinstance(raw, dict) else None
        if snapshot is None:
            self._logger.warning(
                "Discarding unusable reservation snapshot in %s", self._path
            )
            self.clear()
        return snapshot

    def save(self, snapshot: CachedReservationSnapshot) -> None:
        """Persist ``snapshot``, ensuring parent directories exist."""

        t('reservations.snapshot_repository.ReservationSnapshotRepository.save')
        store = self._read_store()
        store[SNAPSHOT_KEY] = snapshot.to_storage()
        self._write_store(store)
        self._logger.debug("Reservation snapshot %s saved to %s", snapshot.id, self._path)

    def clear(self) -> None:
        t('reservations.snapshot_repository.ReservationSnapshotRepository.clear')
        store = self._read_store()
        if store.pop(SNAPSHOT_KEY, None) is None and not self._path.exists():
            return
        self._write_store(store)
        self._logger.debug("Reservation snapshot cleared from %s", self._path)

    async def validate_against_server(self, client: ReservationApiClient) -> SnapshotValidation:
        """Ask the backend whether the cached reservation is still active.

        A 4xx answer or an inactive status discards the snapshot. Timeouts,
        transport failures and 5xx answers keep it and report UNVERIFIED.
        """
        t('reservations.snapshot_repository.ReservationSnapshotRepository.validate_against_server')

        snapshot = self.load()
        if snapshot is None:
            return SnapshotValidation(ValidationOutcome.EMPTY)

        try:
            payload = await client.fetch_active_reservation(snapshot.id)
        except ApiError as exc:
            if exc.is_definitive_refusal:
                self._logger.info(
                    "Cached reservation %s no longer active (HTTP %s); clearing",
                    snapshot.id,
                    exc.status,
                )
                self.clear()
                return SnapshotValidation(ValidationOutcome.DISCARDED, snapshot)
            self._logger.warning(
                "Could not verify cached reservation %s: %s", snapshot.id, exc.message
            )
            return SnapshotValidation(ValidationOutcome.UNVERIFIED, snapshot)

        record = ReservationRecord.from_payload(
            payload,
            unit_labels={str(payload.get("unitId") or ""): snapshot.unit_label},
            area_labels={str(payload.get("areaId") or ""): snapshot.area_name},
        )
        if not record.id:
            record = _with_id(record, snapshot)

        if not record.is_active:
            self._logger.info(
                "Cached reservation %s reported status %s; clearing",
                snapshot.id,
                record.raw_status,
            )
            self.clear()
            return SnapshotValidation(ValidationOutcome.DISCARDED, snapshot, record)

        self._logger.info(
            f"""Cached reservation confirmed active
            ID: {record.id}
            Code: {record.human_code}
            Status: {record.raw_status}"""
        )
        return SnapshotValidation(ValidationOutcome.ACTIVE, snapshot, record)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _read_store(self) -> Dict[str, Any]:
        t('reservations.snapshot_repository.ReservationSnapshotRepository._read_store')
        if not self._path.exists():
            return {}
        try:
            with self._path.open('r', encoding='utf-8') as handle:
                payload = json.load(handle)
        except (OSError, ValueError) as exc:
            self._logger.warning("Failed to read snapshot store %s: %s", self._path, exc)
            return {}
        if not isinstance(payload, dict):
            self._logger.warning(
                "Invalid snapshot store format in %s; expected object, received %s",
                self._path,
                type(payload).__name__,
            )
            return {}
        return payload

    def _write_store(self, store: Dict[str, Any]) -> None:
        t('reservations.snapshot_repository.ReservationSnapshotRepository._write_store')
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open('w', encoding='utf-8') as handle:
                json.dump(store, handle, indent=2, ensure_ascii=False)
        except OSError as exc:
            self._logger.error("Failed to write snapshot store %s: %s", self._path, exc)


def _with_id(record: ReservationRecord, snapshot: CachedReservationSnapshot) -> ReservationRecord:
    return replace(record, id=snapshot.id, human_code=record.human_code or snapshot.code)


__all__ = [
    "ReservationSnapshotRepository",
    "SnapshotValidation",
    "ValidationOutcome",
]
