"""Domain model definitions for the reservation client."""

from .venue import Area, Unit
from .reservation import (
    CachedReservationSnapshot,
    ReservationRecord,
    ReservationStatus,
    SubmissionOutcome,
)

__all__ = [
    "Area",
    "Unit",
    "CachedReservationSnapshot",
    "ReservationRecord",
    "ReservationStatus",
    "SubmissionOutcome",
]
