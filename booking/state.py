"""State containers owned by the booking wizard."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from enum import IntEnum
from typing import Dict, List, Optional

from infrastructure.constants import DEFAULT_ADULTS, DEFAULT_CHILDREN, PROGRESS_TARGETS
from reservations.models import Area, ReservationRecord, Unit


class WizardStep(IntEnum):
    DATE_TIME = 0
    AREA = 1
    GUEST_INFO = 2
    CONFIRMED = 3

    @property
    def progress(self) -> int:
        return PROGRESS_TARGETS[int(self)]


@dataclass
class BookingSelection:
    """What the guest has picked so far. Mutated only by the wizard."""

    unit_id: Optional[str] = None
    adults: int = DEFAULT_ADULTS
    children: int = DEFAULT_CHILDREN
    date: Optional[date] = None
    time_slot: Optional[str] = None
    area_id: Optional[str] = None
    full_name: str = ""
    cpf: str = ""
    email: str = ""
    phone: str = ""
    birthday: Optional[date] = None

    @property
    def party_size(self) -> int:
        return max(1, self.adults + self.children)


@dataclass
class WizardState:
    """Everything a UI needs to render the current wizard screen."""

    step: WizardStep = WizardStep.DATE_TIME
    selection: BookingSelection = field(default_factory=BookingSelection)
    units: List[Unit] = field(default_factory=list)
    areas: List[Area] = field(default_factory=list)
    field_errors: Dict[str, str] = field(default_factory=dict)
    step_error: Optional[str] = None
    units_error: Optional[str] = None
    areas_error: Optional[str] = None
    loading_units: bool = False
    loading_areas: bool = False
    progress: int = PROGRESS_TARGETS[0]
    large_group_contact_required: bool = False
    submitting: bool = False
    confirmed: Optional[ReservationRecord] = None
    recovered_existing: bool = False

    def unit(self, unit_id: Optional[str] = None) -> Optional[Unit]:
        wanted = unit_id if unit_id is not None else self.selection.unit_id
        return next((u for u in self.units if u.id == wanted), None)

    def area(self, area_id: Optional[str] = None) -> Optional[Area]:
        wanted = area_id if area_id is not None else self.selection.area_id
        return next((a for a in self.areas if a.id == wanted), None)
