"""
Booking wizard controller
Drives the DATE_TIME -> AREA -> GUEST_INFO -> CONFIRMED flow over a WizardState
"""
from __future__ import annotations
from tracking import t

import logging
from datetime import date, datetime
from typing import Any, Callable, Dict, List, Optional

from infrastructure.datetime_helpers import DateTimeHelpers
from infrastructure.settings import BookingPolicy
from monitoring.availability_resolver import AvailabilityResolver, reselect_area
from monitoring.calendar_probe import CalendarProbe
from reservations.api import ApiError, ReservationApiClient
from reservations.conflict_manager import ReservationConflictManager
from reservations.models import Unit
from reservations.snapshot_repository import (
    ReservationSnapshotRepository,
    SnapshotValidation,
    ValidationOutcome,
)
from ticket.boarding_pass import BoardingPassView, build_boarding_pass

from . import messages
from .error_handler import ErrorHandler
from .feedback import SubmissionFeedback
from .state import WizardState, WizardStep
from .validation import ValidationHelpers

StepListener = Callable[[WizardStep], None]

_UNSET: Any = object()


class BookingWizard:
    """
    Guided booking state machine

    Setters mutate the selection, recompute the field errors and re-resolve the
    seating areas. Forward transitions are guarded; ``back()`` is the only way
    to move backwards. Async results that arrive after newer inputs are
    dropped by the resolver's generation tickets.
    """

    def __init__(
        self,
        client: ReservationApiClient,
        policy: BookingPolicy,
        *,
        snapshots: ReservationSnapshotRepository,
        conflicts: Optional[ReservationConflictManager] = None,
        resolver: Optional[AvailabilityResolver] = None,
        feedback: Optional[SubmissionFeedback] = None,
        clock: Optional[Callable[[], datetime]] = None,
        probe_delay_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('booking.wizard.BookingWizard.__init__')
        self.client = client
        self.policy = policy
        self.snapshots = snapshots
        self.logger = logger or logging.getLogger('BookingWizard')
        self._clock = clock or (lambda: DateTimeHelpers.now(policy.timezone))
        self.conflicts = conflicts or ReservationConflictManager(
            client, snapshots, policy, clock=self._clock
        )
        self.resolver = resolver or AvailabilityResolver(client)
        self.feedback = feedback or SubmissionFeedback()
        self.probe_delay_seconds = probe_delay_seconds
        self.state = WizardState()
        self._listeners: List[StepListener] = []
        self._units_ticket = 0
        self._probe: Optional[CalendarProbe] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> SnapshotValidation:
        """Resume a still-active cached reservation, then load the units."""
        t('booking.wizard.BookingWizard.start')

        validation = await self.snapshots.validate_against_server(self.client)
        if validation.outcome is ValidationOutcome.ACTIVE and validation.record is not None:
            self.state.confirmed = validation.record
            self._enter(WizardStep.CONFIRMED)
            self.logger.info(
                f"""Resumed active reservation
                ID: {validation.record.id}
                Code: {validation.record.human_code}"""
            )
        elif validation.outcome is ValidationOutcome.UNVERIFIED:
            self.logger.info("Cached reservation could not be verified; starting wizard")

        await self.load_units()
        return validation

    async def close(self) -> None:
        t('booking.wizard.BookingWizard.close')
        await self.feedback.stop()
        if self._probe is not None:
            await self._probe.close()

    def add_step_listener(self, listener: StepListener) -> None:
        self._listeners.append(listener)

    async def load_units(self) -> None:
        t('booking.wizard.BookingWizard.load_units')
        self._units_ticket += 1
        ticket = self._units_ticket
        self.state.loading_units = True
        self.state.units_error = None
        try:
            payloads = await self.client.fetch_units()
        except ApiError as exc:
            if ticket != self._units_ticket:
                return
            self.state.units_error = ErrorHandler.handle_load_error(
                'units', exc, messages.UNITS_LOAD_FAILED
            )
            self.state.units = []
            self.state.selection.unit_id = None
        else:
            if ticket != self._units_ticket:
                return
            self.state.units = [Unit.from_payload(p) for p in payloads]
        finally:
            if ticket == self._units_ticket:
                self.state.loading_units = False

    # ------------------------------------------------------------------
    # Selection setters
    # ------------------------------------------------------------------
    async def select_unit(self, unit_id: Optional[str]) -> None:
        t('booking.wizard.BookingWizard.select_unit')
        self.state.selection.unit_id = unit_id or None
        self.state.field_errors.pop('unit', None)
        self._sync_probe()
        await self.refresh_areas()

    async def set_party(self, adults: Any = _UNSET, children: Any = _UNSET) -> None:
        t('booking.wizard.BookingWizard.set_party')
        selection = self.state.selection
        if adults is not _UNSET:
            raw_adults = ValidationHelpers.coerce_count(adults, 0)
            if raw_adults < 1:
                self.state.field_errors['adults'] = messages.PARTY_TOO_SMALL
            else:
                self.state.field_errors.pop('adults', None)
            selection.adults = max(1, raw_adults)
        if children is not _UNSET:
            selection.children = ValidationHelpers.coerce_count(children, 0)
        self._sync_probe()
        await self.refresh_areas()

    async def select_date(self, day: Optional[date]) -> None:
        t('booking.wizard.BookingWizard.select_date')
        self.state.selection.date = day
        self._recompute_schedule_errors()
        await self.refresh_areas()

    async def select_time(self, time_slot: Optional[str]) -> None:
        t('booking.wizard.BookingWizard.select_time')
        self.state.selection.time_slot = (time_slot or '').strip() or None
        self._recompute_schedule_errors()
        self._sync_probe()
        await self.refresh_areas()

    def select_area(self, area_id: str) -> bool:
        """Select ``area_id`` only when it can seat the whole party."""
        t('booking.wizard.BookingWizard.select_area')
        area = self.state.area(area_id)
        if area is None:
            self.state.field_errors['area'] = messages.AREA_REQUIRED
            return False
        if not area.fits(self.state.selection.party_size):
            self.state.field_errors['area'] = messages.AREA_SOLD_OUT
            return False
        self.state.selection.area_id = area.id
        self.state.field_errors.pop('area', None)
        return True

    def set_guest_info(
        self,
        *,
        full_name: Optional[str] = None,
        cpf: Optional[str] = None,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        birthday: Any = _UNSET,
    ) -> None:
        t('booking.wizard.BookingWizard.set_guest_info')
        selection = self.state.selection
        if full_name is not None:
            selection.full_name = full_name
        if cpf is not None:
            selection.cpf = ValidationHelpers.only_digits(cpf)[:11]
        if email is not None:
            selection.email = email
        if phone is not None:
            selection.phone = ValidationHelpers.only_digits(phone)[:11]
        if birthday is not _UNSET:
            selection.birthday = birthday

    async def refresh_areas(self) -> bool:
        """Re-resolve areas for the current inputs. Returns False when superseded."""
        t('booking.wizard.BookingWizard.refresh_areas')
        selection = self.state.selection
        self.state.loading_areas = True
        resolution = await self.resolver.resolve(
            selection.unit_id,
            selection.date,
            self._committed_time(),
            selection.party_size,
            selection.area_id,
        )
        if resolution.stale:
            return False

        # The guest may have picked an area while the fetch was in flight
        if resolution.scoped:
            selection.area_id = reselect_area(
                resolution.areas, selection.party_size, selection.area_id
            )
        elif not any(area.id == selection.area_id for area in resolution.areas):
            selection.area_id = None
        self.state.areas = resolution.areas
        self.state.areas_error = resolution.error
        self.state.loading_areas = False
        return True

    # ------------------------------------------------------------------
    # Derived enablement
    # ------------------------------------------------------------------
    @property
    def can_continue_date_time(self) -> bool:
        return not self._date_time_errors()

    @property
    def can_continue_area(self) -> bool:
        area = self.state.area()
        return area is not None and area.fits(self.state.selection.party_size)

    @property
    def can_finish(self) -> bool:
        return not self._guest_errors()

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------
    def continue_from_date_time(self) -> bool:
        t('booking.wizard.BookingWizard.continue_from_date_time')
        if self.state.step is not WizardStep.DATE_TIME:
            return False

        errors = self._date_time_errors()
        if errors:
            self.state.field_errors.update(errors)
            return False

        party_size = self.state.selection.party_size
        if party_size > self.policy.large_group_threshold:
            self.state.large_group_contact_required = True
            self.logger.info(
                "Large group of %s exceeds threshold %s; contact required",
                party_size,
                self.policy.large_group_threshold,
            )
            return False

        self.state.step_error = None
        self._enter(WizardStep.AREA)
        return True

    def dismiss_large_group_notice(self) -> None:
        self.state.large_group_contact_required = False

    def continue_from_area(self) -> bool:
        t('booking.wizard.BookingWizard.continue_from_area')
        if self.state.step is not WizardStep.AREA:
            return False
        if not self.can_continue_area:
            self.state.field_errors['area'] = (
                messages.AREA_REQUIRED if self.state.area() is None else messages.AREA_SOLD_OUT
            )
            return False
        self.state.field_errors.pop('area', None)
        self.state.step_error = None
        self._enter(WizardStep.GUEST_INFO)
        return True

    def back(self) -> bool:
        t('booking.wizard.BookingWizard.back')
        previous = {
            WizardStep.AREA: WizardStep.DATE_TIME,
            WizardStep.GUEST_INFO: WizardStep.AREA,
        }.get(self.state.step)
        if previous is None:
            return False
        self.state.step_error = None
        self._enter(previous)
        return True

    async def submit(self) -> bool:
        """Create the reservation. Returns True once the wizard is CONFIRMED."""
        t('booking.wizard.BookingWizard.submit')
        state = self.state
        if state.step is not WizardStep.GUEST_INFO or state.submitting:
            return False

        guest_errors = self._guest_errors()
        if guest_errors:
            state.field_errors.update(guest_errors)
            if 'email' in guest_errors or 'phone' in guest_errors:
                state.step_error = messages.CONTACT_INVALID
            return False

        state.step_error = None
        banner, target = self._recheck_before_submit()
        if banner:
            state.step_error = banner
            if target is not None:
                self._enter(target)
            return False

        state.submitting = True
        self.feedback.start()
        try:
            outcome = await self.conflicts.submit(
                state.selection,
                unit_labels={u.id: u.label for u in state.units},
                area_labels={a.id: a.name for a in state.areas},
            )
        except Exception as exc:
            target = ErrorHandler.handle_submission_error(state, exc)
            if target is not None:
                self._enter(target)
            return False
        finally:
            state.submitting = False
            await self.feedback.stop()

        state.confirmed = outcome.record
        state.recovered_existing = outcome.recovered
        self._enter(WizardStep.CONFIRMED)
        return True

    # ------------------------------------------------------------------
    # Confirmation view helpers
    # ------------------------------------------------------------------
    def boarding_pass(self, now: Optional[datetime] = None) -> Optional[BoardingPassView]:
        t('booking.wizard.BookingWizard.boarding_pass')
        record = self.state.confirmed
        if record is None:
            return None
        return build_boarding_pass(
            record, now or self._clock(), self.policy, self.client.qrcode_url(record.id)
        )

    @property
    def calendar_probe(self) -> CalendarProbe:
        if self._probe is None:
            self._probe = self.new_calendar_probe()
        return self._probe

    def new_calendar_probe(self) -> CalendarProbe:
        """A probe bound to the current unit, committed time and party size."""
        t('booking.wizard.BookingWizard.new_calendar_probe')
        kwargs: Dict[str, Any] = {'clock': self._clock}
        if self.probe_delay_seconds is not None:
            kwargs['delay_seconds'] = self.probe_delay_seconds
        probe = CalendarProbe(self.client, self.policy, **kwargs)
        selection = self.state.selection
        probe.reset(selection.unit_id, self._committed_time(), selection.party_size)
        return probe

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    def _enter(self, step: WizardStep) -> None:
        self.state.step = step
        self.state.progress = step.progress
        self.logger.debug("Wizard entered step %s (%s%%)", step.name, step.progress)
        for listener in list(self._listeners):
            listener(step)

    def _today(self) -> date:
        return DateTimeHelpers.today(self.policy.timezone, self._clock())

    def _committed_time(self) -> Optional[str]:
        slot = self.state.selection.time_slot
        if slot and ValidationHelpers.is_allowed_slot(slot, self.policy.allowed_slots):
            return slot
        return None

    def _sync_probe(self) -> None:
        if self._probe is None:
            return
        selection = self.state.selection
        self._probe.reset(selection.unit_id, self._committed_time(), selection.party_size)

    def _time_error(self) -> Optional[str]:
        selection = self.state.selection
        slot = selection.time_slot
        if not slot:
            return None
        valid, message = ValidationHelpers.validate_time_slot(slot, self.policy.allowed_slots)
        if not valid:
            return message
        if ValidationHelpers.is_time_outside_window(slot, self.policy):
            return ValidationHelpers.time_window_message(self.policy)
        if selection.date is not None and selection.date == self._today():
            if ValidationHelpers.is_past_datetime(
                selection.date, slot, self._clock(), self.policy.timezone
            ):
                return messages.TIME_ALREADY_PASSED
        return None

    def _date_error(self) -> Optional[str]:
        day = self.state.selection.date
        if day is None:
            return None
        valid, message = ValidationHelpers.validate_date(day, self._today())
        return None if valid else message

    def _recompute_schedule_errors(self) -> None:
        for name, error in (('date', self._date_error()), ('time', self._time_error())):
            if error:
                self.state.field_errors[name] = error
            else:
                self.state.field_errors.pop(name, None)

    def _date_time_errors(self) -> Dict[str, str]:
        selection = self.state.selection
        errors: Dict[str, str] = {}
        if not selection.unit_id:
            errors['unit'] = messages.UNIT_REQUIRED
        if selection.date is None:
            errors['date'] = messages.DATE_REQUIRED
        elif self._date_error():
            errors['date'] = self._date_error()
        if not selection.time_slot:
            errors['time'] = messages.TIME_REQUIRED
        elif self._time_error():
            errors['time'] = self._time_error()
        if 'adults' in self.state.field_errors:
            errors['adults'] = self.state.field_errors['adults']
        return errors

    def _guest_errors(self) -> Dict[str, str]:
        selection = self.state.selection
        errors: Dict[str, str] = {}
        checks = (
            ('full_name', ValidationHelpers.validate_name(selection.full_name)),
            ('cpf', ValidationHelpers.validate_cpf(selection.cpf)),
            ('email', ValidationHelpers.validate_email(selection.email)),
            ('phone', ValidationHelpers.validate_phone_number(selection.phone)),
            (
                'birthday',
                ValidationHelpers.validate_birthday(
                    selection.birthday, self._today(), required=self.policy.birthday_required
                ),
            ),
        )
        for name, (valid, message) in checks:
            if not valid:
                errors[name] = message
        return errors

    def _recheck_before_submit(self):
        """Banner and target step when the schedule or venue went invalid meanwhile."""
        selection = self.state.selection
        if selection.date is None or not selection.time_slot:
            return messages.SELECT_DATE_AND_TIME, WizardStep.DATE_TIME
        if selection.date < self._today():
            return messages.INVALID_DATE, WizardStep.DATE_TIME
        if ValidationHelpers.is_time_outside_window(selection.time_slot, self.policy):
            return (
                messages.time_unavailable_message(
                    self.policy.opening_time.strftime('%H:%M'),
                    self.policy.closing_time.strftime('%H:%M'),
                ),
                WizardStep.DATE_TIME,
            )
        if self._time_error():
            return self._time_error(), WizardStep.DATE_TIME
        if not selection.unit_id or not selection.area_id:
            return messages.SELECT_UNIT_AND_AREA, None
        return None, None
