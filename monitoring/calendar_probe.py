"""Lazy, rate-limited probing of which calendar days still have seats."""

from __future__ import annotations
from tracking import t

import asyncio
from collections import deque
from datetime import date, datetime
from enum import Enum
import logging
from typing import Awaitable, Callable, Deque, Dict, Iterable, List, Optional, Set, Tuple

from infrastructure.constants import PROBE_DELAY_SECONDS
from infrastructure.datetime_helpers import DateTimeHelpers
from infrastructure.settings import BookingPolicy
from reservations.api import ApiError, ReservationApiClient
from reservations.models import Area


class DayAvailability(Enum):
    UNKNOWN = "unknown"
    AVAILABLE = "available"
    UNAVAILABLE = "unavailable"


ProbeInputs = Tuple[Optional[str], Optional[str], int]


class CalendarProbe:
    """Mark visible calendar days as bookable or not, one request at a time.

    Days are enqueued as the UI shows them and drained by a single worker
    with a fixed pause between requests. A day is never queried twice for
    the same inputs; changing the unit, committed time or party size resets
    everything and results still in flight are dropped.
    """

    def __init__(
        self,
        client: ReservationApiClient,
        policy: BookingPolicy,
        *,
        delay_seconds: float = PROBE_DELAY_SECONDS,
        clock: Optional[Callable[[], datetime]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('monitoring.calendar_probe.CalendarProbe.__init__')
        self.client = client
        self.policy = policy
        self.delay_seconds = delay_seconds
        self._clock = clock or (lambda: DateTimeHelpers.now(policy.timezone))
        self._sleep = sleep
        self.logger = logger or logging.getLogger('CalendarProbe')

        self._inputs: ProbeInputs = (None, None, 1)
        self._generation = 0
        self._queue: Deque[date] = deque()
        self._seen: Set[date] = set()
        self._results: Dict[date, DayAvailability] = {}
        self._worker: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    @property
    def inputs(self) -> ProbeInputs:
        return self._inputs

    @property
    def results(self) -> Dict[date, DayAvailability]:
        return dict(self._results)

    def status(self, day: date) -> DayAvailability:
        return self._results.get(day, DayAvailability.UNKNOWN)

    def reset(self, unit_id: Optional[str], time_slot: Optional[str], party_size: int) -> bool:
        """Rebind to new inputs. Returns True when anything was cleared."""
        t('monitoring.calendar_probe.CalendarProbe.reset')
        inputs = (unit_id, time_slot, max(1, party_size))
        if inputs == self._inputs:
            return False
        self._inputs = inputs
        self._generation += 1
        self._queue.clear()
        self._seen.clear()
        self._results.clear()
        self.logger.debug("Calendar probe reset for %s (generation %s)", inputs, self._generation)
        return True

    def enqueue(self, days: Iterable[date]) -> int:
        """Queue days that were never probed for the current inputs."""
        t('monitoring.calendar_probe.CalendarProbe.enqueue')
        if not self._inputs[0]:
            return 0

        today = DateTimeHelpers.today(self.policy.timezone, self._clock())
        added = 0
        for day in days:
            if day in self._seen:
                continue
            self._seen.add(day)
            if day < today:
                self._results[day] = DayAvailability.UNAVAILABLE
                continue
            self._queue.append(day)
            added += 1

        if added and (self._worker is None or self._worker.done()):
            self._worker = asyncio.create_task(self._drain())
        return added

    async def wait_idle(self) -> None:
        while self._worker is not None and not self._worker.done():
            await asyncio.shield(self._worker)

    async def close(self) -> None:
        t('monitoring.calendar_probe.CalendarProbe.close')
        self._queue.clear()
        worker, self._worker = self._worker, None
        if worker is None or worker.done():
            return
        worker.cancel()
        try:
            await worker
        except asyncio.CancelledError:
            pass

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    async def _drain(self) -> None:
        t('monitoring.calendar_probe.CalendarProbe._drain')
        while self._queue:
            day = self._queue.popleft()
            generation = self._generation
            result = await self._probe_day(day, generation)
            if generation != self._generation:
                continue
            self._results[day] = result

    def _candidate_slots(self, day: date, time_slot: Optional[str]) -> List[str]:
        t('monitoring.calendar_probe.CalendarProbe._candidate_slots')
        if time_slot:
            return [time_slot]
        now = self._clock()
        today = DateTimeHelpers.today(self.policy.timezone, now)
        candidates = []
        for slot in self.policy.allowed_slots:
            if day == today:
                moment = DateTimeHelpers.combine_local(day, slot, self.policy.timezone)
                if moment is None or moment <= now:
                    continue
            candidates.append(slot)
        return candidates

    async def _probe_day(self, day: date, generation: int) -> DayAvailability:
        t('monitoring.calendar_probe.CalendarProbe._probe_day')
        unit_id, time_slot, party_size = self._inputs
        any_failed = False

        for slot in self._candidate_slots(day, time_slot):
            if generation != self._generation:
                return DayAvailability.UNKNOWN
            try:
                payloads = await self.client.fetch_availability(unit_id, day, slot)
            except ApiError as exc:
                any_failed = True
                self.logger.debug(
                    "Probe for %s %s failed: %s", day.isoformat(), slot, exc.message
                )
                payloads = None
            finally:
                await self._sleep(self.delay_seconds)

            if payloads and any(
                Area.from_availability_payload(p).fits(party_size) for p in payloads
            ):
                return DayAvailability.AVAILABLE

        return DayAvailability.UNKNOWN if any_failed else DayAvailability.UNAVAILABLE


__all__ = ["CalendarProbe", "DayAvailability"]
