"""Background polling of a reservation's check-in status."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from enum import Enum
from typing import Awaitable, Callable, Optional

from booking import messages
from infrastructure.constants import CHECKED_IN_STATUS, STATUS_POLL_SECONDS
from reservations.api import ApiError, ReservationApiClient


class CheckInState(Enum):
    AWAITING_CHECKIN = "AWAITING_CHECKIN"
    CHECKED_IN = "CHECKED_IN"
    ERROR = "ERROR"

    @property
    def message(self) -> str:
        return {
            CheckInState.AWAITING_CHECKIN: messages.CHECKIN_WAITING,
            CheckInState.CHECKED_IN: messages.CHECKIN_CONFIRMED,
            CheckInState.ERROR: messages.CHECKIN_RECONNECTING,
        }[self]


class CheckInWatcher:
    """Poll ``/v1/reservations/{id}/status`` until the guest is checked in."""

    def __init__(
        self,
        client: ReservationApiClient,
        reservation_id: str,
        *,
        poll_seconds: float = STATUS_POLL_SECONDS,
        on_change: Optional[Callable[[CheckInState], None]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('reservations.status_watcher.CheckInWatcher.__init__')
        self.client = client
        self.reservation_id = reservation_id
        self.poll_seconds = poll_seconds
        self.on_change = on_change
        self._sleep = sleep
        self.logger = logger or logging.getLogger('CheckInWatcher')
        self.state = CheckInState.AWAITING_CHECKIN
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> asyncio.Task:
        t('reservations.status_watcher.CheckInWatcher.start')
        if not self.running:
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        t('reservations.status_watcher.CheckInWatcher.stop')
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def wait(self) -> CheckInState:
        if self._task is not None:
            await self._task
        return self.state

    async def run(self) -> CheckInState:
        """Poll until CHECKED_IN; failures switch to ERROR and polling continues."""
        t('reservations.status_watcher.CheckInWatcher.run')
        while True:
            try:
                status = await self.client.fetch_reservation_status(self.reservation_id)
            except ApiError as exc:
                self.logger.debug(
                    "Status poll for %s failed: %s", self.reservation_id, exc.message
                )
                self._set_state(CheckInState.ERROR)
            else:
                if status == CHECKED_IN_STATUS:
                    self._set_state(CheckInState.CHECKED_IN)
                    self.logger.info("Reservation %s checked in", self.reservation_id)
                    return self.state
                self._set_state(CheckInState.AWAITING_CHECKIN)
            await self._sleep(self.poll_seconds)

    def _set_state(self, state: CheckInState) -> None:
        if state is self.state:
            return
        self.state = state
        if self.on_change is not None:
            self.on_change(state)


__all__ = ["CheckInWatcher", "CheckInState"]
