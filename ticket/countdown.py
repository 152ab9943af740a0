"""Live countdowns shown on the boarding pass."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from infrastructure.constants import COUNTDOWN_TICK_SECONDS
from infrastructure.settings import BookingPolicy

HEADER_COLOR_BEFORE = "#0ca678"
HEADER_COLOR_AFTER = "#e03131"

RESERVATION_LABELS = ("faltam", "reservada")
TOLERANCE_LABELS = ("válida", "encerrada")
GUEST_WINDOW_LABELS = ("aberto", "fechado")


def format_countdown(remaining_ms: float) -> str:
    """``HH:MM:SS``, prefixed with ``Nd`` when at least a day remains; never negative."""
    t('ticket.countdown.format_countdown')
    total_seconds = int(max(0, remaining_ms) // 1000)
    days, rest = divmod(total_seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, seconds = divmod(rest, 60)
    clock = f"{hours:02d}:{minutes:02d}:{seconds:02d}"
    return f"{days}d {clock}" if days > 0 else clock


@dataclass(frozen=True)
class Countdown:
    remaining_ms: int
    display: str
    status_label: str
    active: bool

    @classmethod
    def until(cls, target: datetime, now: datetime, labels) -> "Countdown":
        remaining = int((target - now).total_seconds() * 1000)
        active = remaining > 0
        return cls(
            remaining_ms=remaining,
            display=format_countdown(remaining),
            status_label=labels[0] if active else labels[1],
            active=active,
        )


@dataclass(frozen=True)
class CountdownSet:
    reservation: Countdown
    tolerance: Countdown
    guest_window: Countdown


def compute_countdowns(
    reservation_instant: datetime, now: datetime, policy: BookingPolicy
) -> CountdownSet:
    """Signed deltas from ``now`` to the reservation, tolerance and guest cutoff."""
    t('ticket.countdown.compute_countdowns')
    tolerance_at = reservation_instant + timedelta(minutes=policy.tolerance_minutes)
    guests_at = reservation_instant + timedelta(minutes=policy.guest_window_minutes)
    return CountdownSet(
        reservation=Countdown.until(reservation_instant, now, RESERVATION_LABELS),
        tolerance=Countdown.until(tolerance_at, now, TOLERANCE_LABELS),
        guest_window=Countdown.until(guests_at, now, GUEST_WINDOW_LABELS),
    )


def header_color(countdowns: CountdownSet) -> str:
    return HEADER_COLOR_BEFORE if countdowns.reservation.active else HEADER_COLOR_AFTER


def header_label(countdowns: CountdownSet, time_str: str) -> str:
    t('ticket.countdown.header_label')
    if countdowns.reservation.active:
        return f"Falta {countdowns.reservation.display} para sua reserva"
    return f"Sua reserva é agora ({time_str})"


def tolerance_badge(countdowns: CountdownSet) -> str:
    t('ticket.countdown.tolerance_badge')
    if countdowns.tolerance.active:
        return f"Tolerância até {countdowns.tolerance.display}"
    return "Tolerância encerrada"


class CountdownTicker:
    """Recompute the countdowns once per second until stopped."""

    def __init__(
        self,
        reservation_instant: datetime,
        policy: BookingPolicy,
        on_tick: Callable[[CountdownSet], None],
        *,
        clock: Callable[[], datetime],
        interval_seconds: float = COUNTDOWN_TICK_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('ticket.countdown.CountdownTicker.__init__')
        self.reservation_instant = reservation_instant
        self.policy = policy
        self.on_tick = on_tick
        self._clock = clock
        self.interval_seconds = interval_seconds
        self._sleep = sleep
        self.logger = logger or logging.getLogger('CountdownTicker')
        self._task: Optional[asyncio.Task] = None
        self.latest: Optional[CountdownSet] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> CountdownSet:
        t('ticket.countdown.CountdownTicker.tick')
        self.latest = compute_countdowns(self.reservation_instant, self._clock(), self.policy)
        self.on_tick(self.latest)
        return self.latest

    def start(self) -> asyncio.Task:
        t('ticket.countdown.CountdownTicker.start')
        if not self.running:
            self._task = asyncio.create_task(self._run())
        return self._task

    async def stop(self) -> None:
        t('ticket.countdown.CountdownTicker.stop')
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self) -> None:
        while True:
            self.tick()
            await self._sleep(self.interval_seconds)


__all__ = [
    "Countdown",
    "CountdownSet",
    "CountdownTicker",
    "compute_countdowns",
    "format_countdown",
    "header_color",
    "header_label",
    "tolerance_badge",
]
