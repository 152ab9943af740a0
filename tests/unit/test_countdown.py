import asyncio
from datetime import timedelta

import pytest

from ticket.countdown import (
    CountdownTicker,
    compute_countdowns,
    format_countdown,
    header_color,
    header_label,
    tolerance_badge,
)
from tests.helpers import NOW, make_policy


@pytest.mark.parametrize(
    "ms,text",
    [
        (0, "00:00:00"),
        (-5000, "00:00:00"),
        (999, "00:00:00"),
        (61_000, "00:01:01"),
        (3_600_000 * 23 + 59 * 60_000 + 59_000, "23:59:59"),
        (86_400_000 + 3_661_000, "1d 01:01:01"),
        (3 * 86_400_000, "3d 00:00:00"),
    ],
)
def test_format_countdown(ms, text):
    assert format_countdown(ms) == text


def test_reservation_countdown_decreases_to_zero_and_never_goes_negative():
    policy = make_policy()
    instant = NOW + timedelta(minutes=10)

    previous_ms = None
    for second in range(0, 601):
        countdowns = compute_countdowns(instant, NOW + timedelta(seconds=second), policy)
        if previous_ms is not None:
            assert countdowns.reservation.remaining_ms < previous_ms
        previous_ms = countdowns.reservation.remaining_ms

    assert countdowns.reservation.display == "00:00:00"
    assert countdowns.reservation.active is False

    later = compute_countdowns(instant, NOW + timedelta(minutes=20), policy)
    assert later.reservation.display == "00:00:00"
    assert later.reservation.remaining_ms < 0


def test_three_windows_and_their_labels():
    policy = make_policy()
    instant = NOW

    before = compute_countdowns(instant, NOW - timedelta(minutes=5), policy)
    assert before.reservation.display == "00:05:00"
    assert before.reservation.status_label == "faltam"
    assert before.tolerance.display == "00:20:00"
    assert before.tolerance.status_label == "válida"
    assert before.guest_window.display == "00:50:00"
    assert before.guest_window.status_label == "aberto"

    during_tolerance = compute_countdowns(instant, NOW + timedelta(minutes=10), policy)
    assert during_tolerance.reservation.status_label == "reservada"
    assert during_tolerance.tolerance.status_label == "válida"
    assert during_tolerance.tolerance.display == "00:05:00"

    after_all = compute_countdowns(instant, NOW + timedelta(minutes=46), policy)
    assert after_all.tolerance.status_label == "encerrada"
    assert after_all.guest_window.status_label == "fechado"


def test_header_switches_colour_and_label_at_reservation_time():
    policy = make_policy()
    before = compute_countdowns(NOW, NOW - timedelta(hours=1), policy)
    after = compute_countdowns(NOW, NOW + timedelta(seconds=1), policy)

    assert header_color(before) == "#0ca678"
    assert header_label(before, "10:00") == "Falta 01:00:00 para sua reserva"
    assert header_color(after) == "#e03131"
    assert header_label(after, "10:00") == "Sua reserva é agora (10:00)"


def test_tolerance_badge():
    policy = make_policy()
    assert tolerance_badge(compute_countdowns(NOW, NOW, policy)) == "Tolerância até 00:15:00"
    assert (
        tolerance_badge(compute_countdowns(NOW, NOW + timedelta(minutes=15), policy))
        == "Tolerância encerrada"
    )


@pytest.mark.asyncio
async def test_ticker_recomputes_until_stopped():
    policy = make_policy()
    moments = iter(NOW + timedelta(seconds=s) for s in range(1000))
    ticks = []

    async def fast_sleep(_seconds):
        await asyncio.sleep(0)

    ticker = CountdownTicker(
        NOW + timedelta(minutes=1),
        policy,
        ticks.append,
        clock=lambda: next(moments),
        sleep=fast_sleep,
    )
    ticker.start()
    for _ in range(5):
        await asyncio.sleep(0)
    await ticker.stop()

    assert not ticker.running
    assert len(ticks) >= 2
    assert ticks[0].reservation.display == "00:01:00"
    assert ticks[1].reservation.display == "00:00:59"

    count = len(ticks)
    await asyncio.sleep(0)
    assert len(ticks) == count
