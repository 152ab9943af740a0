import asyncio
from datetime import timedelta

import pytest

from monitoring.calendar_probe import CalendarProbe, DayAvailability
from tests.fakes import FakeBackend
from tests.helpers import BOOKING_DAY, NOW, TODAY, DummyLogger, MutableClock, make_policy


class SleepRecorder:
    def __init__(self):
        self.calls = []

    async def __call__(self, seconds):
        self.calls.append(seconds)


def _probe(client, clock=None, sleep=None):
    return CalendarProbe(
        client,
        make_policy(),
        clock=clock or MutableClock(),
        sleep=sleep or SleepRecorder(),
        logger=DummyLogger(),
    )


def _availability_times(backend):
    return [
        (r.url.params["date"], r.url.params["time"])
        for r in backend.requests
        if r.url.path == "/v1/reservations/public/availability"
    ]


@pytest.mark.asyncio
async def test_committed_time_is_the_only_slot_probed():
    backend = FakeBackend()
    backend.set_availability("aguas-claras", "2026-03-12", "19:00", [{"id": "salao", "available": 4}])
    sleep = SleepRecorder()

    async with backend.client() as client:
        probe = _probe(client, sleep=sleep)
        probe.reset("aguas-claras", "19:00", 2)
        assert probe.enqueue([BOOKING_DAY, BOOKING_DAY + timedelta(days=1)]) == 2
        await probe.wait_idle()

    assert probe.status(BOOKING_DAY) is DayAvailability.AVAILABLE
    assert probe.status(BOOKING_DAY + timedelta(days=1)) is DayAvailability.UNAVAILABLE
    assert _availability_times(backend) == [("2026-03-12", "19:00"), ("2026-03-13", "19:00")]
    assert sleep.calls == [0.25, 0.25]


@pytest.mark.asyncio
async def test_without_time_each_slot_is_tried_until_one_fits():
    backend = FakeBackend()
    backend.set_availability("aguas-claras", "2026-03-12", "12:30", [{"id": "salao", "available": 1}])
    backend.set_availability("aguas-claras", "2026-03-12", "13:00", [{"id": "salao", "available": 6}])

    async with backend.client() as client:
        probe = _probe(client)
        probe.reset("aguas-claras", None, 4)
        probe.enqueue([BOOKING_DAY])
        await probe.wait_idle()

    assert probe.status(BOOKING_DAY) is DayAvailability.AVAILABLE
    assert [slot for _, slot in _availability_times(backend)] == ["12:00", "12:30", "13:00"]


@pytest.mark.asyncio
async def test_failed_probe_leaves_day_unknown():
    backend = FakeBackend()
    backend.failures["/v1/reservations/public/availability"] = 500

    async with backend.client() as client:
        probe = _probe(client)
        probe.reset("aguas-claras", "19:00", 2)
        probe.enqueue([BOOKING_DAY])
        await probe.wait_idle()

    assert probe.status(BOOKING_DAY) is DayAvailability.UNKNOWN
    assert BOOKING_DAY in probe.results


@pytest.mark.asyncio
async def test_day_is_never_queried_twice_for_the_same_inputs():
    backend = FakeBackend()
    async with backend.client() as client:
        probe = _probe(client)
        probe.reset("aguas-claras", "19:00", 2)
        probe.enqueue([BOOKING_DAY])
        await probe.wait_idle()
        assert probe.enqueue([BOOKING_DAY]) == 0
        await probe.wait_idle()

        assert probe.reset("aguas-claras", "19:00", 2) is False

    assert len(_availability_times(backend)) == 1


@pytest.mark.asyncio
async def test_reset_drops_results_still_in_flight():
    backend = FakeBackend()
    backend.set_availability("aguas-claras", "2026-03-12", "19:00", [{"id": "salao", "available": 4}])
    gate = backend.hold("/v1/reservations/public/availability", time="19:00")

    async with backend.client() as client:
        probe = _probe(client)
        probe.reset("aguas-claras", "19:00", 2)
        probe.enqueue([BOOKING_DAY])
        for _ in range(5):
            await asyncio.sleep(0)

        assert probe.reset("aguas-claras", "19:00", 5) is True
        gate.set()
        await probe.wait_idle()
        assert probe.results == {}

        probe.enqueue([BOOKING_DAY])
        await probe.wait_idle()
        await probe.close()

    assert probe.status(BOOKING_DAY) is DayAvailability.UNAVAILABLE


@pytest.mark.asyncio
async def test_past_days_and_past_slots_are_not_queried():
    backend = FakeBackend()
    clock = MutableClock(NOW.replace(hour=18, minute=15))

    async with backend.client() as client:
        probe = _probe(client, clock=clock)
        probe.reset("aguas-claras", None, 2)
        assert probe.enqueue([TODAY - timedelta(days=1), TODAY]) == 1
        await probe.wait_idle()

    assert probe.status(TODAY - timedelta(days=1)) is DayAvailability.UNAVAILABLE
    assert _availability_times(backend) == [("2026-03-10", "18:30"), ("2026-03-10", "19:00")]


@pytest.mark.asyncio
async def test_nothing_is_probed_without_a_unit():
    backend = FakeBackend()
    async with backend.client() as client:
        probe = _probe(client)
        assert probe.enqueue([BOOKING_DAY]) == 0

    assert backend.requests == []
