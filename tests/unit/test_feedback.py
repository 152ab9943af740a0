import asyncio

import pytest

from booking.feedback import SubmissionFeedback

MESSAGES = ("um", "dois", "três")


@pytest.mark.asyncio
async def test_messages_rotate_and_wrap_until_stopped():
    shown = []
    sleeps = []

    async def sleep(seconds):
        sleeps.append(seconds)
        if len(sleeps) >= 4:
            await asyncio.Event().wait()

    feedback = SubmissionFeedback(shown.append, messages=MESSAGES, interval_seconds=1.3, sleep=sleep)
    feedback.start()
    feedback.start()
    for _ in range(3):
        await asyncio.sleep(0)

    assert shown == ["um", "dois", "três", "um"]
    assert sleeps == [1.3] * 4
    assert feedback.running
    assert feedback.current == "um"

    await feedback.stop()
    assert not feedback.running
    assert feedback.current is None


@pytest.mark.asyncio
async def test_stop_without_start_is_a_no_op():
    feedback = SubmissionFeedback()
    await feedback.stop()
    assert feedback.current is None
