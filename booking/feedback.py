"""Rotating "please wait" messages while a reservation is being submitted."""

from __future__ import annotations
from tracking import t

import asyncio
import logging
from typing import Awaitable, Callable, Optional, Sequence

from infrastructure.constants import LOADING_MESSAGE_INTERVAL_SECONDS, LOADING_MESSAGES


class SubmissionFeedback:
    """Cycle through ``LOADING_MESSAGES`` until stopped."""

    def __init__(
        self,
        on_message: Optional[Callable[[str], None]] = None,
        *,
        messages: Sequence[str] = LOADING_MESSAGES,
        interval_seconds: float = LOADING_MESSAGE_INTERVAL_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        t('booking.feedback.SubmissionFeedback.__init__')
        self.messages = tuple(messages)
        self.interval_seconds = interval_seconds
        self.on_message = on_message
        self._sleep = sleep
        self.logger = logger or logging.getLogger('SubmissionFeedback')
        self._index = 0
        self._task: Optional[asyncio.Task] = None

    @property
    def current(self) -> Optional[str]:
        if not self.running or not self.messages:
            return None
        return self.messages[self._index % len(self.messages)]

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        t('booking.feedback.SubmissionFeedback.start')
        if self.running or not self.messages:
            return
        self._index = 0
        self._task = asyncio.create_task(self._rotate())

    async def stop(self) -> None:
        t('booking.feedback.SubmissionFeedback.stop')
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _rotate(self) -> None:
        while True:
            self._emit()
            await self._sleep(self.interval_seconds)
            self._index = (self._index + 1) % len(self.messages)

    def _emit(self) -> None:
        if self.on_message is not None:
            self.on_message(self.messages[self._index])
