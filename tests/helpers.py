"""Shared fakes and utilities for unit tests."""

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Callable, Dict, List, Tuple

import pytz

from infrastructure.settings import BookingPolicy

VENUE_TZ = pytz.timezone("America/Sao_Paulo")

# Tuesday morning; bookings in the tests are for the Thursday after
NOW = VENUE_TZ.localize(datetime(2026, 3, 10, 10, 0))
TODAY = date(2026, 3, 10)
BOOKING_DAY = date(2026, 3, 12)


def fixed_clock(moment: datetime = NOW) -> Callable[[], datetime]:
    return lambda: moment


class MutableClock:
    """Clock whose current instant tests can move forward."""

    def __init__(self, moment: datetime = NOW) -> None:
        self.moment = moment

    def __call__(self) -> datetime:
        return self.moment


def make_policy(**overrides: Any) -> BookingPolicy:
    return BookingPolicy(**overrides)


class DummyLogger:
    """Lightweight stand-in for ``logging.Logger`` that records calls."""

    def __init__(self) -> None:
        self.records: List[Tuple[str, Tuple[Any, ...], Dict[str, Any]]] = []

    def _record(self, level: str, *args: Any, **kwargs: Any) -> None:
        self.records.append((level, args, kwargs))

    def debug(self, *args: Any, **kwargs: Any) -> None:
        self._record("debug", *args, **kwargs)

    def info(self, *args: Any, **kwargs: Any) -> None:
        self._record("info", *args, **kwargs)

    def warning(self, *args: Any, **kwargs: Any) -> None:
        self._record("warning", *args, **kwargs)

    def error(self, *args: Any, **kwargs: Any) -> None:
        self._record("error", *args, **kwargs)

    @property
    def messages(self) -> List[Tuple[str, Any]]:
        """Return formatted messages for quick assertions."""

        formatted: List[Tuple[str, Any]] = []
        for level, args, kwargs in self.records:
            message: Any = kwargs.get("msg")
            if args:
                template = args[0]
                if isinstance(template, str) and len(args) > 1:
                    try:
                        message = template % args[1:]
                    except (TypeError, ValueError):
                        message = template
                else:
                    message = template
            formatted.append((level, message))
        return formatted

    def levels(self) -> List[str]:
        return [level for level, _, _ in self.records]
