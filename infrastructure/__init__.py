"""Infrastructure helpers."""

from .settings import AppSettings, BookingPolicy, get_settings, load_settings
from .datetime_helpers import DateTimeHelpers
from .constants import *  # noqa: F401,F403

__all__ = ["get_settings", "load_settings", "AppSettings", "BookingPolicy", "DateTimeHelpers"]
