"""
Validation utility functions
Pure checks for the booking inputs: slots, opening window, dates and contact fields
"""
from tracking import t

import re
from datetime import date, datetime
from typing import Any, Optional, Sequence, Tuple

from infrastructure.constants import CPF_DIGITS, MIN_NAME_LENGTH
from infrastructure.datetime_helpers import DateTimeHelpers
from infrastructure.settings import BookingPolicy

from . import messages

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


class ValidationHelpers:
    """Collection of validation helper functions"""

    @staticmethod
    def only_digits(value: Optional[str]) -> str:
        t('booking.validation.ValidationHelpers.only_digits')
        return ''.join(c for c in str(value or '') if c.isdigit())

    @staticmethod
    def coerce_count(value: Any, minimum: int = 0) -> int:
        """
        Coerce a numeric form value ('' / None / '3' / 3.0) into an int >= minimum
        """
        t('booking.validation.ValidationHelpers.coerce_count')
        if value is None or value == '' or isinstance(value, bool):
            return minimum
        try:
            number = int(float(value))
        except (TypeError, ValueError):
            return minimum
        return max(minimum, number)

    @staticmethod
    def is_allowed_slot(time_slot: str, allowed_slots: Sequence[str]) -> bool:
        t('booking.validation.ValidationHelpers.is_allowed_slot')
        return bool(time_slot) and time_slot in allowed_slots

    @staticmethod
    def validate_time_slot(time_slot: str, allowed_slots: Sequence[str]) -> Tuple[bool, str]:
        """
        Validate membership in the allow-list
        Returns: (is_valid, time_or_error_message)
        """
        t('booking.validation.ValidationHelpers.validate_time_slot')
        time_slot = (time_slot or '').strip()

        if not time_slot:
            return False, messages.TIME_REQUIRED

        if time_slot not in allowed_slots:
            return False, messages.SLOT_NOT_ALLOWED

        return True, time_slot

    @staticmethod
    def is_time_outside_window(time_slot: str, policy: BookingPolicy) -> bool:
        """True when the slot falls before opening or after closing time."""
        t('booking.validation.ValidationHelpers.is_time_outside_window')
        parsed = DateTimeHelpers.parse_slot(time_slot)
        if parsed is None:
            return False
        minutes = parsed[0] * 60 + parsed[1]
        opening = policy.opening_time.hour * 60 + policy.opening_time.minute
        closing = policy.closing_time.hour * 60 + policy.closing_time.minute
        return minutes < opening or minutes > closing

    @staticmethod
    def time_window_message(policy: BookingPolicy) -> str:
        t('booking.validation.ValidationHelpers.time_window_message')
        return messages.time_window_message(
            policy.opening_time.strftime('%H:%M'),
            policy.closing_time.strftime('%H:%M'),
        )

    @staticmethod
    def is_past_datetime(day: date, time_slot: str, now: datetime, timezone_str: str) -> bool:
        """True when ``day`` at ``time_slot`` (venue time) is not after ``now``."""
        t('booking.validation.ValidationHelpers.is_past_datetime')
        moment = DateTimeHelpers.combine_local(day, time_slot, timezone_str)
        if moment is None:
            return False
        return moment <= now

    @staticmethod
    def validate_date(day: Optional[date], today: date) -> Tuple[bool, str]:
        """
        Validate the reservation date
        Returns: (is_valid, error_message)
        """
        t('booking.validation.ValidationHelpers.validate_date')
        if day is None:
            return False, messages.DATE_REQUIRED
        if day < today:
            return False, messages.DATE_IN_PAST
        return True, ''

    @staticmethod
    def validate_email(email: str) -> Tuple[bool, str]:
        """
        Validate email format
        Returns: (is_valid, cleaned_email_or_error_message)
        """
        t('booking.validation.ValidationHelpers.validate_email')
        email = (email or '').strip()

        if EMAIL_PATTERN.match(email):
            return True, email
        return False, messages.EMAIL_INVALID

    @staticmethod
    def validate_phone_number(phone: str) -> Tuple[bool, str]:
        """
        Validate a Brazilian phone number (DDD + 8 or 9 digits)
        Returns: (is_valid, cleaned_phone_or_error_message)
        """
        t('booking.validation.ValidationHelpers.validate_phone_number')
        digits_only = ValidationHelpers.only_digits(phone)

        if len(digits_only) in (10, 11):
            return True, digits_only
        return False, messages.PHONE_INVALID

    @staticmethod
    def validate_cpf(cpf: str) -> Tuple[bool, str]:
        """
        Validate CPF format (exactly 11 digits once punctuation is removed)
        Returns: (is_valid, digits_or_error_message)
        """
        t('booking.validation.ValidationHelpers.validate_cpf')
        digits_only = ValidationHelpers.only_digits(cpf)
        if len(digits_only) == CPF_DIGITS:
            return True, digits_only
        return False, messages.CPF_INVALID

    @staticmethod
    def validate_name(name: str) -> Tuple[bool, str]:
        """
        Validate the guest's full name
        Returns: (is_valid, cleaned_name_or_error_message)
        """
        t('booking.validation.ValidationHelpers.validate_name')
        name = ' '.join((name or '').split())

        if len(name) < MIN_NAME_LENGTH:
            return False, messages.NAME_TOO_SHORT

        return True, name

    @staticmethod
    def validate_birthday(
        birthday: Optional[date], today: date, *, required: bool
    ) -> Tuple[bool, str]:
        t('booking.validation.ValidationHelpers.validate_birthday')
        if birthday is None:
            return (False, messages.BIRTHDAY_REQUIRED) if required else (True, '')
        if birthday > today:
            return False, messages.BIRTHDAY_IN_FUTURE
        return True, ''

    @staticmethod
    def format_cpf(value: str) -> str:
        """Progressive display mask: 000.000.000-00"""
        t('booking.validation.ValidationHelpers.format_cpf')
        d = ValidationHelpers.only_digits(value)[:11]
        parts = [d[0:3]]
        if d[3:6]:
            parts.append('.' + d[3:6])
        if d[6:9]:
            parts.append('.' + d[6:9])
        if d[9:11]:
            parts.append('-' + d[9:11])
        return ''.join(parts)

    @staticmethod
    def format_phone(value: str) -> str:
        """Progressive display mask: (61) 9999-9999 or (61) 99999-9999"""
        t('booking.validation.ValidationHelpers.format_phone')
        d = ValidationHelpers.only_digits(value)[:11]
        if len(d) <= 2:
            return d
        head, rest = f"({d[:2]}) ", d[2:]
        split_at = 5 if len(d) == 11 else 4
        if len(rest) > split_at:
            rest = f"{rest[:split_at]}-{rest[split_at:]}"
        return head + rest
