from datetime import date, time

import pytest

from booking import messages
from booking.validation import ValidationHelpers
from tests.helpers import BOOKING_DAY, NOW, TODAY, make_policy


@pytest.mark.parametrize("slot", ["12:00", "12:30", "13:00", "18:00", "18:30", "19:00"])
def test_standard_slots_are_accepted(slot):
    policy = make_policy()
    assert ValidationHelpers.validate_time_slot(slot, policy.allowed_slots) == (True, slot)


@pytest.mark.parametrize("slot", ["12:15", "17:00", "20:00", "abc"])
def test_slots_outside_allow_list_are_rejected(slot):
    policy = make_policy()
    valid, message = ValidationHelpers.validate_time_slot(slot, policy.allowed_slots)
    assert not valid
    assert message == messages.SLOT_NOT_ALLOWED


def test_missing_slot_asks_for_a_time():
    assert ValidationHelpers.validate_time_slot("", ("12:00",)) == (False, messages.TIME_REQUIRED)


def test_opening_window_bounds_are_inclusive():
    policy = make_policy()
    assert ValidationHelpers.is_time_outside_window("11:59", policy)
    assert not ValidationHelpers.is_time_outside_window("12:00", policy)
    assert not ValidationHelpers.is_time_outside_window("21:30", policy)
    assert ValidationHelpers.is_time_outside_window("21:31", policy)


def test_window_message_uses_policy_times():
    policy = make_policy(opening_time=time(11, 0), closing_time=time(23, 0))
    assert ValidationHelpers.time_window_message(policy) == "Horário disponível entre 11:00 e 23:00"


def test_past_datetime_is_relative_to_venue_time():
    assert ValidationHelpers.is_past_datetime(TODAY, "09:30", NOW, "America/Sao_Paulo")
    assert ValidationHelpers.is_past_datetime(TODAY, "10:00", NOW, "America/Sao_Paulo")
    assert not ValidationHelpers.is_past_datetime(TODAY, "12:00", NOW, "America/Sao_Paulo")


def test_validate_date_rejects_yesterday():
    assert ValidationHelpers.validate_date(date(2026, 3, 9), TODAY) == (False, messages.DATE_IN_PAST)
    assert ValidationHelpers.validate_date(TODAY, TODAY) == (True, "")
    assert ValidationHelpers.validate_date(BOOKING_DAY, TODAY) == (True, "")
    assert ValidationHelpers.validate_date(None, TODAY) == (False, messages.DATE_REQUIRED)


@pytest.mark.parametrize(
    "email,valid",
    [
        ("ana@example.com", True),
        ("  ana@example.com ", True),
        ("ana@example", False),
        ("ana example@x.com", False),
        ("", False),
    ],
)
def test_email_format(email, valid):
    assert ValidationHelpers.validate_email(email)[0] is valid


def test_phone_accepts_ten_or_eleven_digits():
    assert ValidationHelpers.validate_phone_number("(61) 3333-4444") == (True, "6133334444")
    assert ValidationHelpers.validate_phone_number("(61) 99999-8888") == (True, "61999998888")
    assert ValidationHelpers.validate_phone_number("99999-8888")[0] is False


def test_cpf_requires_exactly_eleven_digits():
    assert ValidationHelpers.validate_cpf("123.456.789-01") == (True, "12345678901")
    assert ValidationHelpers.validate_cpf("1234567890")[0] is False
    assert ValidationHelpers.validate_cpf("123456789012")[0] is False


def test_name_is_trimmed_before_length_check():
    assert ValidationHelpers.validate_name("  Ana   Souza ") == (True, "Ana Souza")
    assert ValidationHelpers.validate_name(" Al ") == (False, messages.NAME_TOO_SHORT)


def test_birthday_rules():
    assert ValidationHelpers.validate_birthday(None, TODAY, required=True) == (
        False,
        messages.BIRTHDAY_REQUIRED,
    )
    assert ValidationHelpers.validate_birthday(None, TODAY, required=False) == (True, "")
    assert ValidationHelpers.validate_birthday(date(2030, 1, 1), TODAY, required=True)[0] is False
    assert ValidationHelpers.validate_birthday(date(1990, 5, 20), TODAY, required=True) == (True, "")


@pytest.mark.parametrize(
    "raw,minimum,expected",
    [("", 0, 0), (None, 1, 1), ("3", 0, 3), (2.0, 0, 2), (-4, 0, 0), ("x", 1, 1), (True, 0, 0)],
)
def test_coerce_count(raw, minimum, expected):
    assert ValidationHelpers.coerce_count(raw, minimum) == expected


def test_cpf_display_mask_is_progressive():
    assert ValidationHelpers.format_cpf("123") == "123"
    assert ValidationHelpers.format_cpf("1234567") == "123.456.7"
    assert ValidationHelpers.format_cpf("12345678901") == "123.456.789-01"
    assert ValidationHelpers.format_cpf("123.456.789-0199") == "123.456.789-01"


def test_phone_display_mask():
    assert ValidationHelpers.format_phone("61") == "61"
    assert ValidationHelpers.format_phone("6133334444") == "(61) 3333-4444"
    assert ValidationHelpers.format_phone("61999998888") == "(61) 99999-8888"
