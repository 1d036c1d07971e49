"""Tests for recording command argument parsing."""

from datetime import date, datetime, time

import pytest

from app.utils.command_args import (
    CLOSED_USAGE,
    CommandArgumentError,
    parse_closed_args,
    parse_date,
    parse_event_id,
    parse_install_args,
    parse_set_args,
    parse_time,
)

TODAY = date(2024, 7, 5)


@pytest.mark.parametrize(
    "value, expected",
    [
        ("07/05", date(2024, 7, 5)),
        ("7/5/24", date(2024, 7, 5)),
        ("07/05/2024", date(2024, 7, 5)),
        ("2024-07-05", date(2024, 7, 5)),
        ("13/40", None),
        ("tomorrow", None),
    ],
)
def test_parse_date(value, expected):
    assert parse_date(value, TODAY) == expected


def test_parse_date_feb_29_uses_current_year():
    assert parse_date("02/29", date(2024, 1, 10)) == date(2024, 2, 29)
    assert parse_date("02/29", date(2023, 1, 10)) is None


@pytest.mark.parametrize(
    "value, expected",
    [
        ("14:30", time(14, 30)),
        ("2:30 pm", time(14, 30)),
        ("2:30PM", time(14, 30)),
        ("12:05 am", time(0, 5)),
        ("12:05 pm", time(12, 5)),
        ("25:00", None),
        ("13:00 pm", None),
        ("noon", None),
    ],
)
def test_parse_time(value, expected):
    assert parse_time(value) == expected


def test_parse_set_args_name_only_defaults_to_today():
    args = parse_set_args("Jane Doe", TODAY)
    assert args.customer_name == "Jane Doe"
    assert args.set_date == datetime(2024, 7, 5)
    assert args.warnings == []


def test_parse_set_args_with_date_and_time():
    args = parse_set_args("Jane Doe | 07/08 2:30 pm", TODAY)
    assert args.set_date == datetime(2024, 7, 8, 14, 30)


def test_parse_set_args_invalid_date_warns_and_uses_today():
    args = parse_set_args("Jane Doe | 99/99", TODAY)
    assert args.set_date == datetime(2024, 7, 5)
    assert len(args.warnings) == 1
    assert "99/99" in args.warnings[0]


def test_parse_set_args_invalid_time_keeps_date():
    args = parse_set_args("Jane Doe | 07/08 half past", TODAY)
    assert args.set_date == datetime(2024, 7, 8)
    assert "half past" in args.warnings[0]


def test_parse_set_args_requires_customer():
    with pytest.raises(CommandArgumentError):
        parse_set_args("", TODAY)
    with pytest.raises(CommandArgumentError):
        parse_set_args(" | 07/05", TODAY)


def test_parse_closed_args_numeric_setter():
    args = parse_closed_args("Jane Doe | 8.5kW | 111")
    assert args.customer_name == "Jane Doe"
    assert args.system_size == 8.5
    assert args.setter_id == "111"


def test_parse_closed_args_mentioned_setter():
    args = parse_closed_args("Jane Doe | 10 | Sam", mentioned_user_ids=["111"])
    assert args.setter_id == "111"


@pytest.mark.parametrize(
    "raw",
    ["Jane Doe | 8.5", "Jane Doe | big | 111", "Jane Doe | -2 | 111", "Jane Doe | 8 | Sam"],
)
def test_parse_closed_args_rejects(raw):
    with pytest.raises(CommandArgumentError) as exc_info:
        parse_closed_args(raw)
    assert exc_info.value.usage == CLOSED_USAGE


def test_parse_install_args():
    args = parse_install_args("Jane Doe | 111")
    assert (args.customer_name, args.setter_id) == ("Jane Doe", "111")
    with pytest.raises(CommandArgumentError):
        parse_install_args("Jane Doe")


def test_parse_event_id():
    assert parse_event_id("") is None
    assert parse_event_id(" 42 ") == 42
    assert parse_event_id("#42") == 42
    with pytest.raises(CommandArgumentError):
        parse_event_id("forty-two")
