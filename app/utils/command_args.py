"""
Argument parsing for the recording commands.

Arguments are separated by '|', e.g. `/closed Jane Doe | 8.5 | 12345`.
Parsers return typed values or raise CommandArgumentError with a usage hint.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time
from typing import Optional, Sequence

SET_USAGE = "/set <customer name> | [date: MM/DD, MM/DD/YY or YYYY-MM-DD] [time: 2:30 pm]"
CLOSED_USAGE = "/closed <customer name> | <system size kW> | <setter mention or user id>"
INSTALL_USAGE = "/install <customer name> | <setter mention or user id>"

_TIME_RE = re.compile(
    r"^(?P<hour>\d{1,2}):(?P<minute>\d{2})\s*(?P<meridiem>[ap]\.?m\.?)?$", re.IGNORECASE
)


class CommandArgumentError(ValueError):
    def __init__(self, message: str, usage: str) -> None:
        super().__init__(message)
        self.usage = usage


@dataclass
class SetArgs:
    customer_name: str
    set_date: datetime
    warnings: list[str] = field(default_factory=list)


@dataclass
class ClosedArgs:
    customer_name: str
    system_size: float
    setter_id: str


@dataclass
class InstallArgs:
    customer_name: str
    setter_id: str


def split_args(raw: str) -> list[str]:
    return [part.strip() for part in raw.split("|")] if raw.strip() else []


def parse_date(value: str, today: date) -> Optional[date]:
    """MM/DD (current year), MM/DD/YY or YYYY-MM-DD. None if unparseable."""
    for fmt in ("%m/%d/%y", "%m/%d/%Y", "%Y-%m-%d"):
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    try:
        # Parse with the year attached so Feb 29 validates in leap years.
        return datetime.strptime(f"{value}/{today.year}", "%m/%d/%Y").date()
    except ValueError:
        return None


def parse_time(value: str) -> Optional[time]:
    """'14:30', '2:30 pm' or '2:30pm'. None if unparseable."""
    match = _TIME_RE.match(value.strip())
    if not match:
        return None
    hour, minute = int(match["hour"]), int(match["minute"])
    meridiem = (match["meridiem"] or "").lower().replace(".", "")
    if meridiem:
        if not 1 <= hour <= 12:
            return None
        hour = hour % 12 + (12 if meridiem == "pm" else 0)
    if hour > 23 or minute > 59:
        return None
    return time(hour, minute)


def parse_set_args(raw: str, today: date) -> SetArgs:
    """
    Customer name plus an optional date/time. An invalid date falls back to
    today with a warning rather than rejecting the set.
    """
    parts = split_args(raw)
    if not parts or not parts[0]:
        raise CommandArgumentError("Customer name is required.", SET_USAGE)
    customer_name = parts[0]
    warnings: list[str] = []
    set_day = today
    set_time = time.min
    when = parts[1] if len(parts) > 1 else ""
    if when:
        date_part, _, time_part = when.partition(" ")
        parsed_day = parse_date(date_part, today)
        if parsed_day is None:
            warnings.append(
                f"Invalid date format: '{date_part}'. Using today "
                f"({today:%m/%d/%y}). Please use MM/DD, MM/DD/YY, or YYYY-MM-DD."
            )
        else:
            set_day = parsed_day
        if time_part.strip():
            parsed_time = parse_time(time_part)
            if parsed_time is None:
                warnings.append(f"Invalid time: '{time_part.strip()}'. Recording the date only.")
            else:
                set_time = parsed_time
    return SetArgs(
        customer_name=customer_name,
        set_date=datetime.combine(set_day, set_time),
        warnings=warnings,
    )


def _resolve_setter(value: str, mentioned_user_ids: Sequence[str], usage: str) -> str:
    if value.isdigit():
        return value
    if mentioned_user_ids:
        return mentioned_user_ids[0]
    raise CommandArgumentError(
        "Setter must be a user mention or a numeric user id.", usage
    )


def parse_closed_args(raw: str, mentioned_user_ids: Sequence[str] = ()) -> ClosedArgs:
    parts = split_args(raw)
    if len(parts) < 3 or not parts[0]:
        raise CommandArgumentError(
            "Customer name, system size and setter are required.", CLOSED_USAGE
        )
    try:
        system_size = float(parts[1].lower().removesuffix("kw").strip())
    except ValueError as e:
        raise CommandArgumentError(
            f"System size must be a number of kW, got '{parts[1]}'.", CLOSED_USAGE
        ) from e
    if system_size <= 0:
        raise CommandArgumentError("System size must be positive.", CLOSED_USAGE)
    return ClosedArgs(
        customer_name=parts[0],
        system_size=system_size,
        setter_id=_resolve_setter(parts[2], mentioned_user_ids, CLOSED_USAGE),
    )


def parse_install_args(raw: str, mentioned_user_ids: Sequence[str] = ()) -> InstallArgs:
    parts = split_args(raw)
    if len(parts) < 2 or not parts[0]:
        raise CommandArgumentError(
            "Customer name and setter are required.", INSTALL_USAGE
        )
    return InstallArgs(
        customer_name=parts[0],
        setter_id=_resolve_setter(parts[1], mentioned_user_ids, INSTALL_USAGE),
    )


def parse_event_id(raw: str) -> Optional[int]:
    """Optional event id for /delete_event. Raises on non-numeric input."""
    value = raw.strip().lstrip("#")
    if not value:
        return None
    if not value.isdigit():
        raise CommandArgumentError(
            f"Event id must be a number, got '{raw.strip()}'.", "/delete_event [event id]"
        )
    return int(value)
