"""Event types, lifecycle states and stats windows for the sales ledger."""

from enum import StrEnum


class EventType(StrEnum):
    """Business events members record from the chat."""

    SET = "set"
    CLOSED = "closed"
    INSTALL_SCHEDULED = "install_sched"


class EventStatus(StrEnum):
    """
    Two-phase write lifecycle.

    A row is inserted as PENDING, becomes FINALIZED once the confirmation
    message id is attached, or ORPHANED when posting the confirmation failed.
    ORPHANED rows are complete ledger entries without a message id.
    """

    PENDING = "pending"
    FINALIZED = "finalized"
    ORPHANED = "orphaned"


class StatsWindow(StrEnum):
    """Named local-calendar ranges used for aggregation."""

    TODAY = "today"
    TRAILING_7_DAYS = "trailing_7_days"
    MONTH_TO_DATE = "month_to_date"


# Payload fields each event type carries (besides the common columns).
REQUIRED_FIELDS: dict[EventType, frozenset[str]] = {
    EventType.SET: frozenset({"customer_name", "set_date", "has_bill"}),
    EventType.CLOSED: frozenset({"customer_name", "system_size", "setter_id"}),
    EventType.INSTALL_SCHEDULED: frozenset({"customer_name", "setter_id"}),
}

VARIANT_FIELDS: frozenset[str] = frozenset(
    {"customer_name", "set_date", "has_bill", "system_size", "setter_id"}
)

UNKNOWN_USER = "unknown"
