"""Plain-text presentation of ledger data. Pure functions, no I/O."""

from __future__ import annotations

from datetime import datetime
from typing import Iterable, Optional

from app.constants.events import UNKNOWN_USER, EventType
from app.schemas.event import EventRead
from app.schemas.stats import StatsSummary

PERMISSION_DENIED = "⛔ You do not have permission to use this command."
GENERIC_FAILURE = "❌ Something went wrong while talking to the ledger. Please try again later."

EVENT_TYPE_LABELS = {
    EventType.SET: "Set",
    EventType.CLOSED: "Closed",
    EventType.INSTALL_SCHEDULED: "Install scheduled",
}


def format_date(value: Optional[datetime]) -> str:
    return value.strftime("%m/%d/%y") if value else "N/A"


def format_datetime(value: Optional[datetime]) -> str:
    return value.strftime("%m/%d/%y %I:%M %p") if value else "N/A"


def format_set_date(value: Optional[datetime]) -> str:
    """Set dates without a time of day print as a bare date."""
    if value is None:
        return "N/A"
    if value.hour == 0 and value.minute == 0:
        return format_date(value)
    return format_datetime(value)


def name_for(user_id: Optional[str], usernames: dict[str, str]) -> str:
    if not user_id:
        return "N/A"
    return usernames.get(user_id, UNKNOWN_USER)


def set_recorded(
    actor_name: str,
    customer_name: str,
    set_date: datetime,
    has_bill: bool,
    warnings: Iterable[str] = (),
) -> str:
    lines = [
        "✅ New Set Recorded!",
        f"{actor_name} just recorded a new set!",
        f"Customer: {customer_name}",
        f"Date: {format_set_date(set_date)}",
        f"Bill Included: {'Yes (Image Attached)' if has_bill else 'No'}",
    ]
    lines.extend(f"⚠️ {warning}" for warning in warnings)
    return "\n".join(lines)


def closed_recorded(
    actor_name: str, customer_name: str, system_size: float, setter_name: str
) -> str:
    return "\n".join(
        [
            "💣 Deal Closed!",
            f"{actor_name} just closed a deal set by {setter_name}! 🥳",
            f"Customer: {customer_name}",
            f"System Size: {system_size:g} kW",
            f"Setter: {setter_name}",
        ]
    )


def install_recorded(actor_name: str, customer_name: str, setter_name: str) -> str:
    return "\n".join(
        [
            "✨ Installation Scheduled!",
            f"{actor_name} just scheduled an installation for a deal set by {setter_name}! 🎉",
            f"Customer: {customer_name}",
            f"Original Setter: {setter_name}",
        ]
    )


def event_summary_line(event: EventRead, usernames: dict[str, str]) -> str:
    return (
        f"#{event.id} ({event.type.value}) | Cust: {event.customer_name or 'N/A'} "
        f"| By: {name_for(event.actor_id, usernames)} "
        f"| Date: {format_set_date(event.set_date)}"
    )


def event_listing(events: Iterable[EventRead], usernames: dict[str, str]) -> str:
    events = list(events)
    lines = [f"📋 Last {len(events)} Events Logged", "Pick an event to delete it, or export the full ledger."]
    lines.extend(event_summary_line(event, usernames) for event in events)
    return "\n".join(lines)


def deletion_confirmation(event: EventRead) -> str:
    return "\n".join(
        [
            f"Confirm Deletion: Event ID {event.id}",
            "Are you sure you want to permanently delete this event? This cannot be undone.",
            f"Type: {event.type.value}",
            f"User ID: {event.actor_id}",
            f"Customer: {event.customer_name or 'N/A'}",
            f"Created At (UTC): {event.created_at:%m/%d/%y %H:%M:%S}",
            f"Set Date/Time: {format_set_date(event.set_date)}",
            f"Setter ID: {event.setter_id or 'N/A'}",
        ]
    )


def stats_dashboard(summary: StatsSummary, usernames: dict[str, str]) -> str:
    if summary.leaderboard:
        board = "\n".join(
            f"{name_for(entry.actor_id, usernames)}: {entry.count}🔅"
            for entry in summary.leaderboard
        )
    else:
        board = "No sets recorded yet today!"
    return "\n".join(
        [
            "📈 Sales Stats 📊",
            "Daily Leaderboard (Sets)",
            board,
            "---",
            f"Daily Sets 📝: {summary.daily_sets}",
            f"Weekly Closes 💣: {summary.weekly_closes}",
            f"Monthly Closes 🥵: {summary.monthly_closes}",
            f"Monthly Installs ✨: {summary.monthly_installs}",
        ]
    )


def command_help(commands: Iterable[tuple[str, str]]) -> str:
    lines = [
        "🤖 Sales Ledger Help",
        "I track sets, closes, and installations via slash commands.",
        "",
    ]
    lines.extend(f"/{name}: {description}" for name, description in commands)
    return "\n".join(lines)
