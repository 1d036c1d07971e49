"""
Event model: the single ledger table.

Rows are inserted by the recording commands, updated once when the
confirmation message id is attached, and hard-deleted by the deletion
workflow. Ids come from an AUTOINCREMENT sequence and are never reused.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Column, DateTime, Float, Index, Integer, String

from app.constants.events import EventStatus
from app.db import Base
from app.models.mixins import TimestampMixin


class Event(Base, TimestampMixin):
    """One recorded business action (set, closed deal, install scheduled)."""

    __tablename__ = "events"

    __table_args__ = (
        Index("ix_events_type_created_at", "type", "created_at"),
        Index("ix_events_type_set_date", "type", "set_date"),
        Index("ix_events_setter_id", "setter_id"),
        {"sqlite_autoincrement": True},
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    type = Column(String(32), nullable=False)
    actor_id = Column(String(64), nullable=False)
    channel_id = Column(String(64), nullable=False)
    message_id = Column(String(64), nullable=True)  # confirmation message
    status = Column(String(16), nullable=False, default=EventStatus.PENDING.value)

    customer_name = Column(String(255), nullable=True)
    set_date = Column(DateTime, nullable=True)  # local civil time, business moment
    has_bill = Column(Boolean, nullable=True)
    system_size = Column(Float, nullable=True)  # kW
    setter_id = Column(String(64), nullable=True)

    def __repr__(self) -> str:
        return f"<Event id={self.id} type={self.type} actor={self.actor_id}>"
