"""Pydantic schemas for ledger events."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.constants.events import EventStatus, EventType, VARIANT_FIELDS


class EventDraft(BaseModel):
    """
    An event as submitted by a recording command, before the store assigns
    id and created_at. Variant fields are optional here; EventStore.append
    checks which ones the type requires.
    """

    type: EventType
    actor_id: str = Field(min_length=1)
    channel_id: str = Field(min_length=1)
    customer_name: Optional[str] = None
    set_date: Optional[datetime] = None
    has_bill: Optional[bool] = None
    system_size: Optional[float] = None
    setter_id: Optional[str] = None

    def variant_values(self) -> dict[str, object]:
        """Variant fields that were supplied (not None)."""
        return {
            name: getattr(self, name)
            for name in sorted(VARIANT_FIELDS)
            if getattr(self, name) is not None
        }


class EventRead(BaseModel):
    """A persisted event row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    type: EventType
    actor_id: str
    channel_id: str
    message_id: Optional[str] = None
    status: EventStatus
    created_at: datetime
    customer_name: Optional[str] = None
    set_date: Optional[datetime] = None
    has_bill: Optional[bool] = None
    system_size: Optional[float] = None
    setter_id: Optional[str] = None

    @property
    def referenced_user_ids(self) -> list[str]:
        """actor_id plus setter_id when present."""
        ids = [self.actor_id]
        if self.setter_id:
            ids.append(self.setter_id)
        return ids
