"""
Event store: durable CRUD over ledger events.

Writes follow a two-phase pattern: append() inserts the row as pending,
then attach_message() finalizes it with the confirmation message id. A row
whose finalization never happens stays pending (or is marked orphaned) and
is still a valid ledger entry.

Every operation runs in its own short session. SQLAlchemy errors surface as
EventStoreError; nothing is retried, since a retried append would record the
business event twice.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, List, Optional

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.constants.events import (
    REQUIRED_FIELDS,
    VARIANT_FIELDS,
    EventStatus,
    EventType,
)
from app.exceptions import EventStoreError, EventValidationError
from app.models.event import Event
from app.models.mixins import utcnow
from app.schemas.event import EventDraft, EventRead

logger = logging.getLogger(__name__)


class EventStore:
    """Create, finalize, read and delete ledger events."""

    def __init__(
        self,
        session_factory: sessionmaker | Callable[[], Session],
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._session_factory = session_factory
        self._clock = clock

    def append(self, draft: EventDraft) -> int:
        """Validate and insert a new event. Returns the assigned id."""
        self._validate(draft)
        event = Event(
            type=draft.type.value,
            actor_id=draft.actor_id,
            channel_id=draft.channel_id,
            status=EventStatus.PENDING.value,
            created_at=self._clock(),
            **draft.variant_values(),
        )
        with self._session_factory() as db:
            try:
                db.add(event)
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("Failed to append %s event", draft.type)
                raise EventStoreError("append", detail=str(e)) from e
            logger.info(
                "Appended %s event id=%s actor=%s", event.type, event.id, event.actor_id
            )
            return event.id

    def attach_message(self, event_id: int, message_id: str) -> None:
        """
        Attach the confirmation message id and mark the row finalized.

        Idempotent. An unknown id is logged and ignored: the business event
        was already recorded, or has since been deleted.
        """
        with self._session_factory() as db:
            try:
                event = db.get(Event, event_id)
                if event is None:
                    logger.warning(
                        "attach_message: event id=%s no longer exists", event_id
                    )
                    return
                if (
                    event.message_id == message_id
                    and event.status == EventStatus.FINALIZED.value
                ):
                    return
                event.message_id = message_id
                event.status = EventStatus.FINALIZED.value
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("attach_message failed for event id=%s", event_id)
                raise EventStoreError("attach_message", event_id, str(e)) from e

    def mark_orphaned(self, event_id: int) -> None:
        """Record that finalization failed. Finalized rows are left untouched."""
        with self._session_factory() as db:
            try:
                updated = (
                    db.query(Event)
                    .filter(
                        Event.id == event_id,
                        Event.status == EventStatus.PENDING.value,
                    )
                    .update(
                        {Event.status: EventStatus.ORPHANED.value},
                        synchronize_session=False,
                    )
                )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("mark_orphaned failed for event id=%s", event_id)
                raise EventStoreError("mark_orphaned", event_id, str(e)) from e
        if not updated:
            logger.warning("mark_orphaned: event id=%s is not pending", event_id)

    def get_by_id(self, event_id: int) -> Optional[EventRead]:
        """Fetch a single event, or None when it does not exist."""
        with self._session_factory() as db:
            try:
                event = db.get(Event, event_id)
            except SQLAlchemyError as e:
                raise EventStoreError("get_by_id", event_id, str(e)) from e
            return EventRead.model_validate(event) if event is not None else None

    def list_recent(self, limit: int = 10) -> List[EventRead]:
        """Most recent events, newest id first."""
        with self._session_factory() as db:
            try:
                rows = db.query(Event).order_by(Event.id.desc()).limit(limit).all()
            except SQLAlchemyError as e:
                raise EventStoreError("list_recent", detail=str(e)) from e
            return [EventRead.model_validate(row) for row in rows]

    def list_all(self) -> List[EventRead]:
        """Every event, oldest id first, read in a single statement."""
        with self._session_factory() as db:
            try:
                rows = db.query(Event).order_by(Event.id.asc()).all()
            except SQLAlchemyError as e:
                raise EventStoreError("list_all", detail=str(e)) from e
            return [EventRead.model_validate(row) for row in rows]

    def delete(self, event_id: int) -> int:
        """
        Hard-delete an event. Returns 1 when a row was removed and 0 when it
        was already gone (e.g. a concurrent workflow deleted it first).
        """
        with self._session_factory() as db:
            try:
                deleted = (
                    db.query(Event)
                    .filter(Event.id == event_id)
                    .delete(synchronize_session=False)
                )
                db.commit()
            except SQLAlchemyError as e:
                db.rollback()
                logger.exception("delete failed for event id=%s", event_id)
                raise EventStoreError("delete", event_id, str(e)) from e
        if deleted:
            logger.info("Deleted event id=%s", event_id)
        else:
            logger.warning("delete: event id=%s was already gone", event_id)
        return deleted

    def count_in_range(
        self,
        event_type: EventType,
        start: datetime,
        end: datetime,
        by_business_date: bool = False,
    ) -> int:
        """Count events of a type whose timestamp falls in [start, end)."""
        column = Event.set_date if by_business_date else Event.created_at
        with self._session_factory() as db:
            try:
                return (
                    db.query(func.count(Event.id))
                    .filter(
                        Event.type == event_type.value,
                        column >= start,
                        column < end,
                    )
                    .scalar()
                    or 0
                )
            except SQLAlchemyError as e:
                raise EventStoreError("count_in_range", detail=str(e)) from e

    def actors_in_range(
        self,
        event_type: EventType,
        start: datetime,
        end: datetime,
        by_business_date: bool = False,
    ) -> List[str]:
        """Actor ids of matching events in [start, end), in id order."""
        column = Event.set_date if by_business_date else Event.created_at
        with self._session_factory() as db:
            try:
                rows = (
                    db.query(Event.actor_id)
                    .filter(
                        Event.type == event_type.value,
                        column >= start,
                        column < end,
                    )
                    .order_by(Event.id.asc())
                    .all()
                )
            except SQLAlchemyError as e:
                raise EventStoreError("actors_in_range", detail=str(e)) from e
            return [row.actor_id for row in rows]

    def _validate(self, draft: EventDraft) -> None:
        supplied = set(draft.variant_values())
        required = REQUIRED_FIELDS[draft.type]
        missing = required - supplied
        if "customer_name" in supplied and not draft.customer_name.strip():
            missing = missing | {"customer_name"}
        if missing:
            raise EventValidationError(
                f"{draft.type} event is missing: {', '.join(sorted(missing))}",
                missing,
            )
        foreign = supplied & (VARIANT_FIELDS - required)
        if foreign:
            raise EventValidationError(
                f"{draft.type} event does not accept: {', '.join(sorted(foreign))}",
                foreign,
            )
        if draft.system_size is not None and draft.system_size <= 0:
            raise EventValidationError(
                "system_size must be a positive number of kW", {"system_size"}
            )
        if draft.set_date is not None and draft.set_date.tzinfo is not None:
            raise EventValidationError(
                "set_date must be a local civil date/time without tzinfo",
                {"set_date"},
            )
