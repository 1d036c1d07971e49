"""Full-ledger export enriched with resolved display names."""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable

from app.models.mixins import utcnow
from app.schemas.export import ExportResult, ExportRow, ExportStatus
from app.services.event_store import EventStore
from app.services.username_resolver import UsernameResolver

logger = logging.getLogger(__name__)


class ExportGenerator:
    """Produces a point-in-time dump of every event, oldest id first."""

    def __init__(
        self,
        store: EventStore,
        resolver: UsernameResolver,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self._store = store
        self._resolver = resolver
        self._clock = clock

    async def generate(self) -> ExportResult:
        """
        Read all events in one statement and attach actor/setter names.

        Returns an EMPTY result (not an error) when the ledger has no rows.
        Each distinct user id is resolved once, whichever column it appears in.
        """
        generated_at = self._clock()
        events = self._store.list_all()
        if not events:
            logger.info("Export requested on an empty ledger")
            return ExportResult(status=ExportStatus.EMPTY, generated_at=generated_at)

        user_ids: set[str] = set()
        for event in events:
            user_ids.update(event.referenced_user_ids)
        names = await self._resolver.resolve(sorted(user_ids))

        rows = [
            ExportRow(
                event=event,
                actor_name=names.get(event.actor_id, self._resolver.placeholder),
                setter_name=(
                    names.get(event.setter_id, self._resolver.placeholder)
                    if event.setter_id
                    else None
                ),
            )
            for event in events
        ]
        logger.info("Export generated: %d rows, %d users", len(rows), len(user_ids))
        return ExportResult(
            status=ExportStatus.READY, generated_at=generated_at, rows=rows
        )
