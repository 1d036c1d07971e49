"""
Process-wide composition root.

AppState opens the ledger database, builds the shared collaborators and
tracks background workflow tasks. Components receive what they need from it
explicitly; nothing below the command layer reads it.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import tzinfo
from typing import Any, Coroutine, Optional

from app.adapters.base import BasePlatformAdapter
from app.commands.base_telegram import BaseTelegramCommand
from app.config import Settings, get_settings
from app.core.collector import InteractionCollector
from app.core.permissions import PermissionChecker, RolePermissionChecker
from app.core.windows import resolve_timezone
from app.db import DatabaseManager, build_database_manager
from app.services.event_store import EventStore

logger = logging.getLogger(__name__)


class AppState:
    def __init__(self) -> None:
        self.settings: Optional[Settings] = None
        self.db_manager: Optional[DatabaseManager] = None
        self.event_store: Optional[EventStore] = None
        self.adapter: Optional[BasePlatformAdapter] = None
        self.permissions: Optional[PermissionChecker] = None
        self.timezone: Optional[tzinfo] = None
        self.collector = InteractionCollector()
        self._tasks: set[asyncio.Task[Any]] = set()

    def open(
        self,
        settings: Optional[Settings] = None,
        db_manager: Optional[DatabaseManager] = None,
        adapter: Optional[BasePlatformAdapter] = None,
        permissions: Optional[PermissionChecker] = None,
    ) -> "AppState":
        """Wire collaborators. Anything not passed in is built from settings."""
        self.settings = settings or get_settings()
        self.db_manager = (db_manager or build_database_manager(self.settings)).open()
        self.event_store = EventStore(self.db_manager.session_factory)
        self.adapter = adapter or BaseTelegramCommand.get_telegram_adapter()
        self.permissions = permissions or RolePermissionChecker.from_settings(
            self.settings
        )
        self.timezone = resolve_timezone(self.settings.ledger_timezone)
        logger.info(
            "App state opened (telegram=%s, timezone=%s)",
            "on" if self.adapter else "off",
            self.timezone,
        )
        return self

    async def close(self) -> None:
        """Stop open listeners, wait for workflow tasks, release resources."""
        self.collector.close_all()
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)
        close_adapter = getattr(self.adapter, "close", None)
        if close_adapter is not None:
            await close_adapter()
        if self.db_manager is not None:
            self.db_manager.close()
        self.event_store = None
        logger.info("App state closed")

    def spawn(
        self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None
    ) -> asyncio.Task[Any]:
        """Run a coroutine in the background, keeping a reference until it ends."""
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._task_done)
        return task

    def _task_done(self, task: asyncio.Task[Any]) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "Background task %s failed", task.get_name(), exc_info=exc
            )


state = AppState()
