"""Maps parsed command names to command classes."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from app.commands.base_telegram import BaseChatCommand
from app.commands.delete_event_command import DeleteEventCommand
from app.commands.export_command import ExportCommand
from app.commands.help_command import HelpCommand
from app.commands.record_event_command import (
    RecordClosedCommand,
    RecordInstallCommand,
    RecordSetCommand,
)
from app.commands.stats_command import StatsCommand
from app.schemas.chat import CommandInvocation

if TYPE_CHECKING:
    from app.core.app_state import AppState

logger = logging.getLogger(__name__)

COMMANDS: tuple[type[BaseChatCommand], ...] = (
    RecordSetCommand,
    RecordClosedCommand,
    RecordInstallCommand,
    StatsCommand,
    ExportCommand,
    DeleteEventCommand,
    HelpCommand,
)

# Alternate names users type for the same commands.
ALIASES = {
    "start": "help",
    "export": "export_db",
    "dump": "export_db",
    "delete": "delete_event",
}


class CommandDispatcher:
    def __init__(self, state: "AppState") -> None:
        self.state = state
        self._registry = {command.name: command for command in COMMANDS}

    def describe(self) -> list[tuple[str, str]]:
        return [(command.name, command.description) for command in COMMANDS]

    def get(self, name: str) -> Optional[BaseChatCommand]:
        command_cls = self._registry.get(ALIASES.get(name, name))
        if command_cls is None:
            return None
        if command_cls is HelpCommand:
            return HelpCommand(self.state, self.describe())
        return command_cls(self.state)

    async def dispatch(self, invocation: CommandInvocation) -> Any:
        """Run the matching command. Unknown commands are ignored (None)."""
        command = self.get(invocation.name)
        if command is None:
            logger.debug("Ignoring unknown command /%s", invocation.name)
            return None
        return await command.execute(invocation)
