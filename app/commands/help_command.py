"""/help: list the available commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Iterable

from app.commands.base_telegram import BaseChatCommand
from app.schemas.chat import CommandInvocation
from app.utils import formatting

if TYPE_CHECKING:
    from app.core.app_state import AppState


class HelpCommand(BaseChatCommand):
    name = "help"
    description = "Show this help"

    def __init__(self, state: "AppState", commands: Iterable[tuple[str, str]] = ()) -> None:
        super().__init__(state)
        self.commands = list(commands)

    async def run(self, invocation: CommandInvocation) -> str:
        text = formatting.command_help(self.commands)
        await self.reply(invocation, text)
        return text
