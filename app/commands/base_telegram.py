"""
Base command for Telegram-related operations.

Provides a shared way to obtain a configured TelegramAdapter, plus the base
class for the chat commands that reply through it.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional

from app.adapters.telegram import TelegramAdapter
from app.config import get_settings
from app.core.permissions import Capability
from app.schemas.chat import Button, CommandInvocation, OutboundMessage, OutboundSendResult
from app.utils.formatting import PERMISSION_DENIED

if TYPE_CHECKING:
    from app.core.app_state import AppState


class BaseTelegramCommand:
    """
    Base for Telegram-related commands.
    Provides a shared way to obtain a configured TelegramAdapter.
    """

    @staticmethod
    def get_telegram_adapter() -> TelegramAdapter | None:
        """Return configured TelegramAdapter or None if Telegram is disabled."""
        settings = get_settings()
        if not settings.telegram_enabled or not settings.telegram_bot_token:
            return None
        return TelegramAdapter(
            bot_token=settings.telegram_bot_token,
            webhook_secret=settings.telegram_webhook_secret,
        )


class BaseChatCommand(BaseTelegramCommand):
    """
    A slash command handled inside the chat.

    Subclasses set `name`, `description` and `capability` and implement
    `run`. `execute` checks the invoking user's permission first and replies
    with a notice instead of running when it is missing.
    """

    name: str = ""
    description: str = ""
    capability: Optional[Capability] = None

    def __init__(self, state: "AppState") -> None:
        self.state = state
        self.logger = logging.getLogger(__name__)

    @property
    def adapter(self):
        if self.state.adapter is None:
            raise RuntimeError("No chat platform adapter is configured")
        return self.state.adapter

    @property
    def store(self):
        if self.state.event_store is None:
            raise RuntimeError("Event store is not open")
        return self.state.event_store

    def is_allowed(self, invocation: CommandInvocation) -> bool:
        if self.capability is None or self.state.permissions is None:
            return True
        return self.state.permissions.allows(invocation.actor_id, self.capability)

    async def execute(self, invocation: CommandInvocation) -> Any:
        if not self.is_allowed(invocation):
            self.logger.info(
                "User %s denied /%s", invocation.actor_id, invocation.name
            )
            await self.reply(invocation, PERMISSION_DENIED)
            return None
        return await self.run(invocation)

    async def run(self, invocation: CommandInvocation) -> Any:
        raise NotImplementedError

    async def reply(
        self,
        invocation: CommandInvocation,
        text: str,
        buttons: Optional[list[list[Button]]] = None,
    ) -> OutboundSendResult:
        return await self.adapter.send(
            OutboundMessage(
                channel=invocation.channel,
                chat_id=invocation.chat_id,
                text=text,
                reply_to_message_id=invocation.message_id,
                buttons=buttons or [],
            )
        )
