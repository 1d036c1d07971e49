"""
Command to handle Telegram webhook updates.

Receives raw webhook data, validates the secret and parses the update. Slash
commands go to the CommandDispatcher; button presses go to the interaction
collector, and presses nobody is waiting for are answered with a notice.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from fastapi import HTTPException, Request

from app.adapters.base import BasePlatformAdapter
from app.commands.base_telegram import BaseTelegramCommand
from app.commands.dispatcher import CommandDispatcher
from app.config import get_settings
from app.core.collector import DispatchResult
from app.schemas.chat import CommandInvocation, ComponentInteraction

if TYPE_CHECKING:
    from app.core.app_state import AppState

UNAVAILABLE_INTERACTION = "This button is not available to you."
EXPIRED_INTERACTION = "This prompt has expired."


class TelegramWebhookCommand(BaseTelegramCommand):
    """
    Command to handle Telegram webhook updates.
    Validates X-Telegram-Bot-Api-Secret-Token, parses the update and routes it.
    Handler failures are logged and swallowed so Telegram still gets a 200
    and does not redeliver the update.
    """

    def __init__(self, state: "AppState") -> None:
        self.state = state
        self.settings = state.settings or get_settings()
        self._adapter: BasePlatformAdapter | None = state.adapter
        self.dispatcher = CommandDispatcher(state)
        self.logger = logging.getLogger(__name__)

    async def execute(self, request: Request, body: dict[str, Any]) -> dict[str, str]:
        """
        Execute the Telegram webhook: validate secret, parse body, route it.

        Args:
            request: The incoming webhook request (headers for secret validation).
            body: Raw Telegram update payload.

        Returns:
            dict: {"status": "ok"} on success.

        Raises:
            HTTPException: 503 if Telegram not configured, 403 on invalid secret,
                400 on invalid Telegram update.
        """
        if self._adapter is None:
            raise HTTPException(
                status_code=503,
                detail="Telegram integration is not configured or disabled",
            )
        headers = dict(request.headers) if request.headers else {}
        if not self._adapter.verify_webhook(
            self.settings.telegram_webhook_secret, headers
        ):
            raise HTTPException(status_code=403, detail="Invalid webhook secret")
        try:
            inbound = self._adapter.parse_webhook(body)
        except (ValueError, KeyError, TypeError) as e:
            self.logger.warning("Telegram webhook parse error: %s", e)
            raise HTTPException(
                status_code=400, detail="Invalid Telegram update"
            ) from e

        if isinstance(inbound, CommandInvocation):
            await self._handle_command(inbound)
        elif isinstance(inbound, ComponentInteraction):
            await self._handle_interaction(inbound)
        else:
            self.logger.debug("Ignoring Telegram update without a command")
        return {"status": "ok"}

    async def _handle_command(self, invocation: CommandInvocation) -> None:
        self.logger.info(
            "Command /%s from %s in chat %s",
            invocation.name,
            invocation.actor_id,
            invocation.chat_id,
        )
        try:
            await self.dispatcher.dispatch(invocation)
        except Exception as e:
            self.logger.exception("Command /%s failed: %s", invocation.name, e)

    async def _handle_interaction(self, interaction: ComponentInteraction) -> None:
        result = await self.state.collector.dispatch(interaction)
        self.logger.info(
            "Interaction %s from %s on message %s: %s",
            interaction.custom_id,
            interaction.actor_id,
            interaction.message_id,
            result,
        )
        if result == DispatchResult.ACCEPTED:
            # The workflow acknowledges the presses it accepts.
            return
        notice = (
            UNAVAILABLE_INTERACTION
            if result == DispatchResult.IGNORED
            else EXPIRED_INTERACTION
        )
        try:
            await self._adapter.answer_interaction(interaction.interaction_id, notice)
        except Exception as e:
            self.logger.exception("Failed to answer interaction: %s", e)
