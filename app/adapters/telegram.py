"""
Telegram platform adapter.

Uses python-telegram-bot for parsing webhook payloads and calling the Bot
API. Commands arrive as messages whose text (or photo caption) starts with a
bot_command entity; button presses arrive as callback queries.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from telegram import (
    Bot,
    InlineKeyboardButton,
    InlineKeyboardMarkup,
    Message,
    MessageEntity,
    Update,
)
from telegram.error import BadRequest

from app.adapters.base import BasePlatformAdapter, InboundUpdate
from app.schemas.chat import (
    Attachment,
    Button,
    Channel,
    CommandInvocation,
    ComponentInteraction,
    OutboundMessage,
    OutboundSendResult,
)

logger = logging.getLogger(__name__)


def build_keyboard(buttons: Optional[list[list[Button]]]) -> Optional[InlineKeyboardMarkup]:
    """Inline keyboard for button rows. Disabled buttons are dropped."""
    rows = [
        [
            InlineKeyboardButton(text=button.label, callback_data=button.custom_id)
            for button in row
            if not button.disabled
        ]
        for row in buttons or []
    ]
    rows = [row for row in rows if row]
    return InlineKeyboardMarkup(rows) if rows else None


class TelegramAdapter(BasePlatformAdapter):
    """Telegram adapter: parse webhook updates, talk to the Bot API."""

    TELEGRAM_SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

    def __init__(self, bot_token: str, webhook_secret: Optional[str] = None) -> None:
        self._bot_token = bot_token
        self._webhook_secret = webhook_secret
        self._bot: Optional[Bot] = None

    def _get_bot(self) -> Bot:
        if self._bot is None:
            self._bot = Bot(token=self._bot_token)
        return self._bot

    async def close(self) -> None:
        if self._bot is not None:
            await self._bot.shutdown()
            self._bot = None

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """Validate X-Telegram-Bot-Api-Secret-Token if webhook secret is configured."""
        expected = secret or self._webhook_secret
        if not expected:
            return True
        request_headers = request_headers or {}
        header_lower = self.TELEGRAM_SECRET_HEADER.lower()
        actual = None
        for key, value in request_headers.items():
            if key.lower() == header_lower:
                actual = value
                break
        return actual == expected

    def parse_webhook(self, raw_payload: dict[str, Any]) -> Optional[InboundUpdate]:
        """Parse a Telegram update into a command or a button interaction."""
        update = Update.de_json(raw_payload, self._get_bot())
        if update is None:
            raise ValueError("Invalid Telegram update: de_json returned None")
        if update.callback_query is not None:
            return self._parse_callback(update)
        if update.message is not None:
            return self._parse_command(update.message)
        return None

    def _parse_callback(self, update: Update) -> Optional[ComponentInteraction]:
        query = update.callback_query
        if query.message is None or not query.data:
            # Inline-mode messages and games carry no chat message to match.
            return None
        return ComponentInteraction(
            channel=Channel.TELEGRAM,
            interaction_id=str(query.id),
            actor_id=str(query.from_user.id),
            chat_id=str(query.message.chat.id),
            message_id=str(query.message.message_id),
            custom_id=query.data,
        )

    def _parse_command(self, msg: Message) -> Optional[CommandInvocation]:
        if msg.from_user is None:
            return None
        if msg.text is not None:
            text = msg.text
            commands = msg.parse_entities([MessageEntity.BOT_COMMAND])
            mentions = msg.parse_entities([MessageEntity.TEXT_MENTION])
        elif msg.caption is not None:
            text = msg.caption
            commands = msg.parse_caption_entities([MessageEntity.BOT_COMMAND])
            mentions = msg.parse_caption_entities([MessageEntity.TEXT_MENTION])
        else:
            return None

        command_text = next(
            (value for entity, value in commands.items() if entity.offset == 0), None
        )
        if command_text is None:
            return None
        name = command_text.lstrip("/").split("@", 1)[0].lower()
        args = text[len(command_text):].strip()

        attachments: list[Attachment] = []
        if msg.photo:
            attachments.append(Attachment(kind="photo", file_id=msg.photo[-1].file_id))
        if msg.document:
            attachments.append(
                Attachment(
                    kind="document",
                    file_id=msg.document.file_id,
                    file_name=msg.document.file_name,
                    mime_type=msg.document.mime_type,
                )
            )

        mentioned = [
            str(entity.user.id)
            for entity in sorted(mentions, key=lambda e: e.offset)
            if entity.user is not None
        ]
        return CommandInvocation(
            channel=Channel.TELEGRAM,
            name=name,
            args=args,
            actor_id=str(msg.from_user.id),
            actor_name=msg.from_user.full_name,
            chat_id=str(msg.chat_id),
            message_id=str(msg.message_id),
            mentioned_user_ids=mentioned,
            attachments=attachments,
        )

    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Send message via Telegram Bot API."""
        if outbound.channel != Channel.TELEGRAM:
            return OutboundSendResult(success=False, platform_message_id=None)

        send_kw: dict[str, Any] = {
            "chat_id": int(outbound.chat_id),
            "text": outbound.text,
            "reply_to_message_id": (
                int(outbound.reply_to_message_id)
                if outbound.reply_to_message_id
                else None
            ),
        }
        keyboard = build_keyboard(outbound.buttons)
        if keyboard is not None:
            send_kw["reply_markup"] = keyboard
        if outbound.parse_mode:
            send_kw["parse_mode"] = outbound.parse_mode
        sent = await self._get_bot().send_message(**send_kw)
        return OutboundSendResult(
            success=True,
            platform_message_id=(
                str(sent.message_id) if sent and sent.message_id else None
            ),
        )

    async def edit(
        self,
        chat_id: str,
        message_id: str,
        text: Optional[str] = None,
        buttons: Optional[list[list[Button]]] = None,
        parse_mode: Optional[str] = None,
    ) -> None:
        bot = self._get_bot()
        keyboard = build_keyboard(buttons)
        try:
            if text is None:
                await bot.edit_message_reply_markup(
                    chat_id=int(chat_id),
                    message_id=int(message_id),
                    reply_markup=keyboard,
                )
            else:
                await bot.edit_message_text(
                    text=text,
                    chat_id=int(chat_id),
                    message_id=int(message_id),
                    reply_markup=keyboard,
                    parse_mode=parse_mode,
                )
        except BadRequest as e:
            if "not modified" in str(e).lower():
                return
            raise

    async def answer_interaction(
        self, interaction_id: str, text: Optional[str] = None
    ) -> None:
        await self._get_bot().answer_callback_query(
            callback_query_id=interaction_id, text=text
        )

    async def send_document(
        self,
        chat_id: str,
        filename: str,
        content: bytes,
        caption: Optional[str] = None,
    ) -> OutboundSendResult:
        sent = await self._get_bot().send_document(
            chat_id=int(chat_id),
            document=content,
            filename=filename,
            caption=caption,
        )
        return OutboundSendResult(
            success=True,
            platform_message_id=str(sent.message_id) if sent else None,
        )

    async def get_display_name(self, chat_id: str, user_id: str) -> Optional[str]:
        try:
            member = await self._get_bot().get_chat_member(
                chat_id=int(chat_id), user_id=int(user_id)
            )
        except BadRequest as e:
            logger.info("Chat member %s not found in %s: %s", user_id, chat_id, e)
            return None
        return member.user.full_name if member and member.user else None
