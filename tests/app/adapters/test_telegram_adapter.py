"""Tests for TelegramAdapter."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from telegram import InlineKeyboardMarkup
from telegram.error import BadRequest

from app.adapters.telegram import TelegramAdapter, build_keyboard
from app.schemas.chat import (
    Button,
    Channel,
    CommandInvocation,
    ComponentInteraction,
    OutboundMessage,
    OutboundSendResult,
)

USER = {
    "id": 789,
    "is_bot": False,
    "first_name": "Test",
    "last_name": "User",
    "language_code": "en",
}
CHAT = {"id": -1001, "type": "supergroup", "title": "Sales Floor"}


def command_update(text: str, entities=None, **message_fields):
    """Telegram webhook update carrying a command message."""
    message = {
        "message_id": 456,
        "from": USER,
        "chat": CHAT,
        "date": 1609459200,  # Unix timestamp
        "text": text,
        "entities": entities
        if entities is not None
        else [{"type": "bot_command", "offset": 0, "length": len(text.split()[0])}],
    }
    message.update(message_fields)
    return {"update_id": 123, "message": message}


def callback_update(data: str = "del:confirm:5"):
    return {
        "update_id": 124,
        "callback_query": {
            "id": "cbq-1",
            "from": USER,
            "chat_instance": "ci-1",
            "data": data,
            "message": {
                "message_id": 900,
                "from": {"id": 1, "is_bot": True, "first_name": "LedgerBot"},
                "chat": CHAT,
                "date": 1609459200,
                "text": "Confirm Deletion: Event ID 5",
            },
        },
    }


# Token format: digits:rest (e.g. 123456:ABC). Used only for parse tests; no real API calls.
FAKE_TOKEN = "123456:AAHdqTcvCH1vGWJxfSeofSAs0K5P"


@pytest.fixture
def telegram_adapter():
    return TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret=None)


@pytest.fixture
def mock_bot():
    bot = MagicMock()
    sent = MagicMock()
    sent.message_id = 42
    bot.send_message = AsyncMock(return_value=sent)
    bot.send_document = AsyncMock(return_value=sent)
    bot.edit_message_text = AsyncMock()
    bot.edit_message_reply_markup = AsyncMock()
    bot.answer_callback_query = AsyncMock()
    bot.get_chat_member = AsyncMock()
    return bot


def test_verify_webhook_no_secret(telegram_adapter):
    assert telegram_adapter.verify_webhook(None, {}) is True
    assert (
        telegram_adapter.verify_webhook(None, {"X-Telegram-Bot-Api-Secret-Token": "x"})
        is True
    )


def test_verify_webhook_with_secret():
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret="secret")
    assert (
        adapter.verify_webhook("secret", {"X-Telegram-Bot-Api-Secret-Token": "secret"})
        is True
    )
    assert (
        adapter.verify_webhook("secret", {"X-Telegram-Bot-Api-Secret-Token": "wrong"})
        is False
    )


def test_verify_webhook_case_insensitive_header():
    """Headers are case-insensitive; Starlette/FastAPI lowercases them."""
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN, webhook_secret="my-secret")
    assert (
        adapter.verify_webhook(
            "my-secret", {"x-telegram-bot-api-secret-token": "my-secret"}
        )
        is True
    )


def test_parse_webhook_command(telegram_adapter):
    inbound = telegram_adapter.parse_webhook(command_update("/set Jane Doe | 07/05"))
    assert isinstance(inbound, CommandInvocation)
    assert inbound.channel == Channel.TELEGRAM
    assert inbound.name == "set"
    assert inbound.args == "Jane Doe | 07/05"
    assert inbound.actor_id == "789"
    assert inbound.actor_name == "Test User"
    assert inbound.chat_id == "-1001"
    assert inbound.message_id == "456"
    assert inbound.attachments == []


def test_parse_webhook_strips_bot_username(telegram_adapter):
    inbound = telegram_adapter.parse_webhook(command_update("/Stats@LedgerBot"))
    assert inbound.name == "stats"
    assert inbound.args == ""


def test_parse_webhook_collects_text_mentions(telegram_adapter):
    text = "/closed Jane Doe | 8.5 | Sam"
    entities = [
        {"type": "bot_command", "offset": 0, "length": 7},
        {
            "type": "text_mention",
            "offset": text.index("Sam"),
            "length": 3,
            "user": {"id": 111, "is_bot": False, "first_name": "Sam"},
        },
    ]
    inbound = telegram_adapter.parse_webhook(command_update(text, entities=entities))
    assert inbound.mentioned_user_ids == ["111"]


def test_parse_webhook_photo_caption(telegram_adapter):
    payload = command_update("ignored")
    message = payload["message"]
    del message["text"], message["entities"]
    message["caption"] = "/set Jane Doe"
    message["caption_entities"] = [{"type": "bot_command", "offset": 0, "length": 4}]
    message["photo"] = [
        {"file_id": "small", "file_unique_id": "u1", "width": 90, "height": 90},
        {"file_id": "large", "file_unique_id": "u2", "width": 800, "height": 800},
    ]

    inbound = telegram_adapter.parse_webhook(payload)

    assert inbound.name == "set"
    assert inbound.args == "Jane Doe"
    assert len(inbound.attachments) == 1
    assert inbound.attachments[0].file_id == "large"
    assert inbound.attachments[0].is_image


def test_parse_webhook_plain_text_is_ignored(telegram_adapter):
    assert telegram_adapter.parse_webhook(command_update("hello", entities=[])) is None


def test_parse_webhook_callback_query(telegram_adapter):
    inbound = telegram_adapter.parse_webhook(callback_update("del:pick:7"))
    assert isinstance(inbound, ComponentInteraction)
    assert inbound.interaction_id == "cbq-1"
    assert inbound.actor_id == "789"
    assert inbound.chat_id == "-1001"
    assert inbound.message_id == "900"
    assert inbound.custom_id == "del:pick:7"


def test_parse_webhook_without_message_returns_none(telegram_adapter):
    assert telegram_adapter.parse_webhook({"update_id": 123}) is None


def test_build_keyboard_drops_disabled_buttons():
    keyboard = build_keyboard(
        [
            [Button(label="Delete #1", custom_id="del:pick:1")],
            [Button(label="Export", custom_id="del:export", disabled=True)],
        ]
    )
    assert isinstance(keyboard, InlineKeyboardMarkup)
    assert len(keyboard.inline_keyboard) == 1
    assert keyboard.inline_keyboard[0][0].callback_data == "del:pick:1"
    assert build_keyboard([]) is None
    assert build_keyboard(None) is None


@pytest.mark.asyncio
async def test_send_returns_result(mock_bot):
    """Send returns OutboundSendResult; mocks Bot API to avoid real calls."""
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    outbound = OutboundMessage(
        channel=Channel.TELEGRAM,
        chat_id="-1001",
        text="hi",
        reply_to_message_id="456",
        buttons=[[Button(label="Cancel", custom_id="del:cancel:1")]],
    )

    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        result = await adapter.send(outbound)

    assert isinstance(result, OutboundSendResult)
    assert result.success is True
    assert result.platform_message_id == "42"
    kwargs = mock_bot.send_message.await_args.kwargs
    assert kwargs["chat_id"] == -1001
    assert kwargs["reply_to_message_id"] == 456
    assert isinstance(kwargs["reply_markup"], InlineKeyboardMarkup)


@pytest.mark.asyncio
async def test_edit_without_buttons_removes_keyboard(mock_bot):
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        await adapter.edit("-1001", "900", "Deletion cancelled.")

    kwargs = mock_bot.edit_message_text.await_args.kwargs
    assert kwargs["text"] == "Deletion cancelled."
    assert kwargs["message_id"] == 900
    assert kwargs["reply_markup"] is None


@pytest.mark.asyncio
async def test_edit_not_modified_is_ignored(mock_bot):
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    mock_bot.edit_message_text.side_effect = BadRequest("Message is not modified")
    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        await adapter.edit("-1001", "900", "same text")


@pytest.mark.asyncio
async def test_edit_other_bad_request_propagates(mock_bot):
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    mock_bot.edit_message_text.side_effect = BadRequest("Message to edit not found")
    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        with pytest.raises(BadRequest):
            await adapter.edit("-1001", "900", "text")


@pytest.mark.asyncio
async def test_send_document(mock_bot):
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        result = await adapter.send_document("-1001", "ledger.csv", b"id\n1\n", "export")

    assert result.success is True
    kwargs = mock_bot.send_document.await_args.kwargs
    assert kwargs["filename"] == "ledger.csv"
    assert kwargs["document"] == b"id\n1\n"


@pytest.mark.asyncio
async def test_get_display_name(mock_bot):
    adapter = TelegramAdapter(bot_token=FAKE_TOKEN)
    member = MagicMock()
    member.user.full_name = "Sam Setter"
    mock_bot.get_chat_member.return_value = member
    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        assert await adapter.get_display_name("-1001", "111") == "Sam Setter"

    mock_bot.get_chat_member.side_effect = BadRequest("User not found")
    with patch.object(adapter, "_get_bot", return_value=mock_bot):
        assert await adapter.get_display_name("-1001", "404") is None
