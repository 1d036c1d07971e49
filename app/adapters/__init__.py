"""Platform adapters for chat integrations."""

from app.adapters.base import BasePlatformAdapter, InboundUpdate
from app.adapters.telegram import TelegramAdapter, build_keyboard

__all__ = ["BasePlatformAdapter", "InboundUpdate", "TelegramAdapter", "build_keyboard"]
