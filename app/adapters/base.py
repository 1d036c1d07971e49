"""
Platform adapter interface.

Adapters encapsulate platform-specific logic and expose normalized command,
interaction and outbound message shapes to the ledger core.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional, Union

from app.schemas.chat import (
    Button,
    CommandInvocation,
    ComponentInteraction,
    OutboundMessage,
    OutboundSendResult,
)

InboundUpdate = Union[CommandInvocation, ComponentInteraction]


class BasePlatformAdapter(ABC):
    """Contract for platform adapters. New platforms implement this interface."""

    @abstractmethod
    def parse_webhook(self, raw_payload: dict[str, Any]) -> Optional[InboundUpdate]:
        """
        Parse a raw webhook payload. Return None for updates the bot does not
        act on (plain chatter, edits). Raise ValueError if the payload is invalid.
        """
        ...

    @abstractmethod
    async def send(self, outbound: OutboundMessage) -> OutboundSendResult:
        """Send normalized outbound message via platform API. Return success and optional message_id."""
        ...

    @abstractmethod
    async def edit(
        self,
        chat_id: str,
        message_id: str,
        text: Optional[str] = None,
        buttons: Optional[list[list[Button]]] = None,
        parse_mode: Optional[str] = None,
    ) -> None:
        """Replace the text and/or buttons of a message the bot posted."""
        ...

    @abstractmethod
    async def answer_interaction(
        self, interaction_id: str, text: Optional[str] = None
    ) -> None:
        """Acknowledge a button press, optionally with a short notice."""
        ...

    @abstractmethod
    async def send_document(
        self,
        chat_id: str,
        filename: str,
        content: bytes,
        caption: Optional[str] = None,
    ) -> OutboundSendResult:
        """Upload a file to a chat."""
        ...

    @abstractmethod
    async def get_display_name(self, chat_id: str, user_id: str) -> Optional[str]:
        """Display name of a chat member, or None when unknown."""
        ...

    def verify_webhook(
        self, secret: Optional[str], request_headers: Optional[dict[str, str]] = None
    ) -> bool:
        """
        Verify webhook request (e.g. secret token). Override if platform supports it.
        Return True if valid or verification not required; False to reject.
        """
        return True
