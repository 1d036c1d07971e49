"""
Normalized chat contracts.

Adapters convert platform updates into CommandInvocation and
ComponentInteraction; outbound replies use OutboundMessage. The ledger core
only ever sees these shapes.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Channel(str, Enum):
    """Supported chat channels."""

    TELEGRAM = "telegram"


class Attachment(BaseModel):
    """File attached to a command message (metadata only)."""

    kind: str  # photo | document
    file_id: str
    file_name: Optional[str] = None
    mime_type: Optional[str] = None

    @property
    def is_image(self) -> bool:
        if self.kind == "photo":
            return True
        return bool(self.mime_type and self.mime_type.startswith("image/"))


class CommandInvocation(BaseModel):
    """A slash command sent by a member (adapter → core)."""

    channel: Channel
    name: str  # without leading slash or @botname
    args: str = ""
    actor_id: str
    actor_name: Optional[str] = None
    chat_id: str
    message_id: str
    mentioned_user_ids: list[str] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)


class ComponentInteraction(BaseModel):
    """A button press on a message the bot posted (adapter → core)."""

    channel: Channel
    interaction_id: str
    actor_id: str
    chat_id: str
    message_id: str  # the prompt message the button belongs to
    custom_id: str


class PromptRef(BaseModel):
    """Identifies a posted message that carries interactive buttons."""

    model_config = {"frozen": True}

    chat_id: str
    message_id: str


class Button(BaseModel):
    label: str
    custom_id: str
    disabled: bool = False


class OutboundMessage(BaseModel):
    """Normalized outbound message (core → adapter)."""

    channel: Channel
    chat_id: str
    text: str
    reply_to_message_id: Optional[str] = None
    buttons: list[list[Button]] = Field(default_factory=list)
    parse_mode: Optional[str] = None


class OutboundSendResult(BaseModel):
    """Result of sending an outbound message (success + optional message_id)."""

    success: bool
    platform_message_id: Optional[str] = None
