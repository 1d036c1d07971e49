"""
Recording commands: /set, /closed and /install.

Each command validates its arguments, appends the event as pending, posts
the public confirmation and then finalizes the row with the confirmation's
message id. If posting fails the row is kept and marked orphaned; the
business event already happened.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import StrEnum
from typing import Optional

from app.constants.events import EventType
from app.core.permissions import Capability
from app.commands.base_telegram import BaseChatCommand
from app.exceptions import EventStoreError, EventValidationError
from app.schemas.chat import CommandInvocation
from app.schemas.event import EventDraft, EventRead
from app.services.username_resolver import ChatMemberUsernameResolver
from app.utils import formatting
from app.utils.command_args import (
    CommandArgumentError,
    parse_closed_args,
    parse_install_args,
    parse_set_args,
)


class RecordStatus(StrEnum):
    RECORDED = "recorded"
    INVALID = "invalid"
    FAILED = "failed"


@dataclass
class RecordOutcome:
    status: RecordStatus
    event_id: Optional[int] = None
    event: Optional[EventRead] = None
    finalized: bool = False
    warnings: list[str] = field(default_factory=list)


class BaseRecordCommand(BaseChatCommand):
    """Shared append, confirm and finalize flow for the recording commands."""

    def build_draft(self, invocation: CommandInvocation) -> tuple[EventDraft, list[str]]:
        """Parse arguments into a draft plus any non-fatal warnings."""
        raise NotImplementedError

    async def confirmation_text(
        self, invocation: CommandInvocation, draft: EventDraft, warnings: list[str]
    ) -> str:
        raise NotImplementedError

    async def run(self, invocation: CommandInvocation) -> RecordOutcome:
        try:
            draft, warnings = self.build_draft(invocation)
        except CommandArgumentError as e:
            await self.reply(invocation, f"⚠️ {e}\nUsage: {e.usage}")
            return RecordOutcome(status=RecordStatus.INVALID)

        try:
            event_id = self.store.append(draft)
        except EventValidationError as e:
            await self.reply(invocation, f"⚠️ {e}")
            return RecordOutcome(status=RecordStatus.INVALID)
        except EventStoreError:
            await self.reply(invocation, formatting.GENERIC_FAILURE)
            return RecordOutcome(status=RecordStatus.FAILED)

        outcome = RecordOutcome(
            status=RecordStatus.RECORDED, event_id=event_id, warnings=warnings
        )
        text = await self.confirmation_text(invocation, draft, warnings)
        try:
            result = await self.reply(invocation, text)
        except Exception as e:
            self.logger.exception(
                "Failed to post confirmation for event id=%s: %s", event_id, e
            )
            result = None

        try:
            if result is not None and result.success and result.platform_message_id:
                self.store.attach_message(event_id, result.platform_message_id)
                outcome.finalized = True
            else:
                self.store.mark_orphaned(event_id)
            outcome.event = self.store.get_by_id(event_id)
        except EventStoreError as e:
            # The row stays pending; it is still a valid ledger entry.
            self.logger.error("Could not finalize event id=%s: %s", event_id, e)
        return outcome

    async def setter_name(self, invocation: CommandInvocation, setter_id: str) -> str:
        resolver = ChatMemberUsernameResolver(self.adapter, invocation.chat_id)
        names = await resolver.resolve([setter_id])
        return names[setter_id]

    @staticmethod
    def actor_name(invocation: CommandInvocation) -> str:
        return invocation.actor_name or invocation.actor_id


class RecordSetCommand(BaseRecordCommand):
    name = "set"
    description = "Record a new set: /set Customer Name | MM/DD [h:mm pm] (attach the bill photo)"
    capability = Capability.RECORD_SET

    def today(self) -> datetime:
        tz = self.state.timezone or timezone.utc
        return datetime.now(tz)

    def build_draft(self, invocation: CommandInvocation) -> tuple[EventDraft, list[str]]:
        args = parse_set_args(invocation.args, self.today().date())
        warnings = list(args.warnings)
        has_bill = any(attachment.is_image for attachment in invocation.attachments)
        if invocation.attachments and not has_bill:
            warnings.append("The attached file is not an image, so it was not counted as a bill.")
        draft = EventDraft(
            type=EventType.SET,
            actor_id=invocation.actor_id,
            channel_id=invocation.chat_id,
            customer_name=args.customer_name,
            set_date=args.set_date,
            has_bill=has_bill,
        )
        return draft, warnings

    async def confirmation_text(
        self, invocation: CommandInvocation, draft: EventDraft, warnings: list[str]
    ) -> str:
        return formatting.set_recorded(
            self.actor_name(invocation),
            draft.customer_name,
            draft.set_date,
            bool(draft.has_bill),
            warnings,
        )


class RecordClosedCommand(BaseRecordCommand):
    name = "closed"
    description = "Record a closed deal: /closed Customer Name | kW | @setter"
    capability = Capability.RECORD_CLOSE_OR_INSTALL

    def build_draft(self, invocation: CommandInvocation) -> tuple[EventDraft, list[str]]:
        args = parse_closed_args(invocation.args, invocation.mentioned_user_ids)
        draft = EventDraft(
            type=EventType.CLOSED,
            actor_id=invocation.actor_id,
            channel_id=invocation.chat_id,
            customer_name=args.customer_name,
            system_size=args.system_size,
            setter_id=args.setter_id,
        )
        return draft, []

    async def confirmation_text(
        self, invocation: CommandInvocation, draft: EventDraft, warnings: list[str]
    ) -> str:
        return formatting.closed_recorded(
            self.actor_name(invocation),
            draft.customer_name,
            draft.system_size,
            await self.setter_name(invocation, draft.setter_id),
        )


class RecordInstallCommand(BaseRecordCommand):
    name = "install"
    description = "Record a scheduled installation: /install Customer Name | @setter"
    capability = Capability.RECORD_CLOSE_OR_INSTALL

    def build_draft(self, invocation: CommandInvocation) -> tuple[EventDraft, list[str]]:
        args = parse_install_args(invocation.args, invocation.mentioned_user_ids)
        draft = EventDraft(
            type=EventType.INSTALL_SCHEDULED,
            actor_id=invocation.actor_id,
            channel_id=invocation.chat_id,
            customer_name=args.customer_name,
            setter_id=args.setter_id,
        )
        return draft, []

    async def confirmation_text(
        self, invocation: CommandInvocation, draft: EventDraft, warnings: list[str]
    ) -> str:
        return formatting.install_recorded(
            self.actor_name(invocation),
            draft.customer_name,
            await self.setter_name(invocation, draft.setter_id),
        )
