"""Renders deletion workflow prompts and outcomes as Telegram messages."""

from __future__ import annotations

import logging
from typing import List, Optional

from app.adapters.base import BasePlatformAdapter
from app.schemas.chat import (
    Button,
    Channel,
    ComponentInteraction,
    OutboundMessage,
    PromptRef,
)
from app.schemas.event import EventRead
from app.schemas.export import ExportResult
from app.services.deletion_workflow import (
    DeleteAction,
    DeletionOutcome,
    OutcomeKind,
    build_custom_id,
)
from app.utils import formatting

logger = logging.getLogger(__name__)

OUTCOME_TEXT = {
    OutcomeKind.DELETED: "✅ Event ID {event_id} has been successfully deleted.",
    OutcomeKind.CANCELLED: "Deletion cancelled.",
    OutcomeKind.TIMED_OUT: "⌛ Request timed out. Nothing was deleted.",
    OutcomeKind.NOT_FOUND: "⚠️ Event ID {event_id} could not be found anymore.",
    OutcomeKind.EMPTY: "ℹ️ No recent events found in the ledger.",
    OutcomeKind.FAILED: "❌ An error occurred while processing the deletion.",
}


def outcome_text(outcome: DeletionOutcome) -> str:
    return OUTCOME_TEXT[outcome.kind].format(event_id=outcome.event_id)


def listing_buttons(events: List[EventRead], export_enabled: bool) -> list[list[Button]]:
    rows = [
        [
            Button(
                label=f"Delete #{event.id} ({event.type.value})",
                custom_id=build_custom_id(DeleteAction.PICK, event.id),
            )
        ]
        for event in events
    ]
    rows.append(
        [
            Button(
                label="Export Full Ledger as CSV",
                custom_id=build_custom_id(DeleteAction.EXPORT),
                disabled=not export_enabled,
            )
        ]
    )
    return rows


def confirmation_buttons(event_id: int) -> list[list[Button]]:
    return [
        [
            Button(
                label="Confirm Delete",
                custom_id=build_custom_id(DeleteAction.CONFIRM, event_id),
            ),
            Button(
                label="Cancel",
                custom_id=build_custom_id(DeleteAction.CANCEL, event_id),
            ),
        ]
    ]


class TelegramDeletionRenderer:
    """DeletionRenderer bound to the chat the /delete_event command came from."""

    def __init__(
        self,
        adapter: BasePlatformAdapter,
        chat_id: str,
        reply_to_message_id: Optional[str] = None,
    ) -> None:
        self._adapter = adapter
        self._chat_id = chat_id
        self._reply_to = reply_to_message_id

    async def _post(
        self, text: str, buttons: Optional[list[list[Button]]] = None
    ) -> PromptRef:
        result = await self._adapter.send(
            OutboundMessage(
                channel=Channel.TELEGRAM,
                chat_id=self._chat_id,
                text=text,
                reply_to_message_id=self._reply_to,
                buttons=buttons or [],
            )
        )
        if not result.success or not result.platform_message_id:
            raise RuntimeError("Platform API failed to post deletion prompt")
        return PromptRef(chat_id=self._chat_id, message_id=result.platform_message_id)

    async def show_listing(
        self,
        events: List[EventRead],
        usernames: dict[str, str],
        prompt: Optional[PromptRef] = None,
        export_enabled: bool = True,
    ) -> PromptRef:
        text = formatting.event_listing(events, usernames)
        buttons = listing_buttons(events, export_enabled)
        if prompt is None:
            return await self._post(text, buttons)
        await self._adapter.edit(prompt.chat_id, prompt.message_id, text, buttons)
        return prompt

    async def show_confirmation(
        self, event: EventRead, prompt: Optional[PromptRef]
    ) -> PromptRef:
        text = formatting.deletion_confirmation(event)
        buttons = confirmation_buttons(event.id)
        if prompt is None:
            return await self._post(text, buttons)
        await self._adapter.edit(prompt.chat_id, prompt.message_id, text, buttons)
        return prompt

    async def show_outcome(
        self, outcome: DeletionOutcome, prompt: Optional[PromptRef]
    ) -> None:
        text = outcome_text(outcome)
        if prompt is None:
            await self._post(text)
            return
        # Editing without buttons removes the keyboard, disabling the prompt.
        await self._adapter.edit(prompt.chat_id, prompt.message_id, text, buttons=None)

    async def acknowledge(
        self, interaction: ComponentInteraction, text: Optional[str] = None
    ) -> None:
        await self._adapter.answer_interaction(interaction.interaction_id, text)

    async def deliver_export(self, result: Optional[ExportResult]) -> None:
        if result is None:
            await self._post("❌ Error generating export.")
            return
        if result.is_empty:
            await self._post("ℹ️ Ledger is empty, nothing to export.")
            return
        await self._adapter.send_document(
            self._chat_id,
            result.filename,
            result.to_csv().encode("utf-8"),
            caption=f"📊 Export complete: {len(result.rows)} events.",
        )
