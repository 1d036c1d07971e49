"""/export_db: send the full ledger as a CSV document."""

from __future__ import annotations

from app.commands.base_telegram import BaseChatCommand
from app.core.permissions import Capability
from app.exceptions import EventStoreError
from app.schemas.chat import CommandInvocation
from app.schemas.export import ExportResult
from app.services.export_service import ExportGenerator
from app.services.username_resolver import ChatMemberUsernameResolver
from app.utils import formatting

EMPTY_LEDGER = "ℹ️ Database is empty."


class ExportCommand(BaseChatCommand):
    name = "export_db"
    description = "Export every recorded event as a CSV file"
    capability = Capability.EXPORT_LEDGER

    async def run(self, invocation: CommandInvocation) -> ExportResult | None:
        generator = ExportGenerator(
            self.store, ChatMemberUsernameResolver(self.adapter, invocation.chat_id)
        )
        try:
            result = await generator.generate()
        except EventStoreError as e:
            self.logger.error("Export failed: %s", e)
            await self.reply(invocation, formatting.GENERIC_FAILURE)
            return None

        if result.is_empty:
            await self.reply(invocation, EMPTY_LEDGER)
            return result
        await self.adapter.send_document(
            invocation.chat_id,
            result.filename,
            result.to_csv().encode("utf-8"),
            caption=f"📊 Ledger export: {len(result.rows)} events.",
        )
        return result
