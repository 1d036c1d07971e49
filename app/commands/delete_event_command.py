"""/delete_event [id]: start an interactive deletion workflow."""

from __future__ import annotations

from app.commands.base_telegram import BaseChatCommand
from app.core.permissions import Capability
from app.renderers import TelegramDeletionRenderer
from app.schemas.chat import CommandInvocation
from app.services.deletion_workflow import DeletionWorkflow
from app.services.export_service import ExportGenerator
from app.services.username_resolver import ChatMemberUsernameResolver
from app.utils.command_args import CommandArgumentError, parse_event_id


class DeleteEventCommand(BaseChatCommand):
    name = "delete_event"
    description = "Delete a recorded event: /delete_event [event id], or pick from the latest"
    capability = Capability.DELETE_EVENTS

    def build_workflow(self, invocation: CommandInvocation) -> DeletionWorkflow:
        settings = self.state.settings
        resolver = ChatMemberUsernameResolver(self.adapter, invocation.chat_id)
        return DeletionWorkflow(
            self.store,
            ExportGenerator(self.store, resolver),
            resolver,
            self.state.collector,
            TelegramDeletionRenderer(
                self.adapter, invocation.chat_id, invocation.message_id
            ),
            actor_id=invocation.actor_id,
            list_limit=settings.delete_list_limit,
            list_timeout=settings.delete_list_timeout_seconds,
            confirm_timeout=settings.delete_confirm_timeout_seconds,
        )

    async def run(self, invocation: CommandInvocation) -> DeletionWorkflow | None:
        try:
            event_id = parse_event_id(invocation.args)
        except CommandArgumentError as e:
            await self.reply(invocation, f"⚠️ {e}\nUsage: {e.usage}")
            return None

        workflow = self.build_workflow(invocation)
        # Runs past the webhook request; button presses reach it via the collector.
        self.state.spawn(
            workflow.run(event_id),
            name=f"delete-event-{invocation.chat_id}-{invocation.message_id}",
        )
        self.logger.info(
            "Deletion workflow started by %s (event_id=%s)", invocation.actor_id, event_id
        )
        return workflow
