"""/stats: the sales dashboard for the configured business timezone."""

from __future__ import annotations

from datetime import timezone

from app.commands.base_telegram import BaseChatCommand
from app.core.permissions import Capability
from app.exceptions import EventStoreError
from app.schemas.chat import CommandInvocation
from app.schemas.stats import StatsSummary
from app.services.stats_service import StatsAggregator
from app.services.username_resolver import ChatMemberUsernameResolver
from app.utils import formatting


class StatsCommand(BaseChatCommand):
    name = "stats"
    description = "Show today's set leaderboard and the close/install counts"
    capability = Capability.VIEW_STATS

    async def run(self, invocation: CommandInvocation) -> StatsSummary | None:
        aggregator = StatsAggregator(
            self.store, self.state.timezone or timezone.utc
        )
        try:
            summary = aggregator.summary()
        except EventStoreError as e:
            self.logger.error("Stats query failed: %s", e)
            await self.reply(invocation, formatting.GENERIC_FAILURE)
            return None

        resolver = ChatMemberUsernameResolver(self.adapter, invocation.chat_id)
        usernames = await resolver.resolve(
            entry.actor_id for entry in summary.leaderboard
        )
        await self.reply(invocation, formatting.stats_dashboard(summary, usernames))
        return summary
