from app.services.event_store import EventStore
from app.services.username_resolver import ChatMemberUsernameResolver, UsernameResolver
from app.services.export_service import ExportGenerator
from app.services.stats_service import StatsAggregator
from app.services.deletion_workflow import DeletionWorkflow

__all__ = [
    "ChatMemberUsernameResolver",
    "DeletionWorkflow",
    "EventStore",
    "ExportGenerator",
    "StatsAggregator",
    "UsernameResolver",
]
